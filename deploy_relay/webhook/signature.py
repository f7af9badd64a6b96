"""Gitea webhook signature verification.

Gitea sends a hex-encoded HMAC-SHA256 digest in the x-gitea-signature
header. Payloads may carry their own top-level "secret" field, which then
replaces the server's default secret and is excluded from the signed bytes.

Signed forms accepted:
- The compact serialization of the payload with "secret" removed, in the
  form JavaScript's JSON.stringify produces (key order preserved, no
  whitespace, non-ASCII left unescaped, lone surrogates written as \\uXXXX).
- The raw request body, when the payload has no "secret" field.
"""

import hashlib
import hmac
import json
import logging
import re
from typing import Any, Iterable, NoReturn, Union

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-gitea-signature"
SECRET_FIELD = "secret"

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def _reject_constant(name: str) -> NoReturn:
    raise ValueError(f"Invalid JSON constant: {name}")


def load_json(body: Union[str, bytes]) -> Any:
    """Decode a JSON document, rejecting NaN, Infinity and -Infinity.

    Raises:
        ValueError: If the body is not valid UTF-8 JSON. This covers
            json.JSONDecodeError and UnicodeDecodeError.
    """
    return json.loads(body, parse_constant=_reject_constant)


def canonical_payload(payload: Any) -> bytes:
    """Serialize a decoded payload into its compact signed form.

    Args:
        payload: Decoded JSON payload with the secret field already removed.

    Returns:
        UTF-8 bytes of the compact JSON serialization.
    """
    text = json.dumps(
        payload,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    # Surrogate pairs are already joined by the decoder; only lone ones remain.
    text = _LONE_SURROGATE.sub(lambda m: "\\u%04x" % ord(m.group()), text)
    return text.encode("utf-8")


def compute_signature(data: bytes, secret: str) -> str:
    """Return the hex HMAC-SHA256 digest of data keyed with secret."""
    return hmac.new(secret.encode("utf-8"), data, hashlib.sha256).hexdigest()


def _signed_forms(raw: bytes, payload: Any) -> Iterable[bytes]:
    if isinstance(payload, dict) and SECRET_FIELD in payload:
        stripped = {k: v for k, v in payload.items() if k != SECRET_FIELD}
        yield canonical_payload(stripped)
        return
    yield canonical_payload(payload)
    yield raw


def verify_signature(
    body: Union[str, bytes],
    header_signature: str,
    default_secret: str,
) -> bool:
    """Verify a webhook body against the signature from its header.

    The body is decoded as JSON. A top-level "secret" field, when present
    and non-empty, is used as the HMAC key in place of default_secret.

    Args:
        body: Raw request body.
        header_signature: Hex digest from the x-gitea-signature header.
        default_secret: Server-configured webhook secret.

    Returns:
        True if any accepted signed form matches the header signature.

    Raises:
        ValueError: If the body is not valid UTF-8 JSON, including bodies
            that use NaN or Infinity.
    """
    raw = body.encode("utf-8") if isinstance(body, str) else body
    payload = load_json(raw.decode("utf-8"))

    secret = default_secret
    if isinstance(payload, dict):
        override = payload.get(SECRET_FIELD)
        if isinstance(override, str) and override:
            secret = override

    # Exact equality with the header value; no trimming or case folding.
    expected = header_signature.encode("utf-8")
    for signed in _signed_forms(raw, payload):
        digest = compute_signature(signed, secret).encode("ascii")
        if hmac.compare_digest(digest, expected):
            return True

    logger.debug("No signed form matched the header signature")
    return False
