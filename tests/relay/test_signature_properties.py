"""Property-based tests for Gitea webhook signature verification.

Signatures are computed independently here with hmac/hashlib so the tests
do not rely on the helpers under test.

Testing Configuration:
- Library: Hypothesis (Python)
- Minimum iterations: 100 per property test
"""

import hashlib
import hmac
import json
import re

import pytest
from hypothesis import assume, given, settings, strategies as st

from deploy_relay.webhook.signature import (
    canonical_payload,
    compute_signature,
    load_json,
    verify_signature,
)


SERVER_SECRET = "server-secret"

ALPHANUMERIC = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def _sign(data: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), data, hashlib.sha256).hexdigest()


def _compact(obj) -> bytes:
    """JSON.stringify output: non-ASCII kept, lone surrogates escaped."""
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    text = re.sub("[\ud800-\udfff]", lambda m: "\\u%04x" % ord(m.group()), text)
    return text.encode("utf-8")


# =============================================================================
# Hypothesis Strategies
# =============================================================================


# Characters JSON must escape, astral code points and lone surrogates. Only
# high surrogates are drawn so two of them never combine into a valid pair.
escape_heavy_text = st.text(
    alphabet=st.one_of(
        st.sampled_from('"\\/\b\f\n\r\t\x00\x1f\x7f\u2028\u2029'),
        st.characters(min_codepoint=0x10000, max_codepoint=0x10FFFF),
        st.characters(categories=("Cs",), max_codepoint=0xDBFF),
        st.characters(),
    ),
    max_size=30,
)

json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**53), max_value=2**53),
    st.text(max_size=50),
    escape_heavy_text,
)

json_values = st.recursive(
    json_scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=5),
        st.dictionaries(st.text(max_size=20), children, max_size=5),
    ),
    max_leaves=20,
)


@st.composite
def push_payload(draw: st.DrawFn) -> dict:
    """Generate a Gitea-like push payload without a secret field."""
    owner = draw(st.text(alphabet=ALPHANUMERIC, min_size=1, max_size=20))
    name = draw(st.text(alphabet=ALPHANUMERIC, min_size=1, max_size=40))
    branch = draw(st.text(alphabet=ALPHANUMERIC, min_size=1, max_size=30))
    extra = draw(
        st.dictionaries(
            st.text(max_size=20).filter(lambda k: k not in ("secret", "ref", "repository")),
            json_values,
            max_size=5,
        )
    )
    payload = {
        "ref": f"refs/heads/{branch}",
        "repository": {"full_name": f"{owner}/{name}"},
    }
    payload.update(extra)
    return payload


# =============================================================================
# Properties
# =============================================================================


@settings(max_examples=100)
@given(payload=push_payload())
def test_compact_signature_verifies(payload):
    """A signature over the compact serialization always verifies."""
    body = json.dumps(payload, indent=2).encode("utf-8")
    signature = _sign(_compact(payload), SERVER_SECRET)

    assert verify_signature(body, signature, SERVER_SECRET) is True


@settings(max_examples=100)
@given(payload=push_payload())
def test_raw_body_signature_verifies(payload):
    """A signature over the exact raw bytes verifies when no secret field is present."""
    body = json.dumps(payload, indent=2, ensure_ascii=True).encode("utf-8")
    signature = _sign(body, SERVER_SECRET)

    assert verify_signature(body, signature, SERVER_SECRET) is True


@settings(max_examples=100)
@given(payload=push_payload(), other=st.text(min_size=1, max_size=30))
def test_wrong_secret_fails(payload, other):
    assume(other != SERVER_SECRET)
    body = _compact(payload)
    signature = _sign(body, other)

    assert verify_signature(body, signature, SERVER_SECRET) is False


@settings(max_examples=100)
@given(payload=push_payload(), data=st.data())
def test_single_byte_mutation_fails(payload, data):
    """Changing one byte of the repository name invalidates the signature."""
    body = _compact(payload).decode("utf-8")
    signature = _sign(body.encode("utf-8"), SERVER_SECRET)

    full_name = payload["repository"]["full_name"]
    marker = f'"full_name":"{full_name}"'
    start = body.index(marker) + len('"full_name":"')
    offset = data.draw(st.integers(min_value=0, max_value=len(full_name) - 1))
    position = start + offset
    original = body[position]
    assume(original != "/")
    replacement = data.draw(st.sampled_from(ALPHANUMERIC).filter(lambda c: c != original))

    mutated = body[:position] + replacement + body[position + 1:]

    assert verify_signature(mutated.encode("utf-8"), signature, SERVER_SECRET) is False


@settings(max_examples=100)
@given(payload=push_payload(), override=st.text(min_size=1, max_size=30))
def test_in_body_secret_overrides_default(payload, override):
    """The payload secret keys the HMAC and is excluded from the signed bytes."""
    assume(override != SERVER_SECRET)
    signed = _compact(payload)
    body = _compact({**payload, "secret": override})

    assert verify_signature(body, _sign(signed, override), SERVER_SECRET) is True
    assert verify_signature(body, _sign(signed, SERVER_SECRET), SERVER_SECRET) is False


# =============================================================================
# Unit tests
# =============================================================================


def test_empty_in_body_secret_falls_back_to_default():
    payload = {"ref": "refs/heads/main", "repository": {"full_name": "acme/app"}}
    body = _compact({**payload, "secret": ""})

    assert verify_signature(body, _sign(_compact(payload), SERVER_SECRET), SERVER_SECRET)


def test_raw_body_not_accepted_when_secret_field_present():
    """With an in-body secret, only the stripped form is signed."""
    body = b'{"ref": "refs/heads/main", "secret": "override"}'

    assert verify_signature(body, _sign(body, "override"), SERVER_SECRET) is False


def test_header_signature_must_match_exactly():
    """Upper-cased or padded hex digests do not match."""
    body = _compact({"ref": "refs/heads/main"})
    signature = _sign(body, SERVER_SECRET)

    assert verify_signature(body, signature, SERVER_SECRET) is True
    assert verify_signature(body, signature.upper(), SERVER_SECRET) is False
    assert verify_signature(body, f" {signature} ", SERVER_SECRET) is False


def test_accepts_str_body():
    body = '{"ref":"refs/heads/main"}'

    assert verify_signature(body, _sign(body.encode(), SERVER_SECRET), SERVER_SECRET)


def test_non_ascii_signature_is_rejected_not_raised():
    body = _compact({"ref": "refs/heads/main"})

    assert verify_signature(body, "é" * 64, SERVER_SECRET) is False


def test_invalid_json_propagates():
    """Unparsable bodies are a parse failure, not an invalid signature."""
    with pytest.raises(json.JSONDecodeError):
        verify_signature(b"{not json", "00" * 32, SERVER_SECRET)


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_constants_are_invalid_json(constant):
    body = f'{{"ref":"refs/heads/main","x":{constant}}}'.encode("utf-8")

    with pytest.raises(ValueError, match="Invalid JSON constant"):
        verify_signature(body, _sign(body, SERVER_SECRET), SERVER_SECRET)
    with pytest.raises(ValueError):
        load_json(body)


def test_lone_surrogate_escape_verifies_against_raw_body():
    body = b'{"repository":{"full_name":"acme/app"},"ref":"refs/heads/main","msg":"\\ud800"}'

    assert verify_signature(body, _sign(body, SERVER_SECRET), SERVER_SECRET) is True


def test_lone_surrogate_escape_verifies_against_compact_form():
    body = b'{"ref": "refs/heads/main", "msg": "a\\udfffb", "secret": "hook"}'
    signed = b'{"ref":"refs/heads/main","msg":"a\\udfffb"}'

    assert verify_signature(body, _sign(signed, "hook"), SERVER_SECRET) is True


def test_canonical_payload_escapes_lone_surrogates_only():
    payload = {"lone": "\ud800x", "pair": "\U0001f600", "ctl": "\n\u2028"}

    assert canonical_payload(payload) == (
        '{"lone":"\\ud800x","pair":"\U0001f600","ctl":"\\n\u2028"}'.encode("utf-8")
    )


def test_canonical_payload_matches_json_stringify_form():
    payload = {"b": 1, "a": ["x", None, True], "name": "café"}

    assert canonical_payload(payload) == '{"b":1,"a":["x",null,true],"name":"café"}'.encode(
        "utf-8"
    )


def test_compute_signature_is_hex_sha256():
    digest = compute_signature(b"payload", "key")

    assert len(digest) == 64
    assert digest == _sign(b"payload", "key")
