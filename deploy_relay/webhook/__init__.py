"""Gitea webhook handling for the deploy relay.

This module verifies and parses Gitea push events:
- HMAC-SHA256 signature verification against the x-gitea-signature header
- Extraction of the repository full name and pushed branch
"""

from .handler import decode_payload, extract_repo_info, parse_push_event
from .models import PushEvent, RepositoryIdentity, SignedEnvelope
from .signature import SIGNATURE_HEADER, compute_signature, verify_signature

__all__ = [
    "PushEvent",
    "RepositoryIdentity",
    "SIGNATURE_HEADER",
    "SignedEnvelope",
    "compute_signature",
    "decode_payload",
    "extract_repo_info",
    "parse_push_event",
    "verify_signature",
]
