"""Gitea push webhook parsing for the deploy relay.

This module turns a decoded push payload into the repository/branch pair
used to look up the application to deploy. Missing data is reported as
None rather than raised, so the orchestrator can answer with a 400.
"""

import logging
from typing import Any, Optional, Union

from deploy_relay.errors import ClientInputError
from deploy_relay.webhook.models import PushEvent, RepositoryIdentity
from deploy_relay.webhook.signature import load_json

logger = logging.getLogger(__name__)


def parse_push_event(payload: Any) -> Optional[PushEvent]:
    """Parse a Gitea push event from a decoded webhook payload.

    Args:
        payload: The decoded webhook payload.

    Returns:
        PushEvent if both repository.full_name and a ref with a non-empty
        final segment are present, None otherwise.
    """
    if not isinstance(payload, dict):
        logger.warning("Invalid payload: expected dict, got %s", type(payload))
        return None

    repo_data = payload.get("repository")
    if not isinstance(repo_data, dict):
        logger.warning(
            "Missing or invalid 'repository' field in payload: %s",
            type(repo_data),
        )
        return None

    full_name = repo_data.get("full_name")
    if not isinstance(full_name, str) or not full_name:
        logger.warning("Invalid or empty repository full_name: %s", full_name)
        return None

    ref = payload.get("ref")
    if not isinstance(ref, str) or not ref.split("/")[-1]:
        logger.warning("Invalid or empty ref: %s", ref)
        return None

    return PushEvent(repository_full_name=full_name, ref=ref)


def extract_repo_info(payload: Any) -> Optional[RepositoryIdentity]:
    """Extract the repository full name and branch from a push payload.

    The branch is the last "/"-separated segment of the ref, so
    "refs/heads/main" yields "main".

    Args:
        payload: The decoded webhook payload.

    Returns:
        RepositoryIdentity, or None when either value is missing or empty.
    """
    event = parse_push_event(payload)
    if event is None:
        return None
    return event.identity


def decode_payload(body: Union[str, bytes]) -> Any:
    """Decode a raw webhook body as JSON.

    Raises:
        ClientInputError: If the body is not valid UTF-8 JSON. NaN and
            Infinity are not JSON and are rejected too.
    """
    try:
        return load_json(body)
    except ValueError as e:
        logger.warning("Error parsing JSON: %s", e)
        raise ClientInputError("Invalid JSON") from e
