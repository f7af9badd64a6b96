"""Gitea push webhook models for the deploy relay.

Gitea Push Payload Structure (fields the relay reads):
{
  "ref": "refs/heads/main",
  "repository": {
    "full_name": "owner/repo-name"
  },
  "secret": "optional per-payload secret"
}

The models use Pydantic for validation, consistent with the relay's
configuration approach in config.py.
"""

from typing import NamedTuple, Optional

from pydantic import BaseModel, Field


class RepositoryIdentity(NamedTuple):
    """Repository and branch a push event refers to."""

    repository_full_name: str
    branch: str


class PushEvent(BaseModel):
    """Parsed Gitea push webhook event.

    Attributes:
        repository_full_name: Repository path in "owner/name" form.
        ref: Full git ref that was pushed, e.g. "refs/heads/main".
    """

    repository_full_name: str = Field(
        ...,
        min_length=1,
        description="Repository path in owner/name form",
    )

    ref: str = Field(
        ...,
        min_length=1,
        description="Full git ref that was pushed",
    )

    @property
    def branch(self) -> str:
        """Final path segment of the ref.

        Returns:
            str: Branch name, e.g. "main" for "refs/heads/main".
        """
        return self.ref.split("/")[-1]

    @property
    def identity(self) -> RepositoryIdentity:
        return RepositoryIdentity(self.repository_full_name, self.branch)


class SignedEnvelope(BaseModel):
    """Raw webhook body with the signature supplied alongside it.

    Attributes:
        body: Raw request body bytes.
        signature: Value of the x-gitea-signature header, if present.
    """

    body: bytes
    signature: Optional[str] = None

    @property
    def is_signed(self) -> bool:
        return bool(self.signature)
