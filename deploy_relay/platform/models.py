"""Coolify API models for the deploy relay.

Only the fields the relay reads are declared; Coolify returns many more
per application and those are ignored.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ApplicationRecord(BaseModel):
    """One application entry from Coolify's application listing.

    Attributes:
        uuid: Coolify application identifier used to trigger deploys.
        git_repository: Repository path configured for the application.
        git_branch: Branch the application deploys from.
    """

    model_config = ConfigDict(extra="ignore")

    uuid: str = Field(..., min_length=1, description="Coolify application uuid")
    git_repository: Optional[str] = Field(
        default=None,
        description="Repository path, e.g. owner/name",
    )
    git_branch: Optional[str] = Field(
        default=None,
        description="Branch the application deploys from",
    )
