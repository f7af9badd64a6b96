"""Repository/branch matching against the Coolify application directory."""

import logging
from typing import Iterable, Optional

from deploy_relay.platform.models import ApplicationRecord

logger = logging.getLogger(__name__)


def _normalize(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().lower()


def find_matching_application(
    applications: Iterable[ApplicationRecord],
    repository_full_name: str,
    branch: str,
) -> Optional[ApplicationRecord]:
    """Find the first application configured for this repository and branch.

    Both comparisons ignore case and surrounding whitespace. Applications
    without a repository or branch never match. When several applications
    match, the first in directory order wins.

    Args:
        applications: Application directory in the order Coolify returned it.
        repository_full_name: Repository path from the push event.
        branch: Branch name from the push event.

    Returns:
        The matching ApplicationRecord, or None.
    """
    target_repo = _normalize(repository_full_name)
    target_branch = _normalize(branch)

    for application in applications:
        repo = _normalize(application.git_repository)
        app_branch = _normalize(application.git_branch)
        if repo is None or app_branch is None:
            continue
        if repo == target_repo and app_branch == target_branch:
            return application

    return None
