"""Coolify deployment platform integration.

This module provides the client used to list Coolify applications and to
trigger deployments, together with the DeploymentPlatform protocol the
orchestrator depends on.
"""

from deploy_relay.platform.client import CoolifyClient, DeploymentPlatform
from deploy_relay.platform.models import ApplicationRecord

__all__ = [
    "ApplicationRecord",
    "CoolifyClient",
    "DeploymentPlatform",
]
