"""Deploy relay: Gitea push webhooks to Coolify deployments.

This package provides:
- Gitea webhook signature verification and push event parsing
- A Coolify API client for listing applications and triggering deploys
- Repository/branch matching against the Coolify application directory
- A FastAPI service that ties the steps together
"""
