"""FastAPI application entry point for the deploy relay.

This module provides the FastAPI application that receives Gitea push
webhooks and triggers the matching Coolify deployment. Any POST, on any
path, is treated as a webhook delivery; `/health` and `/metrics` answer
GET requests for probes and Prometheus scrapes.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry

from deploy_relay.config import RelaySettings, get_settings
from deploy_relay.metrics import RelayMetrics
from deploy_relay.orchestrator import WebhookRelay
from deploy_relay.platform.client import CoolifyClient, DeploymentPlatform
from deploy_relay.webhook.signature import SIGNATURE_HEADER

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters.

    Args:
        value: The secret value to redact.
        visible_chars: Number of characters to show at the start.

    Returns:
        Redacted string with asterisks replacing hidden characters.
    """
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: RelaySettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info("Relay configuration:")
    logger.info(f"  Coolify API URL: {settings.api_base_url}")
    logger.info(f"  Coolify API Key: {_redact_secret(settings.coolify_api_key)}")
    logger.info(f"  Webhooks Secret: {_redact_secret(settings.webhooks_secret)}")
    logger.info(f"  Require Signature: {settings.require_signature}")
    logger.info(f"  Platform Timeout Seconds: {settings.platform_timeout_seconds}")
    logger.info(f"  Host: {settings.host}")
    logger.info(f"  Port: {settings.port}")
    if not settings.require_signature:
        logger.warning(
            "Unsigned webhooks will be processed without verification; "
            "set REQUIRE_SIGNATURE=true to reject them"
        )


def create_app(
    settings: Optional[RelaySettings] = None,
    platform: Optional[DeploymentPlatform] = None,
    metrics: Optional[RelayMetrics] = None,
) -> FastAPI:
    """Build the relay application.

    Settings are loaded from the environment at startup when not given.
    A CoolifyClient is created from the settings unless a platform is
    injected, in which case the caller owns its lifecycle.

    Args:
        settings: Relay settings; loaded via get_settings() if None.
        platform: Deployment platform implementation, e.g. a test fake.
        metrics: Metrics container; a fresh registry is used if None.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Deploy relay starting up...")

        cfg = settings if settings is not None else get_settings()
        logging.getLogger().setLevel(cfg.log_level)
        _log_configuration(cfg)

        owned_client: Optional[CoolifyClient] = None
        relay_platform = platform
        if relay_platform is None:
            owned_client = CoolifyClient(
                token=cfg.coolify_api_key,
                base_url=cfg.api_base_url,
                timeout=cfg.platform_timeout_seconds,
            )
            relay_platform = owned_client

        relay_metrics = metrics or RelayMetrics(registry=CollectorRegistry())
        app.state.metrics = relay_metrics
        app.state.relay = WebhookRelay(
            platform=relay_platform,
            webhook_secret=cfg.webhooks_secret,
            require_signature=cfg.require_signature,
            metrics=relay_metrics,
        )

        logger.info("Deploy relay started successfully")

        yield

        logger.info("Deploy relay shutting down...")
        if owned_client is not None:
            await owned_client.close()
        logger.info("Deploy relay shutdown complete")

    app = FastAPI(
        title="Deploy Relay",
        description="Relays Gitea push webhooks to Coolify deployments",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health():
        """Liveness probe endpoint."""
        return {"status": "healthy"}

    @app.get("/metrics")
    async def metrics_endpoint(request: Request):
        """Prometheus metrics endpoint."""
        relay_metrics: RelayMetrics = request.app.state.metrics
        return Response(
            content=relay_metrics.generate(), media_type=CONTENT_TYPE_LATEST
        )

    async def webhook(request: Request):
        """Gitea webhook receiver.

        Every POST is handled as a push event delivery. Any other method,
        including ones outside the standard set, gets a plain-text 404.
        """
        relay: WebhookRelay = request.app.state.relay
        body = await request.body() if request.method == "POST" else b""

        result = await relay.handle(
            method=request.method,
            content_type=request.headers.get("content-type"),
            body=body,
            signature=request.headers.get(SIGNATURE_HEADER),
        )

        if isinstance(result.body, str):
            return PlainTextResponse(result.body, status_code=result.status_code)
        return JSONResponse(result.body, status_code=result.status_code)

    # Registered without a method list so every method reaches the relay.
    app.add_route("/{path:path}", webhook, include_in_schema=False)

    return app


app = create_app()


def run() -> None:
    """Run the relay with uvicorn using host and port from settings."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
