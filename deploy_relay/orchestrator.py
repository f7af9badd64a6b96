"""Webhook relay orchestrator.

Drives one inbound webhook request through the relay:
method check → content type → signature → payload → identity →
application directory → match → deploy trigger → response.

Each stage either hands its result to the next one or raises a
RelayError carrying the HTTP status and public message. Errors are
converted to responses at a single boundary in handle(), so nothing
propagates past the request.

Source:
- deploy_relay/webhook/signature.py (verify_signature)
- deploy_relay/webhook/handler.py (decode_payload, extract_repo_info)
- deploy_relay/platform/client.py (DeploymentPlatform)
- deploy_relay/matching.py (find_matching_application)
- deploy_relay/metrics.py (RelayMetrics)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from deploy_relay.errors import (
    AuthenticationError,
    ClientInputError,
    DirectoryFetchError,
    NotFoundError,
    RelayError,
    TriggerError,
    UpstreamError,
)
from deploy_relay.matching import find_matching_application
from deploy_relay.metrics import RelayMetrics
from deploy_relay.platform.client import DeploymentPlatform
from deploy_relay.platform.models import ApplicationRecord
from deploy_relay.webhook.handler import decode_payload, extract_repo_info
from deploy_relay.webhook.models import RepositoryIdentity, SignedEnvelope
from deploy_relay.webhook.signature import verify_signature

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

# Deploys are never forced; Coolify skips the rebuild when nothing changed
FORCE_DEPLOY = False

SUCCESS_MESSAGE = "Deployment triggered successfully"
INTERNAL_ERROR_MESSAGE = "Internal Server Error"

_OUTCOME_BY_STATUS = {
    400: "bad_request",
    403: "forbidden",
    404: "not_found",
    500: "upstream_error",
}


@dataclass
class RelayResponse:
    """Status and body the HTTP layer sends back to the webhook sender.

    A dict body is sent as JSON; a str body is sent as plain text.
    """

    status_code: int
    body: Union[Dict[str, Any], str] = field(default_factory=dict)

    @classmethod
    def error(cls, status_code: int, message: str) -> "RelayResponse":
        return cls(status_code=status_code, body={"error": message})


def is_json_content_type(content_type: Optional[str]) -> bool:
    """Check whether a Content-Type header names application/json.

    The whole header value is compared case-insensitively, so parameters
    such as "; charset=utf-8" make it a mismatch.
    """
    if not content_type:
        return False
    return content_type.lower() == JSON_CONTENT_TYPE


class WebhookRelay:
    """Relays verified Gitea push events to Coolify deployments.

    Accepts its dependencies via constructor injection and keeps no
    per-request state on the instance, so one relay serves concurrent
    requests.

    Attributes:
        platform: Deployment platform used for lookup and deploys.
        webhook_secret: Default secret for signature verification.
        require_signature: Reject requests without a signature header.
        metrics: Prometheus metrics for request outcomes.
    """

    def __init__(
        self,
        platform: DeploymentPlatform,
        webhook_secret: str,
        require_signature: bool = False,
        metrics: Optional[RelayMetrics] = None,
    ):
        self.platform = platform
        self.webhook_secret = webhook_secret
        self.require_signature = require_signature
        self.metrics = metrics

    async def handle(
        self,
        method: str,
        content_type: Optional[str],
        body: bytes,
        signature: Optional[str] = None,
    ) -> RelayResponse:
        """Handle one inbound webhook request.

        Args:
            method: HTTP method of the request.
            content_type: Value of the Content-Type header, if any.
            body: Raw request body.
            signature: Value of the x-gitea-signature header, if any.

        Returns:
            RelayResponse describing the HTTP response to send.
        """
        if method.upper() != "POST":
            self._record("method_not_allowed")
            return RelayResponse(status_code=404, body="Not Found")

        try:
            self._check_content_type(content_type)
            envelope = SignedEnvelope(body=body, signature=signature)
            self._verify(envelope)
            identity = self._extract_identity(envelope.body)
            applications = await self._fetch_directory()
            application = self._match(applications, identity)
            await self._trigger(application)
        except RelayError as e:
            self._record(_OUTCOME_BY_STATUS.get(e.status_code, "upstream_error"))
            return RelayResponse.error(e.status_code, e.message)
        except Exception:
            logger.exception("Unexpected error processing webhook")
            self._record("upstream_error")
            return RelayResponse.error(500, INTERNAL_ERROR_MESSAGE)

        self._record("deployed")
        return RelayResponse(status_code=200, body={"message": SUCCESS_MESSAGE})

    def _check_content_type(self, content_type: Optional[str]) -> None:
        if not is_json_content_type(content_type):
            raise ClientInputError("Content-Type must be application/json")

    def _verify(self, envelope: SignedEnvelope) -> None:
        """Verify the envelope signature, or note that it was skipped."""
        if not envelope.is_signed:
            if self.require_signature:
                logger.warning("Rejected webhook without signature header")
                raise AuthenticationError("Invalid signature")
            logger.warning(
                "Webhook has no signature header; processing without verification"
            )
            return

        try:
            valid = verify_signature(
                envelope.body, envelope.signature, self.webhook_secret
            )
        except ValueError as e:
            logger.warning("Error parsing JSON: %s", e)
            raise ClientInputError("Invalid JSON") from e

        if not valid:
            logger.warning("Invalid HMAC signature")
            raise AuthenticationError("Invalid signature")

    def _extract_identity(self, body: bytes) -> RepositoryIdentity:
        payload = decode_payload(body)
        identity = extract_repo_info(payload)
        if identity is None:
            raise ClientInputError("Missing repository name or branch")

        logger.info(
            "Push event received",
            extra={
                "repository": identity.repository_full_name,
                "branch": identity.branch,
            },
        )
        return identity

    async def _fetch_directory(self) -> list[ApplicationRecord]:
        try:
            applications = await self.platform.list_applications()
        except DirectoryFetchError as e:
            logger.error(
                "Error fetching application list: %s",
                e.message,
                extra={"status_code": e.status_code, "url": e.request_url},
            )
            raise UpstreamError(INTERNAL_ERROR_MESSAGE) from e

        if self.metrics is not None:
            self.metrics.set_directory_size(len(applications))
        return applications

    def _match(
        self,
        applications: list[ApplicationRecord],
        identity: RepositoryIdentity,
    ) -> ApplicationRecord:
        application = find_matching_application(
            applications, identity.repository_full_name, identity.branch
        )
        if application is None:
            logger.info(
                "No matching repository and branch found in the application list",
                extra={
                    "repository": identity.repository_full_name,
                    "branch": identity.branch,
                    "applications": len(applications),
                },
            )
            raise NotFoundError("No matching repository and branch")

        logger.info(
            "Match found",
            extra={
                "uuid": application.uuid,
                "repository": application.git_repository,
                "branch": identity.branch,
            },
        )
        return application

    async def _trigger(self, application: ApplicationRecord) -> Any:
        started = time.monotonic()
        try:
            result = await self.platform.trigger_deploy(
                application.uuid, FORCE_DEPLOY
            )
        except TriggerError as e:
            logger.error(
                "Error triggering deployment: %s",
                e.message,
                extra={
                    "uuid": application.uuid,
                    "status_code": e.status_code,
                    "url": e.request_url,
                },
            )
            raise UpstreamError(INTERNAL_ERROR_MESSAGE) from e
        finally:
            if self.metrics is not None:
                self.metrics.record_deploy_duration(time.monotonic() - started)

        logger.info("Deployment triggered", extra={"uuid": application.uuid})
        return result

    def _record(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_outcome(outcome)
