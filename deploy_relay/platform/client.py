"""Coolify API client for application lookup and deployment.

This module provides an async wrapper around the Coolify REST API for:
- Listing configured applications
- Triggering a deployment for one application

Every request carries an explicit timeout. Failures are never retried;
each call raises a single error type so the caller can map it to a
response.

Source:
- deploy_relay/platform/models.py (ApplicationRecord)
- deploy_relay/config.py (coolify_api_url, coolify_api_key)
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx
from pydantic import TypeAdapter, ValidationError

from deploy_relay.errors import DirectoryFetchError, PlatformError, TriggerError
from deploy_relay.platform.models import ApplicationRecord

logger = logging.getLogger(__name__)

_APPLICATION_LIST = TypeAdapter(List[ApplicationRecord])


@runtime_checkable
class DeploymentPlatform(Protocol):
    """Protocol for the deployment platform the relay talks to.

    Implementations list the configured applications and start
    deployments by application identifier.
    """

    async def list_applications(self) -> List[ApplicationRecord]:
        """Fetch the current application directory.

        Raises:
            DirectoryFetchError: If the directory cannot be fetched.
        """
        ...

    async def trigger_deploy(self, uuid: str, force: bool) -> Any:
        """Start a deployment for the application with this uuid.

        Raises:
            TriggerError: If the deployment request fails.
        """
        ...


class CoolifyClient:
    """Async Coolify API client.

    Attributes:
        token: Coolify API token.
        base_url: API root, e.g. https://coolify.example.com/api/v1.
        timeout: Request timeout in seconds.

    Example:
        >>> client = CoolifyClient(token="xxx", base_url="https://c.example/api/v1")
        >>> async with client:
        ...     apps = await client.list_applications()
    """

    def __init__(
        self,
        token: str,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Coolify client.

        Args:
            token: Coolify API token for authentication.
            base_url: Coolify API root including /api/v1.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
            "User-Agent": "deploy-relay/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CoolifyClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Make a single HTTP request against the Coolify API.

        Args:
            method: HTTP method.
            path: API path relative to base_url.
            params: Optional query parameters.

        Returns:
            The successful HTTP response.

        Raises:
            PlatformError: On timeout, network failure, or non-2xx status.
        """
        try:
            response = await self.client.request(method, path, params=params)
        except httpx.TimeoutException as e:
            logger.error(
                "Coolify API request timed out",
                extra={"path": path, "method": method, "timeout": self.timeout},
            )
            raise PlatformError(
                f"Coolify API request timed out: {e}",
                request_url=f"{self.base_url}{path}",
            ) from e
        except httpx.RequestError as e:
            logger.error(
                "Coolify API request failed",
                extra={"path": path, "method": method, "error": str(e)},
            )
            raise PlatformError(
                f"Coolify API request failed: {e}",
                request_url=f"{self.base_url}{path}",
            ) from e

        if not response.is_success:
            error_body = response.text
            logger.error(
                "Coolify API error",
                extra={
                    "status_code": response.status_code,
                    "path": path,
                    "method": method,
                    "response_body": error_body[:500],
                },
            )
            raise PlatformError(
                f"HTTP error! status: {response.status_code} - "
                f"{response.reason_phrase}",
                status_code=response.status_code,
                response_body=error_body,
                request_url=str(response.url),
            )

        return response

    async def list_applications(self) -> List[ApplicationRecord]:
        """List all applications configured in Coolify.

        Returns:
            Application records in the order Coolify returned them.

        Raises:
            DirectoryFetchError: On any request failure or malformed body.
        """
        path = "/applications"
        try:
            response = await self._request("GET", path)
        except PlatformError as e:
            raise DirectoryFetchError(
                e.message,
                status_code=e.status_code,
                response_body=e.response_body,
                request_url=e.request_url,
            ) from e

        try:
            applications = _APPLICATION_LIST.validate_json(response.content)
        except ValidationError as e:
            logger.error(
                "Malformed application list from Coolify",
                extra={"path": path, "errors": e.error_count()},
            )
            raise DirectoryFetchError(
                "Malformed application list",
                status_code=response.status_code,
                response_body=response.text[:500],
                request_url=str(response.url),
            ) from e

        logger.debug("Fetched %d applications from Coolify", len(applications))
        return applications

    async def trigger_deploy(self, uuid: str, force: bool = False) -> Any:
        """Trigger a deployment for one application.

        Args:
            uuid: Coolify application uuid.
            force: Request a forced rebuild.

        Returns:
            The decoded JSON response body, or None if it is empty.

        Raises:
            TriggerError: On any request failure.
        """
        params = {"uuid": uuid, "force": "true" if force else "false"}
        try:
            response = await self._request("POST", "/deploy", params=params)
        except PlatformError as e:
            raise TriggerError(
                e.message,
                status_code=e.status_code,
                response_body=e.response_body,
                request_url=e.request_url,
            ) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TriggerError(
                "Malformed deploy response",
                status_code=response.status_code,
                response_body=response.text[:500],
                request_url=str(response.url),
            ) from e
