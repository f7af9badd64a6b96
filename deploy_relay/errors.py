"""Error taxonomy for the deploy relay.

Request errors carry the HTTP status and the short public message returned
to the webhook sender. Platform errors carry upstream details that are
logged but never echoed back to the caller.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for errors that end a webhook request.

    Attributes:
        message: Machine-readable error string returned to the caller.
        status_code: HTTP status code of the response.
    """

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ClientInputError(RelayError):
    """Bad content type, unparsable JSON, or missing event fields."""

    status_code = 400


class AuthenticationError(RelayError):
    """Webhook signature mismatch."""

    status_code = 403


class NotFoundError(RelayError):
    """No application matches the event's repository and branch."""

    status_code = 404


class UpstreamError(RelayError):
    """The deployment platform failed to list applications or deploy."""

    status_code = 500


class PlatformError(Exception):
    """Raised when a deployment platform API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response, if any.
        response_body: Response body from the platform, if any.
        request_url: The URL that was requested.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)


class DirectoryFetchError(PlatformError):
    """Listing applications failed (status, network, or malformed body)."""


class TriggerError(PlatformError):
    """Starting a deployment failed (status or network)."""
