"""Custom exception hierarchy for the Stock Analysis client.

All scoring-service failures inherit from ServiceRequestError, which carries
contextual information about the endpoint and the HTTP response (if any).
SubmissionRejectedError is separate: it signals a caller bypassing the
admission gate, not a failure of the remote service.
"""


class ServiceRequestError(Exception):
    """Base exception for all scoring-service request failures.

    Attributes:
        endpoint: The endpoint path that failed (e.g., "/analyze").
        http_status: The HTTP status code, if a response was received.
        detail: The server-provided ``detail`` message, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        endpoint: str,
        http_status: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ServiceUnreachableError(ServiceRequestError):
    """Raised when no response was received (connection refused, timeout, DNS)."""


class RateLimitExceededError(ServiceRequestError):
    """Raised when the scoring service rejects a request with HTTP 429."""


class ServerResponseError(ServiceRequestError):
    """Raised on a non-success status or a body that cannot be parsed."""


class UpstreamMisconfiguredError(ServerResponseError):
    """Raised when the service reports that its upstream API key is missing."""


class SubmissionRejectedError(Exception):
    """Raised when a submission is attempted while the admission gate is closed.

    Attributes:
        reason: Why the gate is closed (an ``AdmissionBlock`` value).
    """

    def __init__(self, message: str, *, reason: str) -> None:
        self.reason = reason
        super().__init__(message)
