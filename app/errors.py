from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base error for the relay; mapped to an HTTP response in app.main."""

    status_code = 500
    error_type = "relay_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message, "type": self.error_type}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(RelayError):
    """Request is missing a required correlation id or is malformed."""

    status_code = 400
    error_type = "validation_error"


class AuthError(RelayError):
    """Exchanging merchant credentials for an access token failed."""

    status_code = 500
    error_type = "auth_error"


class UpstreamError(RelayError):
    """PayPal call failed or answered with an error shape."""

    status_code = 502
    error_type = "upstream_error"

    def __init__(
        self,
        message: str,
        processor_status: Optional[int] = None,
        body: Any = None,
    ):
        details: Dict[str, Any] = {}
        if processor_status is not None:
            details["processor_status"] = processor_status
        if body is not None:
            details["processor_response"] = body
        self.processor_status = processor_status
        super().__init__(message, details)


class PersistenceError(RelayError):
    """PayPal succeeded but recording the transition locally failed."""

    status_code = 500
    error_type = "persistence_error"
