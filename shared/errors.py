from typing import Any, Dict, Optional


class TranscriptionError(Exception):
    """Base error; carries the HTTP status and JSON envelope for the API."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(TranscriptionError):
    status_code = 400


class ConfigError(TranscriptionError):
    status_code = 500


class UpstreamError(TranscriptionError):
    status_code = 500


class MethodError(TranscriptionError):
    status_code = 405


class ClientNetworkError(TranscriptionError):
    """Raised by the client when a request cannot be completed."""
