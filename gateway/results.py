from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ServiceResult:
    success: bool
    message: str = ""
    data: Optional[Any] = None
    # Successful call that found nothing, as opposed to a failure.
    empty: bool = False

    @classmethod
    def from_envelope(cls, envelope, default_message=""):
        """`{status, message, data}` from the backend -> ServiceResult."""
        if not isinstance(envelope, dict):
            return cls(success=False, message=default_message or "Unexpected response from server")

        status = envelope.get("status")
        if isinstance(status, str):
            success = status.lower() in ("success", "true")
        else:
            success = bool(status)

        message = envelope.get("message") or envelope.get("Message")
        if not message:
            message = "" if success else (default_message or "Request failed")
        return cls(success=success, message=message, data=envelope.get("data"))

    @classmethod
    def failure(cls, message):
        return cls(success=False, message=message)

