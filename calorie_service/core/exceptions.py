from typing import Any, Optional


class CalorieServiceError(Exception):
    """Base class for errors raised by the service"""


class ConfigurationError(CalorieServiceError):
    """Required configuration (e.g. the provider credential) is missing"""


class ProviderError(CalorieServiceError):
    """
    The LLM provider call failed.

    ``status_code`` is None for transport failures (connection refused,
    timeout) where no HTTP response was received.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        provider_error: Optional[str] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason
        self.provider_error = provider_error
        self.details = details

    def to_event_payload(self) -> dict:
        status = " ".join(str(part) for part in (self.status_code, self.reason) if part)
        error = f"Provider error {status}" if status else f"Provider error: {self.message}"
        return {
            "type": "error",
            "error": error,
            "providerError": self.provider_error,
            "details": self.details,
        }


class ToolExecutionError(CalorieServiceError):
    """A tool call could not be carried out; the message is shown to the model"""


class NotFoundError(ToolExecutionError):
    """A record referenced by a tool call does not exist for this user"""
