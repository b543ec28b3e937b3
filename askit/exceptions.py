"""Domain exception hierarchy for the askit host/guest bridge."""

from __future__ import annotations


class AskitError(RuntimeError):
    """Base class for all bridge-level errors."""


class MissingRequestIdError(AskitError, ValueError):
    """Raised when a correlated request is sent without a ``requestId``."""


class DuplicateRequestError(AskitError, ValueError):
    """Raised when a ``requestId`` is reused while the first call is still pending."""


class RequestTimeoutError(AskitError, TimeoutError):
    """Raised when no response arrives before the request deadline."""

    def __init__(self, request_event: str, response_event: str, request_id: str) -> None:
        self.request_event = request_event
        self.response_event = response_event
        self.request_id = request_id
        super().__init__(
            f"Timeout: {request_event} -> {response_event} (ID: {request_id})"
        )


class RequestCancelledError(AskitError):
    """Raised in the awaiting caller when a pending request is cancelled early."""


class ManifestError(AskitError):
    """Raised when a guest manifest cannot be read or validated."""


class ConfigValidationError(AskitError):
    """Raised when configuration cannot be validated safely."""


class InvalidPayloadError(AskitError, ValueError):
    """Raised by a module handler when call arguments do not fit the method."""

    def __init__(self, module: str, method: str, reason: str) -> None:
        self.module = module
        self.method = method
        self.reason = reason
        super().__init__(f"{module}:{method}: {reason}")
