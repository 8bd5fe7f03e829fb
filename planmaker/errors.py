"""Error taxonomy. Every message is safe to show to the user as-is."""


class PlanmakerError(Exception):
    """Base class for all planmaker errors."""


class ConfigError(PlanmakerError, ValueError):
    """A required setting is missing or malformed."""


class LocalValidationError(PlanmakerError, ValueError):
    """Answers are incomplete. Raised before any network activity."""

    def __init__(self, message: str, result: dict | None = None):
        super().__init__(message)
        self.result = result


class InputFormatError(PlanmakerError, ValueError):
    """Malformed identifier, pagination limit or polling parameter."""


class RemoteRequestError(PlanmakerError):
    """The service answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DebugDisabledError(RemoteRequestError):
    """HTTP 403 from the clarifier debug endpoint."""


class NetworkError(PlanmakerError):
    """The transport call failed before any response was obtained."""


class PollingExhaustedError(PlanmakerError, TimeoutError):
    """No terminal status was observed within the attempt budget."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class PollingAbortedError(PlanmakerError):
    """Polling was cancelled through its cancel token."""


class SubmissionInProgressError(PlanmakerError, RuntimeError):
    """A clarification submission for this plan is already in flight."""
