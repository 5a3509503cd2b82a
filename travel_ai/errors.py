"""Error taxonomy shared by the collaborators and the orchestrator.

Collaborators raise these; the orchestrator catches them at its boundary and
turns each one into a single user-facing ``Error(message)`` state.
"""


class TravelAIError(Exception):
    """Base class for every error the pipeline knows how to report."""


# ── Location ─────────────────────────────────────────────────────────────────


class LocationError(TravelAIError):
    pass


class PermissionDeniedError(LocationError):
    def __init__(self, message: str = "User denied location permissions."):
        super().__init__(message)


class LocationUnavailableError(LocationError):
    def __init__(self, message: str = "Location is currently unknown."):
        super().__init__(message)


class LocationTimeoutError(LocationError):
    def __init__(self, message: str = "Timed out waiting for a location fix."):
        super().__init__(message)


# ── Config ───────────────────────────────────────────────────────────────────


class ConfigError(TravelAIError):
    pass


class ConfigFetchFailedError(ConfigError):
    pass


class EmptyKeyError(ConfigError):
    def __init__(self, message: str = "Fetch failed (received API key is null or empty)."):
        super().__init__(message)


# ── Generation ───────────────────────────────────────────────────────────────


class GenerateError(TravelAIError):
    pass


class NotConfiguredError(GenerateError):
    def __init__(self, message: str = "API key is not configured."):
        super().__init__(message)


class HttpStatusError(GenerateError):
    """Non-success HTTP status. Keeps the raw body so some message still reaches the user."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Request failed with status {status_code}: {body}")


class EmptyResponseError(GenerateError):
    def __init__(self, message: str = "Received empty response."):
        super().__init__(message)


class TransportError(GenerateError):
    pass
