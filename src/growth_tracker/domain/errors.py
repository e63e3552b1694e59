"""Error taxonomy shared by services and adapters."""


class GrowthTrackerError(Exception):
    """Base class for tracker errors."""


class ValidationError(GrowthTrackerError, ValueError):
    """Caller-supplied data violates a precondition."""


class RemoteUnavailable(GrowthTrackerError):
    """A remote collaborator failed or rejected the request."""


class RateLimited(RemoteUnavailable):
    """The generative-text collaborator rejected the request as rate limited."""


class MalformedLocalState(GrowthTrackerError):
    """Persisted local state could not be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Malformed local state for {key}: {reason}")
        self.key = key
