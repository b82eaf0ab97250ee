"""Service errors for the admin settings and voice sync flows."""

from __future__ import annotations


class ServiceError(Exception):
    """Base error carrying the operation it came from."""

    def __init__(self, message: str, coming_from: str) -> None:
        super().__init__(message)
        self.message = message
        self.coming_from = coming_from

    def format_message(self) -> str:
        return f"{self.coming_from}: {self.message}"

    @classmethod
    def from_error(cls, error: BaseException, coming_from: str) -> ServiceError:
        """Wrap an arbitrary exception, keeping errors of this class as they are."""
        if isinstance(error, cls):
            return error
        return cls(str(error) or type(error).__name__, coming_from)


class PersistenceError(ServiceError):
    """The settings store failed to load or save. Fatal to the whole update."""


class ResolutionError(ServiceError):
    """Listing workspace bindings failed. Abandons the sync, not the save."""


class AgentUpdateError(ServiceError):
    """One agent update call failed. Recorded per agent, never retried here."""

    def __init__(self, message: str, coming_from: str, agent_id: str, status_code: int | None = None) -> None:
        super().__init__(message, coming_from)
        self.agent_id = agent_id
        self.status_code = status_code


class SyncNotFoundError(ServiceError):
    """No sync record exists for the given token."""


class SyncInProgressError(ServiceError):
    """A run for this sync token is still in flight."""
