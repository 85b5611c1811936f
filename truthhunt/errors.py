"""
Errors - Exception taxonomy for the session engine.

Only InsufficientContent and InvalidTransition ever reach callers of the
state machine. Storage and remote errors are raised by the collaborators
and absorbed by the snapshot store, profile store and sync queue.
"""

from __future__ import annotations


class TruthHuntError(Exception):
    """Base class for engine errors."""


class InsufficientContent(TruthHuntError):
    """Raised when a game is started without enough claims."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Not enough content: {required} round(s) requested, "
            f"{available} claim(s) available"
        )


class InvalidTransition(TruthHuntError):
    """Raised when an operation is not legal in the current phase."""

    def __init__(self, operation: str, phase: str, detail: str = ""):
        self.operation = operation
        self.phase = phase
        message = f"Cannot {operation} while phase is '{phase}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StorageUnavailable(TruthHuntError):
    """Raised by a key-value store that cannot read or write."""


class CorruptOrStaleSnapshot(TruthHuntError):
    """Raised while validating a saved snapshot."""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        super().__init__(f"Snapshot discarded ({reason}){': ' + detail if detail else ''}")


class RemoteWriteFailure(TruthHuntError):
    """Raised by a remote client when a write is rejected."""


class RemoteUnreachable(TruthHuntError):
    """Raised by a remote client when the service cannot be reached."""


class SessionNotFound(TruthHuntError):
    """Raised when a hosted session id is unknown or already ended."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")
