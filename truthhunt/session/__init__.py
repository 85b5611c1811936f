"""
Session Module - Hosting quiz sessions.

A hosted session wraps one GameSession state machine:
- Created in setup when a client asks for one
- Snapshotted on every round advance under its own key
- Restorable by id after a restart while the snapshot is fresh
- Torn down when the client ends it

The sync queue, profile store and remote client are shared by all
sessions in the process.
"""

from .manager import SessionManager, HostedSession, SessionState, snapshot_key

__all__ = [
    "SessionManager",
    "HostedSession",
    "SessionState",
    "snapshot_key",
]
