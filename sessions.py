# sessions.py
# Server-side session records keyed by a cookie-carried id

import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Optional

log = logging.getLogger("toptrack-recs")


class SessionStoreError(Exception):
    """Raised when a store cannot read, write or drop a session."""


# -------------------- Data types --------------------
@dataclass
class SessionRecord:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.access_token)


def new_session_id() -> str:
    return secrets.token_urlsafe(24)


# -------------------- Stores --------------------
class SessionStore:
    """
    Interface the route handlers talk to. Swap the implementation on
    app.state.session_store to move sessions somewhere persistent.
    """

    def get(self, session_id: str) -> Optional[SessionRecord]:
        raise NotImplementedError

    def set(self, session_id: str, record: SessionRecord) -> None:
        raise NotImplementedError

    def delete(self, session_id: str) -> None:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    """Process-wide dict; sessions live until logout or restart."""

    def __init__(self):
        self._records: Dict[str, SessionRecord] = {}

    def get(self, session_id: str) -> Optional[SessionRecord]:
        record = self._records.get(session_id)
        if record is None:
            return None
        # callers mutate and set() back
        return SessionRecord(access_token=record.access_token, refresh_token=record.refresh_token)

    def set(self, session_id: str, record: SessionRecord) -> None:
        if not session_id:
            raise SessionStoreError("Session id must not be empty")
        self._records[session_id] = record
        log.debug(f"Session {session_id[:8]}... stored (authenticated={record.authenticated})")

    def delete(self, session_id: str) -> None:
        try:
            del self._records[session_id]
        except KeyError:
            raise SessionStoreError(f"Unknown session {session_id[:8]}...")
        log.debug(f"Session {session_id[:8]}... destroyed")

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._records
