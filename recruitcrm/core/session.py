"""
Idle-session tracking.

Each signed-in session owns an idle timer. Any activity event restarts the
countdown; once the window passes without activity the session is signed out
and further requests are rejected.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

IDLE_TIMEOUT = timedelta(hours=2)

# Client input events plus authenticated API requests
ACTIVITY_EVENTS = frozenset({
    "mousedown",
    "mousemove",
    "keypress",
    "scroll",
    "touchstart",
    "click",
    "keydown",
    "request",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdleTimer:
    """Countdown that restarts on every activity."""

    def __init__(self, timeout: timedelta = IDLE_TIMEOUT, clock: Callable[[], datetime] = _utcnow):
        self.timeout = timeout
        self._clock = clock
        self.last_activity = clock()

    def reset(self) -> None:
        self.last_activity = self._clock()

    def remaining(self) -> timedelta:
        left = self.last_activity + self.timeout - self._clock()
        return max(left, timedelta(0))

    def expired(self) -> bool:
        return self._clock() - self.last_activity >= self.timeout


class SessionRegistry:
    """In-process table of live sessions keyed by session id."""

    def __init__(self, timeout: timedelta = IDLE_TIMEOUT, clock: Callable[[], datetime] = _utcnow):
        self.timeout = timeout
        self._clock = clock
        self._sessions: dict[str, tuple[str, IdleTimer]] = {}

    def start(self, email: str) -> str:
        self.prune()
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = (email, IdleTimer(self.timeout, self._clock))
        return session_id

    def end(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def owner(self, session_id: str) -> Optional[str]:
        entry = self._sessions.get(session_id)
        return entry[0] if entry else None

    def touch(self, session_id: str, event: str = "request") -> bool:
        """
        Register activity for a session.

        Returns False when the session is unknown or has idled out; an idled
        out session is signed out as a side effect. Events outside
        ACTIVITY_EVENTS keep the session alive without restarting its timer.
        """
        entry = self._sessions.get(session_id)
        if entry is None:
            return False

        timer = entry[1]
        if timer.expired():
            self.end(session_id)
            return False

        if event in ACTIVITY_EVENTS:
            timer.reset()
        return True

    def active(self, session_id: str) -> bool:
        """True while the session exists and has not idled out; does not count as activity."""
        entry = self._sessions.get(session_id)
        if entry is None:
            return False
        if entry[1].expired():
            self.end(session_id)
            return False
        return True

    def prune(self) -> int:
        """Drop idled-out sessions whose owners never came back; returns how many."""
        expired = [sid for sid, (_, timer) in self._sessions.items() if timer.expired()]
        for session_id in expired:
            self.end(session_id)
        return len(expired)

    def remaining(self, session_id: str) -> timedelta:
        entry = self._sessions.get(session_id)
        if entry is None:
            return timedelta(0)
        return entry[1].remaining()

    def end_all_for(self, email: str) -> None:
        for session_id in [sid for sid, (owner, _) in self._sessions.items() if owner == email]:
            self.end(session_id)


sessions = SessionRegistry()
