"""
Session manager: in-process registry of login sessions.

Handles:
- Admitting a new session after a successful login, with a per-user
  cap (evict the oldest session, or refuse the login when configured)
- Looking sessions up per request, enforcing the idle / absolute timeout
- Logout of a single session, and bulk invalidation per user
- Expiring everything on shutdown

One instance is created by `create_app` and lives on `app.state`.

Concurrency rules:
- `_lock` guards the two indexes (by id, by username).  It is held
  only for dict operations, never across another lock acquisition.
- A per-username lock makes "count active sessions, then admit" atomic,
  so concurrent logins for the same user cannot overshoot the cap.  The
  lock entry is reference counted and dropped once no thread holds it.
- Expired sessions are swept from `create` and `get` at most once per
  `purge_interval`, so abandoned sessions do not pile up.
"""

import enum
import logging
import secrets
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from app.core.exceptions import TooManySessions
from app.services.user_details_service import Authenticatable

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(str, enum.Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    LOGGED_OUT = "LOGGED_OUT"
    EVICTED = "EVICTED"


@dataclass
class LoginSession:
    id: str
    username: str
    authorities: frozenset[str]
    created_at: datetime
    last_seen_at: datetime
    state: SessionState = SessionState.ACTIVE
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def __repr__(self) -> str:
        return f"<LoginSession user={self.username} state={self.state.value}>"


class SessionManager:
    def __init__(
        self,
        *,
        max_sessions: int = 100,
        prevent_login_when_full: bool = False,
        idle_timeout: timedelta = timedelta(minutes=30),
        absolute_timeout: timedelta | None = None,
        purge_interval: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self.prevent_login_when_full = prevent_login_when_full
        self.idle_timeout = idle_timeout
        self.absolute_timeout = absolute_timeout
        self.purge_interval = purge_interval if purge_interval is not None else idle_timeout
        self._clock = clock

        self._lock = threading.Lock()
        self._sessions: dict[str, LoginSession] = {}
        self._by_user: dict[str, list[str]] = {}
        # username -> [lock, number of threads holding or waiting on it]
        self._user_locks: dict[str, list[Any]] = {}
        self._last_purge = clock()

    # ── Internals ────────────────────────────────────────────────────

    @contextmanager
    def _user_lock(self, username: str) -> Iterator[None]:
        with self._lock:
            entry = self._user_locks.get(username)
            if entry is None:
                entry = self._user_locks[username] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._user_locks[username]

    def _maybe_purge(self, now: datetime) -> None:
        with self._lock:
            if now - self._last_purge < self.purge_interval:
                return
            self._last_purge = now
        purged = self.purge_expired()
        if purged:
            logger.debug("Purged %d expired sessions", purged)

    def _is_expired(self, sess: LoginSession, now: datetime) -> bool:
        if now - sess.last_seen_at > self.idle_timeout:
            return True
        if self.absolute_timeout is not None and now - sess.created_at > self.absolute_timeout:
            return True
        return False

    def _remove(self, sess: LoginSession, state: SessionState) -> None:
        """Transition a session out of ACTIVE and drop it from both indexes."""
        with self._lock:
            sess.state = state
            self._sessions.pop(sess.id, None)
            ids = self._by_user.get(sess.username)
            if ids is not None:
                if sess.id in ids:
                    ids.remove(sess.id)
                if not ids:
                    del self._by_user[sess.username]

    def _live_sessions(self, username: str, now: datetime) -> list[LoginSession]:
        """Active sessions for a user, oldest first; expired ones are dropped."""
        with self._lock:
            candidates = [self._sessions[sid] for sid in self._by_user.get(username, [])]
        live: list[LoginSession] = []
        for sess in candidates:
            if self._is_expired(sess, now):
                self._remove(sess, SessionState.EXPIRED)
            else:
                live.append(sess)
        live.sort(key=lambda s: s.created_at)
        return live

    # ── Public API ───────────────────────────────────────────────────

    def create(self, identity: Authenticatable) -> LoginSession:
        """
        Admit a new ACTIVE session for `identity`.

        At the cap, either evict the oldest session(s) or raise
        TooManySessions, depending on `prevent_login_when_full`.
        """
        username = identity.username
        self._maybe_purge(self._clock())
        with self._user_lock(username):
            now = self._clock()
            live = self._live_sessions(username, now)

            if len(live) >= self.max_sessions:
                if self.prevent_login_when_full:
                    logger.warning(
                        "Login refused for %s: %d active sessions (limit %d)",
                        username, len(live), self.max_sessions,
                    )
                    raise TooManySessions(username, self.max_sessions)
                overflow = len(live) - self.max_sessions + 1
                for oldest in live[:overflow]:
                    self._remove(oldest, SessionState.EVICTED)
                    logger.info("Evicted oldest session for %s", username)

            sess = LoginSession(
                id=secrets.token_urlsafe(32),
                username=username,
                authorities=frozenset(identity.authorities),
                created_at=now,
                last_seen_at=now,
            )
            with self._lock:
                self._sessions[sess.id] = sess
                self._by_user.setdefault(username, []).append(sess.id)
        return sess

    def get(self, session_id: str) -> LoginSession | None:
        """Return the ACTIVE session and mark it as seen, or None."""
        now = self._clock()
        self._maybe_purge(now)
        with self._lock:
            sess = self._sessions.get(session_id)
        if sess is None:
            return None
        if self._is_expired(sess, now):
            self._remove(sess, SessionState.EXPIRED)
            logger.debug("Session for %s expired", sess.username)
            return None
        sess.last_seen_at = now
        return sess

    def invalidate(self, session_id: str) -> bool:
        """Log out a single session.  Returns False if it was not active."""
        with self._lock:
            sess = self._sessions.get(session_id)
        if sess is None:
            return False
        self._remove(sess, SessionState.LOGGED_OUT)
        return True

    def active_sessions(self, username: str) -> list[LoginSession]:
        with self._user_lock(username):
            return self._live_sessions(username, self._clock())

    def invalidate_all(self, username: str) -> int:
        """
        Log out every session for a given user.

        Returns the number of sessions affected.
        """
        with self._user_lock(username):
            live = self._live_sessions(username, self._clock())
            for sess in live:
                self._remove(sess, SessionState.LOGGED_OUT)
        return len(live)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            candidates = list(self._sessions.values())
        expired = [s for s in candidates if self._is_expired(s, now)]
        for sess in expired:
            self._remove(sess, SessionState.EXPIRED)
        return len(expired)

    def shutdown(self) -> int:
        """Expire every session (process teardown)."""
        with self._lock:
            remaining = list(self._sessions.values())
        for sess in remaining:
            self._remove(sess, SessionState.EXPIRED)
        logger.info("Session registry cleared (%d sessions expired)", len(remaining))
        return len(remaining)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
