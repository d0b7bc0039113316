"""
Process-local session cache.

Maps session identifiers to live InterviewSession objects. Entries live
for the lifetime of the process: there is no expiry or size bound, so the
cache only suits a single-process deployment backed by the durable store.
"""

import asyncio
import logging
from threading import Lock

from interview_guide.sessions.session_state import InterviewSession

logger = logging.getLogger(__name__)


class SessionCache:
    """Concurrency-safe mapping from session identifier to live session state."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._sessions: dict[str, InterviewSession] = {}
        self._session_locks: dict[str, asyncio.Lock] = {}

    def get(self, session_id: str) -> InterviewSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def put(self, session_id: str, session: InterviewSession) -> None:
        """Insert or overwrite the entry for ``session_id`` (last writer wins)."""
        with self._lock:
            self._sessions[session_id] = session

    def put_if_absent(self, session_id: str, session: InterviewSession) -> InterviewSession:
        """
        Insert ``session`` unless an entry already exists.

        Args:
            session_id: Session identifier.
            session: Candidate object to cache.

        Returns:
            The object that is cached after the call.
        """
        with self._lock:
            existing = self._sessions.setdefault(session_id, session)
        if existing is not session:
            logger.debug(f"Session {session_id} already cached; discarding duplicate restore")
        return existing

    def find_unfinished(self, subject_id: str) -> InterviewSession | None:
        """
        Get the most recently cached CREATED/IN_PROGRESS session of a subject.

        Args:
            subject_id: Subject identifier.

        Returns:
            The live session, None if the subject has no unfinished session in memory.
        """
        with self._lock:
            candidates = list(self._sessions.values())
        for session in reversed(candidates):
            if session.subject_id == subject_id and session.status.is_unfinished:
                return session
        return None

    def evict(self, session_id: str) -> InterviewSession | None:
        """Drop a session from memory; its lock is kept for in-flight callers."""
        with self._lock:
            return self._sessions.pop(session_id, None)

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Get the lock that serializes mutations of one session."""
        with self._lock:
            lock = self._session_locks.get(session_id)
            if lock is None:
                lock = asyncio.Lock()
                self._session_locks[session_id] = lock
            return lock

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
