"""
Interview session lifecycle.

Creates, resumes, progresses, completes and evaluates interview sessions.
The in-memory cache is the system of record while the process lives; every
mutation is mirrored to the durable store on a best-effort basis, and
sessions missing from memory are rebuilt from the store on demand.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from uuid import uuid4

from interview_guide.config import Settings, get_settings
from interview_guide.sessions.errors import (
    AlreadyCompletedError,
    EvaluationFailedError,
    GenerationFailedError,
    InterviewError,
    InterviewNotCompletedError,
    InvalidQuestionIndexError,
    SessionNotFoundError,
)
from interview_guide.sessions.schemas import (
    InterviewQuestion,
    InterviewReport,
    SessionSnapshot,
    SessionStatus,
    StoredSession,
    SubmitAnswerResponse,
)
from interview_guide.sessions.session_cache import SessionCache
from interview_guide.sessions.session_state import InterviewSession

if TYPE_CHECKING:
    from interview_guide.agents.evaluator import EvaluatorBase
    from interview_guide.agents.question_generator import QuestionGeneratorBase
    from interview_guide.db.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


class SessionLifecycle:
    """
    Orchestrates the lifecycle of mock interview sessions.

    Mutations of one session are serialized through a per-session lock, and
    session creation is serialized per subject within this process. Two
    processes sharing a store can still both create a session for the same
    subject; the store has no uniqueness constraint on unfinished sessions.
    """

    def __init__(
        self,
        question_generator: QuestionGeneratorBase,
        evaluator: EvaluatorBase,
        persistence: PersistenceGateway | None = None,
        cache: SessionCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize the session lifecycle.

        Args:
            question_generator: Produces the question set of new sessions.
            evaluator: Produces reports for completed sessions.
            persistence: Durable store. Without one, sessions are memory-only.
            cache: Session cache to share. Creates a private one if None.
            settings: Application settings (uses config if not provided).
        """
        self._question_generator = question_generator
        self._evaluator = evaluator
        self._persistence = persistence
        self._cache = cache or SessionCache()
        self._settings = settings or get_settings()
        self._subject_locks: dict[str, asyncio.Lock] = {}
        self._subject_waiters: dict[str, int] = {}

    @property
    def cache(self) -> SessionCache:
        """Get the session cache."""
        return self._cache

    async def create_or_resume(
        self,
        resume_text: str,
        question_count: int | None = None,
        subject_id: str | None = None,
    ) -> SessionSnapshot:
        """
        Resume the subject's unfinished session, or create a new one.

        Args:
            resume_text: Resume text; snapshotted into new sessions.
            question_count: Number of questions (uses config default if None).
            subject_id: Owning subject. Sessions without one are memory-only.

        Returns:
            Snapshot of the resumed or newly created session.

        Raises:
            ValueError: If question_count is out of range.
            GenerationFailedError: If the questions could not be generated.
        """
        count = question_count if question_count is not None else self._settings.default_question_count
        if not 1 <= count <= self._settings.max_question_count:
            raise ValueError(
                f"question_count must be between 1 and {self._settings.max_question_count}, got {count}"
            )

        if subject_id is None:
            session = await self._create_session(resume_text, count, None)
            return session.to_snapshot()

        async with self._subject_lock(subject_id):
            existing = await self._find_unfinished(subject_id)
            if existing is not None:
                logger.info(
                    f"Resuming unfinished session {existing.session_id} for subject {subject_id}"
                )
                return existing.to_snapshot()
            session = await self._create_session(resume_text, count, subject_id)
            return session.to_snapshot()

    async def get_session(self, session_id: str) -> SessionSnapshot:
        """
        Get a snapshot of a session, restoring it from the store if needed.

        Raises:
            SessionNotFoundError: If the session exists neither in memory nor in the store.
        """
        session = await self._get_or_restore(session_id)
        return session.to_snapshot()

    async def find_unfinished_session(self, subject_id: str) -> SessionSnapshot | None:
        """
        Find the subject's unfinished session without creating one.

        Args:
            subject_id: Subject identifier.

        Returns:
            Snapshot of the CREATED/IN_PROGRESS session, None if there is none.
        """
        session = await self._find_unfinished(subject_id)
        return session.to_snapshot() if session else None

    async def get_current_question(self, session_id: str) -> InterviewQuestion | None:
        """
        Get the question at the progress pointer.

        The first call on a CREATED session marks it IN_PROGRESS.

        Returns:
            The current question, or None when every question was submitted.
        """
        session = await self._get_or_restore(session_id)
        async with self._cache.lock_for(session_id):
            question = session.current_question
            if question is None:
                return None

            if session.advance_status(SessionStatus.IN_PROGRESS):
                await self._mirror(
                    session,
                    "status",
                    lambda: self._persistence.update_session_status(session_id, SessionStatus.IN_PROGRESS),
                )
            return question.model_copy(deep=True)

    async def submit_answer(
        self,
        session_id: str,
        question_index: int,
        answer: str,
    ) -> SubmitAnswerResponse:
        """
        Record an answer and move the progress pointer past it.

        The pointer becomes ``question_index + 1`` whatever its previous value,
        so submitting an earlier index moves progress back to that point.

        Raises:
            SessionNotFoundError: If the session cannot be found.
            InvalidQuestionIndexError: If question_index is out of range.
        """
        session = await self._get_or_restore(session_id)
        async with self._cache.lock_for(session_id):
            self._check_index(session, question_index)

            question = session.record_answer(question_index, answer)
            session.set_current_index(question_index + 1)
            if session.is_exhausted:
                session.advance_status(SessionStatus.COMPLETED)
            else:
                session.advance_status(SessionStatus.IN_PROGRESS)

            current_index = session.current_index
            status = session.status
            await self._mirror(
                session,
                "answer",
                lambda: self._persistence.save_answer(
                    session_id,
                    question_index,
                    question.question,
                    question.category,
                    answer,
                    0,
                ),
                lambda: self._persistence.update_current_question_index(session_id, current_index),
                lambda: self._persistence.update_session_status(session_id, status),
            )

            next_question = session.current_question
            logger.info(
                f"Session {session_id} submitted answer {question_index}, "
                f"{session.total_questions - current_index} remaining"
            )
            return SubmitAnswerResponse(
                has_next=next_question is not None,
                next_question=next_question.model_copy(deep=True) if next_question else None,
                current_index=current_index,
                total_questions=session.total_questions,
            )

    async def save_answer(self, session_id: str, question_index: int, answer: str) -> None:
        """
        Save a draft answer without moving the progress pointer.

        Raises:
            SessionNotFoundError: If the session cannot be found.
            InvalidQuestionIndexError: If question_index is out of range.
        """
        session = await self._get_or_restore(session_id)
        async with self._cache.lock_for(session_id):
            self._check_index(session, question_index)

            question = session.record_answer(question_index, answer)
            session.advance_status(SessionStatus.IN_PROGRESS)

            status = session.status
            await self._mirror(
                session,
                "draft answer",
                lambda: self._persistence.save_answer(
                    session_id,
                    question_index,
                    question.question,
                    question.category,
                    answer,
                    0,
                ),
                lambda: self._persistence.update_session_status(session_id, status),
            )
            logger.info(f"Session {session_id} saved draft answer {question_index}")

    async def complete_early(self, session_id: str) -> None:
        """
        End an interview before every question was submitted.

        Unanswered questions stay unanswered.

        Raises:
            SessionNotFoundError: If the session cannot be found.
            AlreadyCompletedError: If the session is already COMPLETED or EVALUATED.
        """
        session = await self._get_or_restore(session_id)
        async with self._cache.lock_for(session_id):
            if session.status.is_finished:
                raise AlreadyCompletedError(session_id)

            session.advance_status(SessionStatus.COMPLETED)
            await self._mirror(
                session,
                "status",
                lambda: self._persistence.update_session_status(session_id, SessionStatus.COMPLETED),
            )
            logger.info(
                f"Session {session_id} completed early at {session.current_index}/{session.total_questions}"
            )

    async def generate_report(self, session_id: str) -> InterviewReport:
        """
        Evaluate a completed session and mark it EVALUATED.

        May be called again on an EVALUATED session; each call re-runs the
        evaluator and may return a different report.

        Raises:
            SessionNotFoundError: If the session cannot be found.
            InterviewNotCompletedError: If the session is not COMPLETED or EVALUATED.
            EvaluationFailedError: If the evaluator fails.
        """
        session = await self._get_or_restore(session_id)
        if not session.status.is_finished:
            raise InterviewNotCompletedError(session_id)

        logger.info(f"Generating report for session {session_id}")
        try:
            questions = session.to_snapshot().questions
            report = await self._evaluator.evaluate(session_id, session.resume_text, questions)
        except InterviewError:
            raise
        except Exception as e:
            raise EvaluationFailedError(f"Evaluation failed for session {session_id}: {e}", session_id) from e

        async with self._cache.lock_for(session_id):
            session.advance_status(SessionStatus.EVALUATED)
            await self._mirror(
                session,
                "report",
                lambda: self._persistence.save_report(session_id, report),
            )
        return report

    @asynccontextmanager
    async def _subject_lock(self, subject_id: str) -> AsyncIterator[None]:
        """Hold the creation lock of a subject; the lock is dropped once no caller needs it."""
        lock = self._subject_locks.setdefault(subject_id, asyncio.Lock())
        self._subject_waiters[subject_id] = self._subject_waiters.get(subject_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._subject_waiters[subject_id] -= 1
            if not self._subject_waiters[subject_id]:
                del self._subject_waiters[subject_id]
                del self._subject_locks[subject_id]

    async def _create_session(
        self,
        resume_text: str,
        question_count: int,
        subject_id: str | None,
    ) -> InterviewSession:
        """Generate questions, cache a new session, and persist it best-effort."""
        session_id = uuid4().hex[: self._settings.session_id_length]
        logger.info(
            f"Creating interview session {session_id}: {question_count} questions, subject {subject_id}"
        )

        try:
            questions = await self._question_generator.generate(resume_text, question_count)
        except InterviewError:
            raise
        except Exception as e:
            raise GenerationFailedError(f"Question generation failed: {e}") from e

        if len(questions) < question_count:
            raise GenerationFailedError(
                f"Question generation returned {len(questions)} of {question_count} questions"
            )

        session = InterviewSession(
            session_id=session_id,
            resume_text=resume_text,
            questions=questions[:question_count],
            subject_id=subject_id,
        )
        self._cache.put(session_id, session)

        snapshot = session.questions
        await self._mirror(
            session,
            "new session",
            lambda: self._persistence.save_session(
                session_id, subject_id, resume_text, question_count, snapshot
            ),
        )
        return session

    async def _find_unfinished(self, subject_id: str) -> InterviewSession | None:
        """
        Look up the subject's unfinished session, store first, then memory.

        A live cached object for the stored id takes precedence over the
        stored record, and is only returned while it is itself unfinished.
        When the store has no match, is unavailable, or is absent, the cache
        is searched for an unfinished session of the subject.
        """
        if self._persistence is not None:
            try:
                record = await self._persistence.find_unfinished_session(subject_id)
                if record is not None:
                    session = self._cache.get(record.session_id)
                    if session is None:
                        session = self._cache.put_if_absent(record.session_id, await self._restore(record))
                    if session.status.is_unfinished:
                        return session
            except Exception as e:
                logger.error(
                    f"Failed to recover unfinished session for subject {subject_id}: {e}",
                    exc_info=True,
                )

        return self._cache.find_unfinished(subject_id)

    async def _get_or_restore(self, session_id: str) -> InterviewSession:
        """
        Get a live session from the cache, rebuilding it from the store on a miss.

        Raises:
            SessionNotFoundError: If the session is in neither place, or the store read fails.
        """
        session = self._cache.get(session_id)
        if session is not None:
            return session

        if self._persistence is None:
            raise SessionNotFoundError(session_id)

        try:
            record = await self._persistence.find_by_session_id(session_id)
            restored = await self._restore(record) if record is not None else None
        except Exception as e:
            logger.error(f"Failed to restore session {session_id} from store: {e}", exc_info=True)
            raise SessionNotFoundError(session_id) from e

        if restored is None:
            raise SessionNotFoundError(session_id)
        return self._cache.put_if_absent(session_id, restored)

    async def _restore(self, record: StoredSession) -> InterviewSession:
        """Rebuild a session from its stored record and answer rows."""
        answers = await self._persistence.find_answers_by_session_id(record.session_id)
        session = InterviewSession.from_stored(record, answers)
        logger.info(
            f"Restored session {record.session_id} from store: "
            f"current_index={session.current_index}, status={session.status.value}"
        )
        return session

    @staticmethod
    def _check_index(session: InterviewSession, question_index: int) -> None:
        if not session.has_index(question_index):
            raise InvalidQuestionIndexError(session.session_id, question_index, session.total_questions)

    async def _mirror(
        self,
        session: InterviewSession,
        what: str,
        *writes: Callable[[], Awaitable[None]],
    ) -> bool:
        """
        Run store writes for a session, logging and swallowing failures.

        Sessions without a subject, or a lifecycle without a store, skip
        persistence entirely.

        Returns:
            True if every write succeeded.
        """
        if self._persistence is None or not session.is_persistent:
            return False

        try:
            for write in writes:
                await write()
        except Exception as e:
            logger.warning(f"Failed to persist {what} for session {session.session_id}: {e}")
            return False
        return True
