"""
Persistence gateway for interview sessions.

Defines the read/write contract the session lifecycle needs from durable
storage and a SQLAlchemy implementation of it. Every gateway call runs in
its own transaction; driver failures surface as PersistenceUnavailableError.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from interview_guide.config import get_settings
from interview_guide.db.models import Base, InterviewSessionModel
from interview_guide.db.repository import InterviewAnswerRepository, InterviewSessionRepository
from interview_guide.sessions.errors import PersistenceUnavailableError
from interview_guide.sessions.schemas import (
    InterviewQuestion,
    InterviewReport,
    SessionStatus,
    StoredAnswer,
    StoredSession,
)

logger = logging.getLogger(__name__)


class PersistenceGateway(ABC):
    """Abstract durable store for interview sessions."""

    @abstractmethod
    async def save_session(
        self,
        session_id: str,
        subject_id: str,
        resume_text: str,
        question_count: int,
        questions: list[InterviewQuestion],
    ) -> None:
        """
        Persist a newly created session.

        Args:
            session_id: Session identifier.
            subject_id: Owning subject.
            resume_text: Resume text snapshot.
            question_count: Number of questions.
            questions: Generated questions (answers are not stored here).
        """
        ...

    @abstractmethod
    async def find_unfinished_session(self, subject_id: str) -> StoredSession | None:
        """Get the most recent CREATED/IN_PROGRESS session of a subject."""
        ...

    @abstractmethod
    async def find_by_session_id(self, session_id: str) -> StoredSession | None:
        """Get a stored session by identifier."""
        ...

    @abstractmethod
    async def save_answer(
        self,
        session_id: str,
        question_index: int,
        question: str,
        category: str | None,
        user_answer: str,
        score: int = 0,
    ) -> None:
        """Create or overwrite the answer row for one question."""
        ...

    @abstractmethod
    async def update_current_question_index(self, session_id: str, current_index: int) -> None:
        """Persist the progress pointer."""
        ...

    @abstractmethod
    async def update_session_status(self, session_id: str, status: SessionStatus) -> None:
        """Persist the lifecycle status."""
        ...

    @abstractmethod
    async def find_answers_by_session_id(self, session_id: str) -> list[StoredAnswer]:
        """Get all answer rows for a session."""
        ...

    @abstractmethod
    async def save_report(self, session_id: str, report: InterviewReport) -> None:
        """Persist a report and mark the session EVALUATED."""
        ...


class SqlAlchemyPersistenceGateway(PersistenceGateway):
    """
    PersistenceGateway backed by SQLAlchemy's async ORM.

    Works with any async driver SQLAlchemy supports; PostgreSQL via asyncpg
    in production and SQLite via aiosqlite in tests.
    """

    def __init__(
        self,
        database_url: str | None = None,
        engine: AsyncEngine | None = None,
        echo: bool | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            database_url: Connection string (uses config if not provided).
            engine: Pre-built engine; takes precedence over database_url.
            echo: Echo SQL statements (uses config if not provided).
        """
        settings = get_settings()
        if engine is None:
            engine = create_async_engine(
                database_url or settings.database_url,
                echo=settings.database_echo if echo is None else echo,
            )
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def init_schema(self) -> None:
        """Create tables that do not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the engine and its connection pool."""
        await self._engine.dispose()

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session, commit on success, and translate driver errors."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            raise PersistenceUnavailableError(f"{operation} failed: {e}") from e

    async def save_session(
        self,
        session_id: str,
        subject_id: str,
        resume_text: str,
        question_count: int,
        questions: list[InterviewQuestion],
    ) -> None:
        async with self._transaction("save_session") as session:
            await InterviewSessionRepository(session).create(
                InterviewSessionModel(
                    session_id=session_id,
                    subject_id=subject_id,
                    resume_text=resume_text,
                    total_questions=question_count,
                    current_question_index=0,
                    status=SessionStatus.CREATED.value,
                    questions_json=[
                        q.model_dump(mode="json", exclude={"user_answer"}) for q in questions
                    ],
                )
            )
        logger.debug(f"Persisted session {session_id} for subject {subject_id}")

    async def find_unfinished_session(self, subject_id: str) -> StoredSession | None:
        async with self._transaction("find_unfinished_session") as session:
            model = await InterviewSessionRepository(session).find_latest_unfinished(subject_id)
            return self._to_stored(model) if model else None

    async def find_by_session_id(self, session_id: str) -> StoredSession | None:
        async with self._transaction("find_by_session_id") as session:
            model = await InterviewSessionRepository(session).get_by_id(session_id)
            return self._to_stored(model) if model else None

    async def save_answer(
        self,
        session_id: str,
        question_index: int,
        question: str,
        category: str | None,
        user_answer: str,
        score: int = 0,
    ) -> None:
        async with self._transaction("save_answer") as session:
            await InterviewAnswerRepository(session).upsert(
                session_id=session_id,
                question_index=question_index,
                question=question,
                category=category,
                user_answer=user_answer,
                score=score,
            )

    async def update_current_question_index(self, session_id: str, current_index: int) -> None:
        async with self._transaction("update_current_question_index") as session:
            updated = await InterviewSessionRepository(session).update_fields(
                session_id, current_question_index=current_index
            )
        if not updated:
            logger.warning(f"No stored session {session_id} to update index on")

    async def update_session_status(self, session_id: str, status: SessionStatus) -> None:
        values: dict[str, object] = {"status": status.value}
        if status == SessionStatus.COMPLETED:
            values["completed_at"] = datetime.now(timezone.utc)
        async with self._transaction("update_session_status") as session:
            updated = await InterviewSessionRepository(session).update_fields(session_id, **values)
        if not updated:
            logger.warning(f"No stored session {session_id} to update status on")

    async def find_answers_by_session_id(self, session_id: str) -> list[StoredAnswer]:
        async with self._transaction("find_answers_by_session_id") as session:
            rows = await InterviewAnswerRepository(session).list_by_session(session_id)
            return [
                StoredAnswer(question_index=row.question_index, user_answer=row.user_answer)
                for row in rows
            ]

    async def save_report(self, session_id: str, report: InterviewReport) -> None:
        async with self._transaction("save_report") as session:
            await InterviewSessionRepository(session).update_fields(
                session_id,
                status=SessionStatus.EVALUATED.value,
                overall_score=report.overall_score,
                overall_feedback=report.overall_feedback,
                report_json=report.model_dump(mode="json"),
                evaluated_at=datetime.now(timezone.utc),
            )
            await InterviewAnswerRepository(session).apply_scores(
                session_id,
                ((d.question_index, d.score, d.feedback) for d in report.question_details),
            )

    def _to_stored(self, model: InterviewSessionModel) -> StoredSession:
        """Convert a session row to a StoredSession record."""
        return StoredSession(
            session_id=model.session_id,
            subject_id=model.subject_id,
            resume_text=model.resume_text or "",
            question_count=model.total_questions,
            questions=[InterviewQuestion.model_validate(q) for q in model.questions_json or []],
            current_index=model.current_question_index,
            status=SessionStatus(model.status),
            created_at=model.created_at,
        )
