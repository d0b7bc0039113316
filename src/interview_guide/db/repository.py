"""
Repository pattern for database operations.

Provides a clean abstraction over SQLAlchemy for the session store.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from interview_guide.db.models import Base, InterviewAnswerModel, InterviewSessionModel

T = TypeVar("T", bound=Base)

UNFINISHED_STATUSES = ("CREATED", "IN_PROGRESS")


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository with common CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    @property
    @abstractmethod
    def _model_class(self) -> type[T]:
        """Get the model class for this repository."""
        ...

    async def get_by_id(self, entity_id: Any) -> T | None:
        """
        Get an entity by its primary key.

        Args:
            entity_id: The entity's primary key.

        Returns:
            The entity if found, None otherwise.
        """
        return await self._session.get(self._model_class, entity_id)

    async def create(self, entity: T) -> T:
        """
        Create a new entity.

        Args:
            entity: The entity to create.

        Returns:
            The created entity.
        """
        self._session.add(entity)
        await self._session.flush()
        await self._session.refresh(entity)
        return entity


class InterviewSessionRepository(BaseRepository[InterviewSessionModel]):
    """Repository for interview session rows."""

    @property
    def _model_class(self) -> type[InterviewSessionModel]:
        """Get the model class."""
        return InterviewSessionModel

    async def find_latest_unfinished(self, subject_id: str) -> InterviewSessionModel | None:
        """
        Get the most recent unfinished session for a subject.

        Args:
            subject_id: Subject (resume) identifier.

        Returns:
            The newest CREATED/IN_PROGRESS session, None if there is none.
        """
        stmt = (
            select(InterviewSessionModel)
            .where(InterviewSessionModel.subject_id == subject_id)
            .where(InterviewSessionModel.status.in_(UNFINISHED_STATUSES))
            .order_by(InterviewSessionModel.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_fields(self, session_id: str, **values: Any) -> bool:
        """
        Update columns of a session row.

        Args:
            session_id: Session identifier.
            **values: Column values to set.

        Returns:
            True if a row was updated.
        """
        stmt = (
            update(InterviewSessionModel)
            .where(InterviewSessionModel.session_id == session_id)
            .values(updated_at=datetime.now(timezone.utc), **values)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0


class InterviewAnswerRepository(BaseRepository[InterviewAnswerModel]):
    """Repository for per-question answer rows."""

    @property
    def _model_class(self) -> type[InterviewAnswerModel]:
        """Get the model class."""
        return InterviewAnswerModel

    async def get_by_index(self, session_id: str, question_index: int) -> InterviewAnswerModel | None:
        stmt = select(InterviewAnswerModel).where(
            InterviewAnswerModel.session_id == session_id,
            InterviewAnswerModel.question_index == question_index,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(
        self,
        session_id: str,
        question_index: int,
        question: str,
        category: str | None,
        user_answer: str,
        score: int = 0,
        feedback: str | None = None,
    ) -> InterviewAnswerModel:
        """
        Create or overwrite the answer row for one question.

        Args:
            session_id: Session identifier.
            question_index: Index of the answered question.
            question: Question text.
            category: Question category.
            user_answer: Answer text.
            score: Score placeholder until a report is generated.
            feedback: Optional feedback.

        Returns:
            The created or updated answer row.
        """
        existing = await self.get_by_index(session_id, question_index)
        if existing is not None:
            existing.question = question
            existing.category = category
            existing.user_answer = user_answer
            existing.score = score
            existing.feedback = feedback
            await self._session.flush()
            return existing

        return await self.create(
            InterviewAnswerModel(
                session_id=session_id,
                question_index=question_index,
                question=question,
                category=category,
                user_answer=user_answer,
                score=score,
                feedback=feedback,
            )
        )

    async def list_by_session(self, session_id: str) -> list[InterviewAnswerModel]:
        """
        Get all answer rows of a session ordered by question index.

        Args:
            session_id: Session identifier.

        Returns:
            List of answer rows.
        """
        stmt = (
            select(InterviewAnswerModel)
            .where(InterviewAnswerModel.session_id == session_id)
            .order_by(InterviewAnswerModel.question_index, InterviewAnswerModel.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def apply_scores(
        self,
        session_id: str,
        scores: Iterable[tuple[int, int, str]],
    ) -> int:
        """
        Write evaluation scores onto existing answer rows.

        Args:
            session_id: Session identifier.
            scores: (question_index, score, feedback) tuples.

        Returns:
            Number of rows updated.
        """
        updated = 0
        for question_index, score, feedback in scores:
            row = await self.get_by_index(session_id, question_index)
            if row is None:
                continue
            row.score = score
            row.feedback = feedback
            updated += 1
        await self._session.flush()
        return updated
