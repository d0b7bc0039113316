"""
Interview session state.

Holds the mutable state of one interview attempt: the fixed question set,
the progress pointer, and the lifecycle status.
"""

import logging

from interview_guide.sessions.schemas import (
    InterviewQuestion,
    SessionSnapshot,
    SessionStatus,
    StoredAnswer,
    StoredSession,
)

logger = logging.getLogger(__name__)


class InterviewSession:
    """
    Manages the mutable state of an interview session.

    The question list is fixed at construction; answers replace the
    question at their index, and status only ever moves forward.
    """

    def __init__(
        self,
        session_id: str,
        resume_text: str,
        questions: list[InterviewQuestion],
        subject_id: str | None = None,
        current_index: int = 0,
        status: SessionStatus = SessionStatus.CREATED,
    ) -> None:
        """
        Initialize session state.

        Args:
            session_id: Opaque session identifier.
            resume_text: Resume text snapshot captured at creation.
            questions: Ordered questions; re-indexed to their positions.
            subject_id: Owning subject, None for ephemeral sessions.
            current_index: Number of questions fully submitted.
            status: Initial lifecycle status.
        """
        self._session_id = session_id
        self._subject_id = subject_id
        self._resume_text = resume_text
        self._questions: list[InterviewQuestion] = [
            q if q.question_index == i else q.model_copy(update={"question_index": i})
            for i, q in enumerate(questions)
        ]
        self._current_index = max(0, min(current_index, len(self._questions)))
        self._status = status

    @classmethod
    def from_stored(
        cls,
        record: StoredSession,
        answers: list[StoredAnswer],
    ) -> "InterviewSession":
        """
        Rebuild a session from durable records.

        Answer rows are applied in the order given, so the last row for an
        index wins. Rows pointing outside the question list are skipped.

        Args:
            record: Stored session metadata and question list.
            answers: Stored answer rows for the session.

        Returns:
            The reconstructed InterviewSession.
        """
        questions = list(record.questions)
        for row in answers:
            index = row.question_index
            if 0 <= index < len(questions):
                questions[index] = questions[index].with_answer(row.user_answer or "")
            else:
                logger.warning(
                    f"Ignoring stored answer for session {record.session_id} "
                    f"at out-of-range index {index}"
                )

        return cls(
            session_id=record.session_id,
            resume_text=record.resume_text,
            questions=questions,
            subject_id=record.subject_id,
            current_index=record.current_index,
            status=record.status,
        )

    @property
    def session_id(self) -> str:
        """Get the session identifier."""
        return self._session_id

    @property
    def subject_id(self) -> str | None:
        """Get the owning subject identifier."""
        return self._subject_id

    @property
    def resume_text(self) -> str:
        """Get the resume text snapshot."""
        return self._resume_text

    @property
    def questions(self) -> list[InterviewQuestion]:
        """Get all questions."""
        return self._questions.copy()

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_exhausted(self) -> bool:
        """Check if every question has been submitted."""
        return self._current_index >= len(self._questions)

    @property
    def is_persistent(self) -> bool:
        """Check if the session is linked to durable storage."""
        return self._subject_id is not None

    def has_index(self, question_index: int) -> bool:
        return 0 <= question_index < len(self._questions)

    def question_at(self, question_index: int) -> InterviewQuestion:
        return self._questions[question_index]

    @property
    def current_question(self) -> InterviewQuestion | None:
        """Get the question at the progress pointer, or None when exhausted."""
        if self.is_exhausted:
            return None
        return self._questions[self._current_index]

    def record_answer(self, question_index: int, answer: str) -> InterviewQuestion:
        """
        Record an answer at an index, replacing any earlier answer.

        Args:
            question_index: Index of the answered question.
            answer: Answer text, stored verbatim.

        Returns:
            The updated question.
        """
        answered = self._questions[question_index].with_answer(answer)
        self._questions[question_index] = answered
        return answered

    def set_current_index(self, index: int) -> None:
        """Move the progress pointer, clamped to ``[0, total_questions]``."""
        self._current_index = max(0, min(index, len(self._questions)))

    def advance_status(self, status: SessionStatus) -> bool:
        """
        Move the status forward.

        Args:
            status: Target status.

        Returns:
            True if the status changed, False if the target is not ahead.
        """
        if status.rank <= self._status.rank:
            return False
        logger.debug(f"Session {self._session_id}: {self._status.value} -> {status.value}")
        self._status = status
        return True

    def to_snapshot(self) -> SessionSnapshot:
        """Build a read-only snapshot for callers."""
        return SessionSnapshot(
            session_id=self._session_id,
            subject_id=self._subject_id,
            resume_text=self._resume_text,
            total_questions=len(self._questions),
            current_index=self._current_index,
            questions=[q.model_copy(deep=True) for q in self._questions],
            status=self._status,
        )
