"""
Pydantic schemas for the interview session core.

Defines data models for questions, session snapshots, answer submission,
evaluation reports, and the records exchanged with the durable store.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def _now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """Lifecycle status of an interview session."""

    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    EVALUATED = "EVALUATED"

    @property
    def rank(self) -> int:
        """Position in the forward-only status order."""
        return _STATUS_ORDER.index(self)

    @property
    def is_unfinished(self) -> bool:
        """Check if the session can still take answers and progress."""
        return self in (SessionStatus.CREATED, SessionStatus.IN_PROGRESS)

    @property
    def is_finished(self) -> bool:
        """Check if the session is completed or evaluated."""
        return self in (SessionStatus.COMPLETED, SessionStatus.EVALUATED)


_STATUS_ORDER = [
    SessionStatus.CREATED,
    SessionStatus.IN_PROGRESS,
    SessionStatus.COMPLETED,
    SessionStatus.EVALUATED,
]


class InterviewQuestion(BaseModel):
    """A single interview question and the candidate's answer, if any."""

    question_index: int = Field(..., ge=0, description="0-based position within the session")
    category: str = Field(default="General", description="Category label (e.g. 'Java Basics')")
    question: str = Field(..., description="Prompt text shown to the candidate")
    reference_answer: str | None = Field(default=None, description="Reference answer from the generator")
    key_points: list[str] = Field(default_factory=list, description="Key points a good answer covers")
    user_answer: str | None = Field(default=None, description="Candidate's answer, absent until saved")

    def with_answer(self, answer: str) -> "InterviewQuestion":
        """
        Return a copy of this question carrying the given answer.

        Args:
            answer: Answer text to record verbatim.

        Returns:
            New InterviewQuestion with ``user_answer`` set.
        """
        return self.model_copy(update={"user_answer": answer})

    @property
    def is_answered(self) -> bool:
        """Check if the candidate has provided a non-blank answer."""
        return bool(self.user_answer and self.user_answer.strip())


class SessionSnapshot(BaseModel):
    """Read-only view of an interview session handed to callers."""

    session_id: str = Field(..., description="Opaque session identifier")
    subject_id: str | None = Field(default=None, description="Resume/candidate the session belongs to")
    resume_text: str = Field(default="", description="Resume text captured at creation")
    total_questions: int = Field(..., ge=0, description="Fixed number of questions")
    current_index: int = Field(..., ge=0, description="Number of questions fully submitted")
    questions: list[InterviewQuestion] = Field(default_factory=list, description="Ordered questions")
    status: SessionStatus = Field(..., description="Current lifecycle status")


class SubmitAnswerResponse(BaseModel):
    """Result of submitting an answer and moving on."""

    has_next: bool = Field(..., description="Whether another question remains")
    next_question: InterviewQuestion | None = Field(default=None, description="The next question, if any")
    current_index: int = Field(..., ge=0, description="Progress pointer after the submission")
    total_questions: int = Field(..., ge=0, description="Fixed number of questions")


class CategoryScore(BaseModel):
    """Average score for one question category."""

    category: str = Field(..., description="Category label")
    score: int = Field(..., ge=0, le=100, description="Average score (0-100)")
    question_count: int = Field(..., ge=0, description="Questions in this category")


class QuestionEvaluation(BaseModel):
    """Per-question detail in an evaluation report."""

    question_index: int = Field(..., ge=0, description="Index of the evaluated question")
    question: str = Field(..., description="Question text")
    category: str = Field(default="General", description="Question category")
    user_answer: str | None = Field(default=None, description="Answer as submitted, absent if unanswered")
    score: int = Field(default=0, ge=0, le=100, description="Score for this answer (0-100)")
    feedback: str = Field(default="", description="Feedback for this answer")


class ReferenceAnswer(BaseModel):
    """Reference material appended to a report."""

    question_index: int = Field(..., ge=0, description="Index of the question")
    question: str = Field(..., description="Question text")
    reference_answer: str = Field(default="", description="Reference answer")
    key_points: list[str] = Field(default_factory=list, description="Key points")


class InterviewReport(BaseModel):
    """Scored evaluation report for a completed interview."""

    session_id: str = Field(..., description="Session the report belongs to")
    total_questions: int = Field(..., ge=0, description="Number of questions in the interview")
    overall_score: int = Field(..., ge=0, le=100, description="Overall score (0-100)")
    category_scores: list[CategoryScore] = Field(default_factory=list, description="Scores per category")
    question_details: list[QuestionEvaluation] = Field(default_factory=list, description="Per-question detail")
    overall_feedback: str = Field(default="", description="Free-text overall feedback")
    strengths: list[str] = Field(default_factory=list, description="Identified strengths")
    improvements: list[str] = Field(default_factory=list, description="Suggested improvements")
    reference_answers: list[ReferenceAnswer] = Field(default_factory=list, description="Reference appendix")
    generated_at: datetime = Field(default_factory=_now_utc, description="When the report was generated")


class StoredSession(BaseModel):
    """A session record as read back from the durable store."""

    session_id: str = Field(..., description="Session identifier")
    subject_id: str | None = Field(default=None, description="Owning subject")
    resume_text: str = Field(default="", description="Resume text snapshot")
    question_count: int = Field(..., ge=0, description="Number of questions")
    questions: list[InterviewQuestion] = Field(default_factory=list, description="Questions without answers")
    current_index: int = Field(default=0, description="Persisted progress pointer")
    status: SessionStatus = Field(default=SessionStatus.CREATED, description="Persisted status")
    created_at: datetime = Field(default_factory=_now_utc, description="When the session was created")


class StoredAnswer(BaseModel):
    """An answer row as read back from the durable store."""

    question_index: int = Field(..., description="Index the answer belongs to")
    user_answer: str | None = Field(default=None, description="Recorded answer text")
