"""
Shared fixtures: in-memory stand-ins for the question generator, the
evaluator, and the persistence gateway.
"""

import asyncio

import pytest

from interview_guide.agents.evaluator import EvaluatorBase
from interview_guide.agents.question_generator import QuestionGeneratorBase
from interview_guide.config import Settings
from interview_guide.db.gateway import PersistenceGateway
from interview_guide.sessions.errors import PersistenceUnavailableError
from interview_guide.sessions.lifecycle import SessionLifecycle
from interview_guide.sessions.schemas import (
    CategoryScore,
    InterviewQuestion,
    InterviewReport,
    QuestionEvaluation,
    SessionStatus,
    StoredAnswer,
    StoredSession,
)

CATEGORIES = ["Project Experience", "Databases", "Concurrency"]


class FakeQuestionGenerator(QuestionGeneratorBase):
    """Deterministic generator producing numbered questions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    async def generate(self, resume_text: str, question_count: int) -> list[InterviewQuestion]:
        self.calls.append((resume_text, question_count))
        return [
            InterviewQuestion(
                question_index=i,
                category=CATEGORIES[i % len(CATEGORIES)],
                question=f"Question {i}",
                reference_answer=f"Reference {i}",
                key_points=[f"point {i}"],
            )
            for i in range(question_count)
        ]


class FakeEvaluator(EvaluatorBase):
    """Scores answered questions 80 and unanswered ones 0."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[InterviewQuestion]]] = []

    async def evaluate(
        self,
        session_id: str,
        resume_text: str,
        questions: list[InterviewQuestion],
    ) -> InterviewReport:
        self.calls.append((session_id, questions))
        details = [
            QuestionEvaluation(
                question_index=q.question_index,
                question=q.question,
                category=q.category,
                user_answer=q.user_answer,
                score=80 if q.is_answered else 0,
                feedback="ok" if q.is_answered else "unanswered",
            )
            for q in questions
        ]
        overall = sum(d.score for d in details) // max(len(details), 1)
        return InterviewReport(
            session_id=session_id,
            total_questions=len(questions),
            overall_score=overall,
            category_scores=[CategoryScore(category="All", score=overall, question_count=len(details))],
            question_details=details,
            overall_feedback=f"evaluation #{len(self.calls)}",
        )


class InMemoryPersistenceGateway(PersistenceGateway):
    """Dictionary-backed store with switches to simulate outages."""

    def __init__(self) -> None:
        self.sessions: dict[str, StoredSession] = {}
        self.answers: dict[str, dict[int, StoredAnswer]] = {}
        self.reports: dict[str, InterviewReport] = {}
        self.fail_writes = False
        self.fail_reads = False
        self._created_order: dict[str, int] = {}

    def _check_write(self) -> None:
        if self.fail_writes:
            raise PersistenceUnavailableError("store is down")

    def _check_read(self) -> None:
        if self.fail_reads:
            raise PersistenceUnavailableError("store is down")

    async def save_session(self, session_id, subject_id, resume_text, question_count, questions) -> None:
        self._check_write()
        self._created_order[session_id] = len(self._created_order)
        self.sessions[session_id] = StoredSession(
            session_id=session_id,
            subject_id=subject_id,
            resume_text=resume_text,
            question_count=question_count,
            questions=[q.model_copy(update={"user_answer": None}) for q in questions],
        )

    async def find_unfinished_session(self, subject_id: str) -> StoredSession | None:
        self._check_read()
        candidates = [
            s for s in self.sessions.values()
            if s.subject_id == subject_id and s.status.is_unfinished
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: self._created_order[s.session_id]).model_copy(deep=True)

    async def find_by_session_id(self, session_id: str) -> StoredSession | None:
        self._check_read()
        stored = self.sessions.get(session_id)
        return stored.model_copy(deep=True) if stored else None

    async def save_answer(self, session_id, question_index, question, category, user_answer, score=0) -> None:
        self._check_write()
        self.answers.setdefault(session_id, {})[question_index] = StoredAnswer(
            question_index=question_index,
            user_answer=user_answer,
        )

    async def update_current_question_index(self, session_id: str, current_index: int) -> None:
        self._check_write()
        if session_id in self.sessions:
            self.sessions[session_id].current_index = current_index

    async def update_session_status(self, session_id: str, status: SessionStatus) -> None:
        self._check_write()
        if session_id in self.sessions:
            self.sessions[session_id].status = status

    async def find_answers_by_session_id(self, session_id: str) -> list[StoredAnswer]:
        self._check_read()
        return list(self.answers.get(session_id, {}).values())

    async def save_report(self, session_id: str, report: InterviewReport) -> None:
        self._check_write()
        self.reports[session_id] = report
        if session_id in self.sessions:
            self.sessions[session_id].status = SessionStatus.EVALUATED


class SlowGateway(InMemoryPersistenceGateway):
    """In-memory gateway whose writes and lookups yield to the event loop."""

    def __init__(self) -> None:
        super().__init__()
        self.delays = [0.03, 0.02, 0.01]

    async def update_current_question_index(self, session_id: str, current_index: int) -> None:
        await asyncio.sleep(self.delays.pop(0) if self.delays else 0)
        await super().update_current_question_index(session_id, current_index)

    async def find_unfinished_session(self, subject_id: str) -> StoredSession | None:
        await asyncio.sleep(0.01)
        return await super().find_unfinished_session(subject_id)


@pytest.fixture
def settings() -> Settings:
    """Settings with small question counts for tests."""
    return Settings(default_question_count=3, max_question_count=10, session_id_length=16)


@pytest.fixture
def generator() -> FakeQuestionGenerator:
    return FakeQuestionGenerator()


@pytest.fixture
def evaluator() -> FakeEvaluator:
    return FakeEvaluator()


@pytest.fixture
def gateway() -> InMemoryPersistenceGateway:
    return InMemoryPersistenceGateway()


@pytest.fixture
def slow_gateway() -> SlowGateway:
    return SlowGateway()


@pytest.fixture
def lifecycle(
    generator: FakeQuestionGenerator,
    evaluator: FakeEvaluator,
    gateway: InMemoryPersistenceGateway,
    settings: Settings,
) -> SessionLifecycle:
    """Lifecycle wired to in-memory collaborators."""
    return SessionLifecycle(
        question_generator=generator,
        evaluator=evaluator,
        persistence=gateway,
        settings=settings,
    )


@pytest.fixture
def restarted_lifecycle(
    generator: FakeQuestionGenerator,
    evaluator: FakeEvaluator,
    gateway: InMemoryPersistenceGateway,
    settings: Settings,
) -> SessionLifecycle:
    """A second lifecycle sharing the store but not the cache, as after a restart."""
    return SessionLifecycle(
        question_generator=generator,
        evaluator=evaluator,
        persistence=gateway,
        settings=settings,
    )
