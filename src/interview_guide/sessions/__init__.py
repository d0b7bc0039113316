"""
Sessions module: interview session state, cache, and lifecycle.
"""

from interview_guide.sessions.errors import (
    AlreadyCompletedError,
    EvaluationFailedError,
    GenerationFailedError,
    InterviewError,
    InterviewNotCompletedError,
    InvalidQuestionIndexError,
    PersistenceUnavailableError,
    SessionNotFoundError,
)
from interview_guide.sessions.lifecycle import SessionLifecycle
from interview_guide.sessions.schemas import (
    InterviewQuestion,
    InterviewReport,
    SessionSnapshot,
    SessionStatus,
    SubmitAnswerResponse,
)
from interview_guide.sessions.session_cache import SessionCache
from interview_guide.sessions.session_state import InterviewSession

__all__ = [
    "SessionLifecycle",
    "SessionCache",
    "InterviewSession",
    "InterviewQuestion",
    "InterviewReport",
    "SessionSnapshot",
    "SessionStatus",
    "SubmitAnswerResponse",
    "InterviewError",
    "SessionNotFoundError",
    "InvalidQuestionIndexError",
    "AlreadyCompletedError",
    "InterviewNotCompletedError",
    "PersistenceUnavailableError",
    "GenerationFailedError",
    "EvaluationFailedError",
]
