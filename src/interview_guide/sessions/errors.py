"""
Exceptions raised by the interview session core.

Every error carries an ``error_code`` so an API layer can render a
specific message without inspecting exception types.
"""


class InterviewError(Exception):
    """Base class for all interview session errors."""

    error_code = "INTERVIEW_ERROR"

    def __init__(self, message: str, session_id: str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class SessionNotFoundError(InterviewError):
    """No session exists in the cache or the store for the identifier."""

    error_code = "INTERVIEW_SESSION_NOT_FOUND"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Interview session not found: {session_id}", session_id)


class InvalidQuestionIndexError(InterviewError):
    """A question index outside ``[0, total_questions)`` was supplied."""

    error_code = "INTERVIEW_QUESTION_NOT_FOUND"

    def __init__(self, session_id: str, question_index: int, total_questions: int) -> None:
        super().__init__(
            f"Invalid question index {question_index} for session {session_id} "
            f"({total_questions} questions)",
            session_id,
        )
        self.question_index = question_index
        self.total_questions = total_questions


class AlreadyCompletedError(InterviewError):
    """Early completion was requested on a finished session."""

    error_code = "INTERVIEW_ALREADY_COMPLETED"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Interview session already completed: {session_id}", session_id)


class InterviewNotCompletedError(InterviewError):
    """A report was requested before the interview was completed."""

    error_code = "INTERVIEW_NOT_COMPLETED"

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Interview session {session_id} is not completed; cannot generate report",
            session_id,
        )


class PersistenceUnavailableError(InterviewError):
    """The durable store rejected or could not serve a request."""

    error_code = "PERSISTENCE_UNAVAILABLE"


class GenerationFailedError(InterviewError):
    """The question generator could not produce a usable question set."""

    error_code = "QUESTION_GENERATION_FAILED"


class EvaluationFailedError(InterviewError):
    """The evaluator could not produce a report."""

    error_code = "EVALUATION_FAILED"
