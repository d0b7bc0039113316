"""
Interview evaluator agent.

Scores the answers of a completed interview and assembles the report:
per-question feedback from the LLM, category and overall scores computed
locally, and a reference-answer appendix.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any

from interview_guide.models.llm_client import LLMClient, LLMClientBase, Message
from interview_guide.sessions.errors import EvaluationFailedError
from interview_guide.sessions.schemas import (
    CategoryScore,
    InterviewQuestion,
    InterviewReport,
    QuestionEvaluation,
    ReferenceAnswer,
)

logger = logging.getLogger(__name__)

UNANSWERED_FEEDBACK = "No answer was provided for this question."


class EvaluatorBase(ABC):
    """Abstract base class for interview evaluators."""

    @abstractmethod
    async def evaluate(
        self,
        session_id: str,
        resume_text: str,
        questions: list[InterviewQuestion],
    ) -> InterviewReport:
        """
        Evaluate the answers of an interview.

        Args:
            session_id: Session being evaluated.
            resume_text: Resume text snapshot of the session.
            questions: All questions, answered or not.

        Returns:
            The scored report.

        Raises:
            EvaluationFailedError: If the evaluation could not be produced.
        """
        ...


class InterviewEvaluator(EvaluatorBase):
    """
    LLM-based interview evaluator.

    Only answered questions are sent to the model; unanswered ones score
    zero. Scores are clamped to 0-100.
    """

    EVALUATION_PROMPT = """You are an experienced technical interviewer grading a mock interview.

Candidate resume (for context only):
\"\"\"
{resume_text}
\"\"\"

Answered questions:
{answered_questions}

For every answered question, score the answer from 0 to 100 against the reference
answer and key points, and give one or two sentences of specific feedback.
Then summarize the candidate's performance.

Return JSON:
{{
    "evaluations": [
        {{
            "question_index": <index>,
            "score": <0-100>,
            "feedback": "<specific feedback>"
        }}
    ],
    "overall_feedback": "<paragraph summarizing the interview>",
    "strengths": ["<strength>", ...],
    "improvements": ["<improvement>", ...]
}}

Be fair and evidence-based. Score what was said, not how it was phrased.
Only return valid JSON, no other text."""

    MAX_RESUME_CHARS = 3000
    MAX_ANSWER_CHARS = 2000

    def __init__(self, llm_client: LLMClientBase | None = None) -> None:
        """
        Initialize the evaluator.

        Args:
            llm_client: LLM client for grading. Creates default if None.
        """
        self._llm_client = llm_client or LLMClient()

    def _format_answered(self, questions: list[InterviewQuestion]) -> str:
        blocks = []
        for q in questions:
            key_points = "; ".join(q.key_points) if q.key_points else "(none)"
            blocks.append(
                f"[{q.question_index}] ({q.category}) {q.question}\n"
                f"  Reference answer: {q.reference_answer or '(none)'}\n"
                f"  Key points: {key_points}\n"
                f"  Candidate answer: {(q.user_answer or '')[: self.MAX_ANSWER_CHARS]}"
            )
        return "\n\n".join(blocks)

    async def evaluate(
        self,
        session_id: str,
        resume_text: str,
        questions: list[InterviewQuestion],
    ) -> InterviewReport:
        answered = [q for q in questions if q.is_answered]
        response: dict[str, Any] = {}

        if answered:
            prompt = self.EVALUATION_PROMPT.format(
                resume_text=(resume_text or "(no resume provided)")[: self.MAX_RESUME_CHARS],
                answered_questions=self._format_answered(answered),
            )
            response = await self._llm_client.chat_with_json(
                messages=[Message(role="user", content=prompt)],
            )
            if not response:
                raise EvaluationFailedError(
                    f"Evaluation returned no usable result for session {session_id}",
                    session_id,
                )

        graded = self._parse_evaluations(response.get("evaluations"))
        details: list[QuestionEvaluation] = []
        for q in questions:
            if q.is_answered:
                score, feedback = graded.get(q.question_index, (0, "No feedback was returned for this answer."))
            else:
                score, feedback = 0, UNANSWERED_FEEDBACK
            details.append(
                QuestionEvaluation(
                    question_index=q.question_index,
                    question=q.question,
                    category=q.category,
                    user_answer=q.user_answer,
                    score=score,
                    feedback=feedback,
                )
            )

        overall_feedback = str(response.get("overall_feedback") or "").strip()
        if not answered:
            overall_feedback = "No questions were answered, so no performance could be assessed."

        report = InterviewReport(
            session_id=session_id,
            total_questions=len(questions),
            overall_score=self._average([d.score for d in details]),
            category_scores=self._category_scores(details),
            question_details=details,
            overall_feedback=overall_feedback,
            strengths=self._string_list(response.get("strengths")),
            improvements=self._string_list(response.get("improvements")),
            reference_answers=[
                ReferenceAnswer(
                    question_index=q.question_index,
                    question=q.question,
                    reference_answer=q.reference_answer or "",
                    key_points=q.key_points,
                )
                for q in questions
            ],
        )
        logger.info(
            f"Evaluated session {session_id}: {len(answered)}/{len(questions)} answered, "
            f"overall score {report.overall_score}"
        )
        return report

    @staticmethod
    def _clamp_score(value: Any) -> int:
        try:
            return max(0, min(100, int(round(float(value)))))
        except (TypeError, ValueError):
            return 0

    def _parse_evaluations(self, raw: Any) -> dict[int, tuple[int, str]]:
        """Map question index to (score, feedback) from the model output."""
        if not isinstance(raw, list):
            return {}
        graded: dict[int, tuple[int, str]] = {}
        for item in raw:
            if not isinstance(item, dict):
                continue
            try:
                index = int(item.get("question_index"))
            except (TypeError, ValueError):
                continue
            graded[index] = (
                self._clamp_score(item.get("score")),
                str(item.get("feedback") or "").strip(),
            )
        return graded

    @staticmethod
    def _average(scores: list[int]) -> int:
        if not scores:
            return 0
        return int(round(sum(scores) / len(scores)))

    def _category_scores(self, details: list[QuestionEvaluation]) -> list[CategoryScore]:
        """Average question scores per category, in first-seen order."""
        by_category: dict[str, list[int]] = defaultdict(list)
        for detail in details:
            by_category[detail.category].append(detail.score)
        return [
            CategoryScore(category=category, score=self._average(scores), question_count=len(scores))
            for category, scores in by_category.items()
        ]

    @staticmethod
    def _string_list(raw: Any) -> list[str]:
        if not isinstance(raw, list):
            return []
        return [str(item).strip() for item in raw if str(item).strip()]
