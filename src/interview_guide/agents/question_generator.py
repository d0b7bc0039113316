"""
Question generator agent.

Generates the fixed question set of a mock interview from the candidate's
resume text.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from interview_guide.models.llm_client import LLMClient, LLMClientBase, Message
from interview_guide.sessions.errors import GenerationFailedError
from interview_guide.sessions.schemas import InterviewQuestion

logger = logging.getLogger(__name__)


class QuestionGeneratorBase(ABC):
    """Abstract base class for question generators."""

    @abstractmethod
    async def generate(self, resume_text: str, question_count: int) -> list[InterviewQuestion]:
        """
        Generate interview questions for a resume.

        Args:
            resume_text: Candidate's resume text.
            question_count: Number of questions wanted.

        Returns:
            Ordered list of questions.

        Raises:
            GenerationFailedError: If no usable questions could be produced.
        """
        ...


class QuestionGenerator(QuestionGeneratorBase):
    """
    LLM-based question generator.

    Asks the model for a mix of project deep-dives and fundamentals grounded
    in the resume, then normalizes the result into InterviewQuestion records.
    """

    GENERATION_PROMPT = """You are a senior technical interviewer preparing a mock interview.
Read the candidate's resume and write exactly {question_count} interview questions.

Guidelines:
- Start with questions about the projects and experience on the resume.
- Mix in fundamentals for the technologies the candidate lists.
- Each question should be answerable in a few minutes of speaking.
- Give every question a short category label (e.g. "Project Experience", "Databases").
- Provide a concise reference answer and 2-4 key points for each question.

Resume:
\"\"\"
{resume_text}
\"\"\"

Return JSON:
{{
    "questions": [
        {{
            "category": "<category label>",
            "question": "<question text>",
            "reference_answer": "<concise reference answer>",
            "key_points": ["<point>", "<point>"]
        }}
    ]
}}

Only return valid JSON, no other text."""

    MAX_RESUME_CHARS = 6000

    def __init__(self, llm_client: LLMClientBase | None = None) -> None:
        """
        Initialize the question generator.

        Args:
            llm_client: LLM client for generation. Creates default if None.
        """
        self._llm_client = llm_client or LLMClient()

    async def generate(self, resume_text: str, question_count: int) -> list[InterviewQuestion]:
        prompt = self.GENERATION_PROMPT.format(
            question_count=question_count,
            resume_text=(resume_text or "(no resume provided)")[: self.MAX_RESUME_CHARS],
        )
        response = await self._llm_client.chat_with_json(
            messages=[Message(role="user", content=prompt)],
            temperature=0.7,
        )

        raw_questions = response.get("questions")
        if raw_questions is None:
            raw_questions = response.get("items")
        if not isinstance(raw_questions, list):
            raw_questions = []

        questions = [
            question
            for question in (self._parse_question(raw) for raw in raw_questions)
            if question is not None
        ][:question_count]

        if not questions:
            raise GenerationFailedError("Question generation returned no usable questions")

        logger.info(f"Generated {len(questions)} of {question_count} requested questions")
        return [q.model_copy(update={"question_index": i}) for i, q in enumerate(questions)]

    @staticmethod
    def _parse_question(raw: Any) -> InterviewQuestion | None:
        """Convert one raw JSON item into a question, None if unusable."""
        if isinstance(raw, str):
            raw = {"question": raw}
        if not isinstance(raw, dict):
            return None

        text = str(raw.get("question") or raw.get("question_text") or "").strip()
        if not text:
            return None

        key_points = raw.get("key_points") or []
        if not isinstance(key_points, list):
            key_points = [str(key_points)]

        reference = raw.get("reference_answer")
        return InterviewQuestion(
            question_index=0,
            category=str(raw.get("category") or "General").strip() or "General",
            question=text,
            reference_answer=str(reference).strip() if reference else None,
            key_points=[str(p).strip() for p in key_points if str(p).strip()],
        )
