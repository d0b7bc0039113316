"""
Agents module containing the LLM-backed interview collaborators.
"""

from interview_guide.agents.evaluator import EvaluatorBase, InterviewEvaluator
from interview_guide.agents.question_generator import QuestionGenerator, QuestionGeneratorBase

__all__ = [
    "EvaluatorBase",
    "InterviewEvaluator",
    "QuestionGenerator",
    "QuestionGeneratorBase",
]
