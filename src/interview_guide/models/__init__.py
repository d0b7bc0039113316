"""
Models module for LLM client abstraction.

Provides a unified interface for interacting with Ollama locally.
"""

from interview_guide.models.llm_client import (
    LLMClient,
    LLMClientBase,
    LLMClientError,
    LLMResponse,
    Message,
)

__all__ = [
    "LLMClient",
    "LLMClientBase",
    "LLMClientError",
    "LLMResponse",
    "Message",
]
