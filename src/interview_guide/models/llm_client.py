"""
LLM client abstraction.

Talks to a local Ollama server over its HTTP chat API. Structured output is
requested as JSON and repaired leniently, since local models often wrap
JSON in prose or code fences.
"""

import ast
import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, Field

from interview_guide.config import get_settings

logger = logging.getLogger(__name__)


class Message(BaseModel):
    """A message in a conversation."""

    role: str = Field(..., description="Role of the speaker (system, user, assistant)")
    content: str = Field(..., description="Message content")


class LLMResponse(BaseModel):
    """Response from an LLM."""

    content: str = Field(..., description="Generated text content")
    finish_reason: str = Field(default="stop", description="Reason for completion")
    usage: dict[str, int] = Field(
        default_factory=dict,
        description="Token usage information",
    )
    model: str = Field(default="", description="Model used for generation")


class LLMClientError(Exception):
    """Exception raised when the LLM server cannot be reached or fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LLMClientBase(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a chat completion.

        Args:
            messages: Conversation history.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.
            **kwargs: Additional model-specific parameters.

        Returns:
            Generated response.
        """
        ...

    @abstractmethod
    async def chat_with_json(
        self,
        messages: list[Message],
        schema: dict[str, Any] | None = None,
        temperature: float = 0.2,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Generate a chat completion parsed as a JSON object.

        Returns:
            Parsed JSON object, or an empty dict when nothing usable came back.
        """
        ...


class LLMClient(LLMClientBase):
    """
    Ollama-based LLM client.

    Uses the ``/api/chat`` endpoint of a local Ollama server through a
    shared ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        max_retries: int | None = None,
        timeout: int | None = None,
    ) -> None:
        """
        Initialize the Ollama LLM client.

        Args:
            model: Model name (uses config if not provided).
            base_url: Ollama server URL (uses config if not provided).
            max_retries: Number of retries on failure (uses config if not provided).
            timeout: Request timeout in seconds (uses config if not provided).
        """
        settings = get_settings()
        self._model = model or settings.llm_model_name
        self._base_url = base_url or settings.llm_base_url
        self._max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self._timeout = timeout or settings.llm_timeout
        self._client: httpx.AsyncClient | None = None

        logger.info(f"Initialized Ollama LLM client with model: {self._model}")

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _post_chat(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        POST a chat request with retry logic.

        Raises:
            LLMClientError: If the request fails after all retries.
        """
        client = await self._get_client()
        last_error: LLMClientError | None = None

        for attempt in range(1, self._max_retries + 2):
            try:
                response = await client.post("/api/chat", json=payload)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                logger.warning(f"Ollama returned {e.response.status_code} (attempt {attempt})")
                last_error = LLMClientError(str(e), status_code=e.response.status_code)
            except httpx.HTTPError as e:
                logger.warning(f"Ollama request failed (attempt {attempt}): {e}")
                last_error = LLMClientError(str(e))
            if attempt <= self._max_retries:
                await asyncio.sleep(0.5 * attempt)

        raise last_error or LLMClientError("Ollama failed after all retries")

    async def chat(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a chat completion using Ollama.

        Errors are reported as an empty response with ``finish_reason="error"``.
        """
        options: dict[str, Any] = {"temperature": temperature}
        if max_tokens is not None:
            options["num_predict"] = max_tokens
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [m.model_dump() for m in messages],
            "stream": False,
            "options": options,
        }
        if kwargs.get("format"):
            payload["format"] = kwargs["format"]

        try:
            data = await self._post_chat(payload)
        except LLMClientError as e:
            logger.error(f"Ollama chat failed: {e}")
            return LLMResponse(content="", finish_reason="error", model=self._model)

        return LLMResponse(
            content=(data.get("message") or {}).get("content", "").strip(),
            finish_reason=data.get("done_reason") or "stop",
            usage={
                "prompt_tokens": int(data.get("prompt_eval_count") or 0),
                "completion_tokens": int(data.get("eval_count") or 0),
            },
            model=data.get("model") or self._model,
        )

    async def chat_with_json(
        self,
        messages: list[Message],
        schema: dict[str, Any] | None = None,
        temperature: float = 0.2,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Generate a chat completion with JSON structured output.

        Args:
            messages: Conversation history.
            schema: Optional JSON schema for expected output.
            temperature: Sampling temperature (lower for more deterministic).
            **kwargs: Additional parameters.

        Returns:
            Parsed JSON response, or empty dict on error.
        """
        instruction = "You must respond with valid JSON only. No additional text or explanation."
        if schema:
            instruction += f" Your response must match this JSON schema: {json.dumps(schema)}"
        augmented = [Message(role="system", content=instruction)] + messages

        response = await self.chat(augmented, temperature, format="json", **kwargs)
        if response.finish_reason == "error" or not response.content:
            logger.warning("JSON chat failed, returning empty dict")
            return {}

        parsed = self._parse_json_loose(self._extract_json_block(response.content))
        if parsed is None:
            parsed = self._parse_json_loose(response.content)
        if isinstance(parsed, dict):
            return parsed
        if isinstance(parsed, list):
            return {"items": parsed}

        logger.warning("Failed to parse JSON from response")
        logger.debug(f"Response content: {response.content[:500]}")
        return {}

    @staticmethod
    def _extract_json_block(content: str) -> str:
        """Cut the first balanced JSON object or array out of free text."""
        starts = [i for i in (content.find("{"), content.find("[")) if i != -1]
        if not starts:
            return content
        start = min(starts)

        open_bracket = content[start]
        close_bracket = "}" if open_bracket == "{" else "]"
        depth = 0
        for i, char in enumerate(content[start:], start=start):
            if char == open_bracket:
                depth += 1
            elif char == close_bracket:
                depth -= 1
                if depth == 0:
                    return content[start : i + 1]
        return content[start:]

    @staticmethod
    def _fix_json_string(json_str: str) -> str:
        """Repair common JSON issues in LLM output."""
        if not json_str:
            return ""

        result = json_str.strip()
        result = re.sub(r"^```(?:json)?\s*", "", result, flags=re.IGNORECASE)
        result = re.sub(r"\s*```$", "", result)
        result = (
            result.replace("“", '"')
            .replace("”", '"')
            .replace("‘", "'")
            .replace("’", "'")
        )
        # Trailing commas before closing braces/brackets
        result = re.sub(r",(\s*[}\]])", r"\1", result)
        result = re.sub(r"\bNone\b", "null", result)
        result = re.sub(r"\bTrue\b", "true", result)
        result = re.sub(r"\bFalse\b", "false", result)
        # Bare keys right after { or ,
        result = re.sub(
            r"([\{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)",
            r'\1"\2"\3',
            result,
        )
        if "'" in result and '"' not in result:
            result = result.replace("'", '"')
        return result

    @classmethod
    def _coerce_to_json_types(cls, obj: Any) -> Any:
        """Coerce a Python literal to JSON-safe types."""
        if obj is ...:
            return None
        if obj is None or isinstance(obj, (str, int, float, bool)):
            return obj
        if isinstance(obj, dict):
            return {str(k): cls._coerce_to_json_types(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple, set)):
            return [cls._coerce_to_json_types(v) for v in obj]
        return str(obj)

    @classmethod
    def _parse_json_loose(cls, raw: str) -> dict[str, Any] | list[Any] | None:
        """
        Parse JSON with best-effort repair.

        Returns a dict/list on success, else None.
        """
        if not raw:
            return None

        cleaned = cls._fix_json_string(raw)
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            pass

        for candidate in (raw.strip(), cleaned):
            try:
                obj = ast.literal_eval(candidate)
            except (ValueError, SyntaxError, MemoryError, RecursionError):
                continue
            if isinstance(obj, (dict, list, tuple, set)):
                return json.loads(json.dumps(cls._coerce_to_json_types(obj)))
        return None
