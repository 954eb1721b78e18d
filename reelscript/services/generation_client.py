"""Client for the hosted text-generation service.

:class:`OpenAIGenerationClient` auto-selects between the Responses, Chat
Completions and legacy Completions APIs depending on the model name and
unwraps the reply into a :class:`GenerationResult` carrying the text and the
token usage of the call.

- GPT-5 / o3 / o4 / 4.1(x) → Responses API
- GPT-4 / 4o / 3.5 (chatty models) → Chat Completions API
- Very old text-* models → Legacy Completions API

The application factory builds one client per process and stores it in
``app.extensions``; services receive it explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import openai
from flask import current_app

LOGGER = logging.getLogger(__name__)

EXTENSION_KEY = "generation_client"


class GenerationServiceError(RuntimeError):
    """Raised when the generation service returns no usable text."""


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_response(cls, usage: Any) -> "TokenUsage":
        """Read usage counters off an SDK response, defaulting to zero."""

        if usage is None:
            return cls()

        def pick(*names: str) -> int:
            for name in names:
                value = usage.get(name) if isinstance(usage, dict) else getattr(usage, name, None)
                if isinstance(value, (int, float)):
                    return int(value)
            return 0

        prompt_tokens = pick("prompt_tokens", "input_tokens")
        completion_tokens = pick("completion_tokens", "output_tokens")
        total_tokens = pick("total_tokens") or prompt_tokens + completion_tokens
        return cls(prompt_tokens, completion_tokens, total_tokens)

    def to_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class GenerationResult:
    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: Optional[str] = None


class OpenAIGenerationClient:
    def __init__(self, api_key: str, *, default_max_tokens: int = 2048) -> None:
        self.api_key = (api_key or "").strip()
        self.default_max_tokens = int(default_max_tokens or 2048)
        self._client = openai.OpenAI(api_key=self.api_key)

    # ---------------- heuristics ----------------
    @staticmethod
    def _uses_responses_api(model: str) -> bool:
        """
        Newer families (gpt-5, o3, o4, 4.1 variants, some reasoning models) use Responses.
        """
        name = (model or "").lower()
        return name.startswith(("gpt-5", "o3", "o4", "gpt-4.1", "gpt-4o-reasoning"))

    @classmethod
    def _uses_chat_completions(cls, model: str) -> bool:
        if cls._uses_responses_api(model):
            return False
        name = (model or "").lower()
        legacy_prefixes = ("text-", "code-", "ada", "babbage", "curie", "davinci")
        return not name.startswith(legacy_prefixes)

    # ---------------- public API ----------------
    def generate(
        self,
        prompt: str,
        *,
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> GenerationResult:
        """Send a single prompt and return the generated text with usage."""

        if not isinstance(prompt, str) or not prompt.strip():
            raise ValueError("prompt must be a non-empty string.")
        token_budget = int(max_tokens if max_tokens is not None else self.default_max_tokens)
        if token_budget <= 0:
            raise ValueError("max_tokens must be positive.")

        if self._uses_responses_api(model):
            return self._call_responses(model, prompt, None, token_budget, temperature)
        if self._uses_chat_completions(model):
            messages = [{"role": "user", "content": prompt}]
            return self._call_chat(model, messages, token_budget, temperature)
        return self._call_legacy(model, prompt, token_budget, temperature)

    def chat(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        model: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> GenerationResult:
        """Continue a conversation given as ``{"role", "content"}`` dicts."""

        if not messages:
            raise ValueError("messages must not be empty.")
        token_budget = int(max_tokens if max_tokens is not None else self.default_max_tokens)

        conversation = [{"role": m["role"], "content": m["content"]} for m in messages]
        if self._uses_responses_api(model):
            return self._call_responses(model, conversation, system, token_budget, temperature)
        if system:
            conversation.insert(0, {"role": "system", "content": system})
        return self._call_chat(model, conversation, token_budget, temperature)

    # ---------------- internal callers ----------------
    def _call_responses(
        self,
        model: str,
        prompt: Any,
        system: Optional[str],
        max_tokens: int,
        temperature: Optional[float],
    ) -> GenerationResult:
        """
        Use the Responses API for GPT-5 / o3 / o4 / 4.1… families.
        Avoid sending unsupported 'text.format' or 'verbosity' fields.
        """
        payload = {
            key: value
            for key, value in {
                "model": model,
                "input": prompt,
                "instructions": system or None,
                "max_output_tokens": max_tokens,
                "temperature": float(temperature) if temperature is not None else None,
            }.items()
            if value is not None
        }

        resp = self._client.responses.create(**payload)
        text = (getattr(resp, "output_text", None) or "").strip()
        if not text:
            status = getattr(resp, "status", None)
            reason = getattr(getattr(resp, "incomplete_details", None), "reason", None)
            raise GenerationServiceError(
                f"Model returned no text (status={status}, reason={reason}). "
                f"Raw response (truncated): {self._shorten_debug(str(resp))}"
            )
        return GenerationResult(
            text=text,
            usage=TokenUsage.from_response(getattr(resp, "usage", None)),
            model=getattr(resp, "model", None) or model,
        )

    def _call_chat(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: Optional[float],
    ) -> GenerationResult:
        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "n": 1,
        }
        if temperature is not None:
            kwargs["temperature"] = float(temperature)

        resp = self._client.chat.completions.create(**kwargs)
        text = self._extract_text_from_chat(resp).strip()
        if not text:
            raise GenerationServiceError(
                f"Chat completion returned no text. Raw response (truncated): {self._shorten_debug(str(resp))}"
            )
        return GenerationResult(
            text=text,
            usage=TokenUsage.from_response(getattr(resp, "usage", None)),
            model=getattr(resp, "model", None) or model,
        )

    def _call_legacy(
        self,
        model: str,
        prompt: str,
        max_tokens: int,
        temperature: Optional[float],
    ) -> GenerationResult:
        kwargs: Dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "max_tokens": max_tokens,
            "n": 1,
        }
        if temperature is not None:
            kwargs["temperature"] = float(temperature)

        resp = self._client.completions.create(**kwargs)
        choices = getattr(resp, "choices", []) or []
        text = str(getattr(choices[0], "text", "") or "").strip() if choices else ""
        if not text:
            raise GenerationServiceError(
                f"Legacy completion returned no text. Raw response (truncated): {self._shorten_debug(str(resp))}"
            )
        return GenerationResult(
            text=text,
            usage=TokenUsage.from_response(getattr(resp, "usage", None)),
            model=getattr(resp, "model", None) or model,
        )

    # ---------------- extractors ----------------
    @staticmethod
    def _extract_text_from_chat(resp: Any) -> str:
        choices = getattr(resp, "choices", []) or []
        if not choices:
            return ""
        first = choices[0]
        msg = getattr(first, "message", None)
        if isinstance(msg, dict):
            content = msg.get("content")
        else:
            content = getattr(msg, "content", None)
        if isinstance(content, list):
            parts: List[str] = []
            for p in content:
                if isinstance(p, dict) and p.get("type") == "text":
                    parts.append(str(p.get("text") or ""))
            return "\n".join([p for p in parts if p])
        return str(content or getattr(first, "text", "") or "")

    @staticmethod
    def _shorten_debug(s: str, limit: int = 1200) -> str:
        s = s.replace("\n", " ")
        return (s[:limit] + "…") if len(s) > limit else s


def build_generation_client(config: Dict[str, Any]) -> Optional[OpenAIGenerationClient]:
    """Create the process-wide client from app config, or ``None`` when unconfigured."""

    api_key = (config.get("OPENAI_API_KEY") or "").strip()
    if not api_key:
        LOGGER.info("OPENAI_API_KEY not configured; generators will serve fallback payloads.")
        return None
    return OpenAIGenerationClient(api_key)


def get_generation_client() -> Optional[Any]:
    """Return the client registered on the current application."""

    return current_app.extensions.get(EXTENSION_KEY)
