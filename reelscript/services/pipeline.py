"""Generic structured-generation pipeline.

One run performs up to ``max_attempts`` strictly sequential attempts of
build prompt → generate → sanitize → validate. The first valid payload is
returned immediately; between failed attempts the controller sleeps for a
fixed delay and the next prompt carries the corrective clause. When every
attempt fails the task's fallback payload is returned instead, so callers
always receive a structurally valid result.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .generation_client import TokenUsage
from .sanitizer import strip_code_fences
from .schema import Invalid, Valid, ValidationOutcome

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineState(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class StructuredGenerationTask(Generic[T]):
    """Everything that distinguishes one generator from another."""

    name: str
    build_prompt: Callable[[int], str]
    validate: Callable[[str], ValidationOutcome]
    fallback: Callable[[], T]
    max_attempts: int = 3
    retry_delay: float = 1.0
    sanitize: Callable[[str], str] = strip_code_fences
    max_tokens: Optional[int] = None


@dataclass
class GenerationAttempt:
    index: int
    prompt: str
    raw_text: Optional[str] = None
    sanitized_text: Optional[str] = None
    outcome: Optional[ValidationOutcome] = None

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Valid)

    @property
    def error(self) -> Optional[str]:
        if isinstance(self.outcome, Invalid):
            return self.outcome.reason
        return None


@dataclass
class PipelineResult(Generic[T]):
    payload: T
    state: PipelineState
    usage: TokenUsage = field(default_factory=TokenUsage)
    attempts: List[GenerationAttempt] = field(default_factory=list)
    model: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.state is PipelineState.EXHAUSTED

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def last_error(self) -> Optional[str]:
        for attempt in reversed(self.attempts):
            if attempt.error:
                return attempt.error
        return None


def run_structured_generation(
    task: StructuredGenerationTask[T],
    *,
    client: Optional[Any],
    model: str,
    temperature: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PipelineResult[T]:
    """Drive ``task`` against ``client`` until a payload validates or attempts run out."""

    attempts: List[GenerationAttempt] = []
    usage = TokenUsage()

    if client is None:
        LOGGER.info("%s: no generation client configured; serving fallback payload.", task.name)
        return PipelineResult(
            payload=task.fallback(),
            state=PipelineState.EXHAUSTED,
            usage=usage,
            attempts=attempts,
            model=model,
        )

    max_attempts = max(int(task.max_attempts), 1)
    for index in range(1, max_attempts + 1):
        attempt = GenerationAttempt(index=index, prompt=task.build_prompt(index))
        attempts.append(attempt)
        LOGGER.debug("%s attempt %d: prompt length %d", task.name, index, len(attempt.prompt))

        try:
            generation = client.generate(
                attempt.prompt,
                model=model,
                temperature=temperature,
                max_tokens=task.max_tokens,
            )
        except Exception as exc:  # external service failures count as a failed attempt
            attempt.outcome = Invalid(f"Generation call failed: {exc}")
        else:
            usage = generation.usage or TokenUsage()
            attempt.raw_text = generation.text
            try:
                attempt.sanitized_text = task.sanitize(generation.text or "")
                attempt.outcome = task.validate(attempt.sanitized_text)
            except Exception as exc:  # malformed output must never escape the retry loop
                attempt.outcome = Invalid(f"Could not process generated text: {exc!r}")

        if isinstance(attempt.outcome, Valid):
            LOGGER.info("%s attempt %d succeeded.", task.name, index)
            return PipelineResult(
                payload=attempt.outcome.payload,
                state=PipelineState.SUCCEEDED,
                usage=usage,
                attempts=attempts,
                model=model,
            )

        LOGGER.warning(
            "%s attempt %d/%d failed: %s | text: %s",
            task.name,
            index,
            max_attempts,
            attempt.error,
            (attempt.sanitized_text or "No text available")[:500],
        )
        if index < max_attempts and task.retry_delay > 0:
            sleep(task.retry_delay)

    LOGGER.warning("%s: using fallback payload after %d failed attempts.", task.name, max_attempts)
    return PipelineResult(
        payload=task.fallback(),
        state=PipelineState.EXHAUSTED,
        usage=usage,
        attempts=attempts,
        model=model,
    )
