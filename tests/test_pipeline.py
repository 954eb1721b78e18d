import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from reelscript.services.fallbacks import fallback_script_set
from reelscript.services.generation_client import GenerationResult, TokenUsage
from reelscript.services.payloads import SCRIPT_SET_SHAPE, ScriptPayload
from reelscript.services.pipeline import PipelineState, StructuredGenerationTask, run_structured_generation
from reelscript.services.prompt_builder import build_prompt
from reelscript.services.schema import validate_candidate

CLAUSE = "Previous attempt failed. Ensure exactly 3 scripts in valid JSON format."

VALID_SCRIPTS = json.dumps(
    {
        "scripts": [
            {"subtitle": "حل سريع", "content": "<p>عندك مشكل في الوقت؟ نظم نهارك.</p>"},
            {"subtitle": "نصيحة اليوم", "content": "<p>ابدأ بالحاجة الصعيبة الصباح.</p>"},
            {"subtitle": "خطوة بخطوة", "content": "<p>اكتب، رتب، وابدا خدمتك.</p>"},
        ]
    }
)


class ScriptedClient:
    """Returns queued replies in order; exceptions in the queue are raised."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []
        self.calls = []

    def generate(self, prompt, *, model, temperature=None, max_tokens=None):
        self.prompts.append(prompt)
        self.calls.append({"model": model, "temperature": temperature, "max_tokens": max_tokens})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return GenerationResult(text=reply, usage=TokenUsage(10, 20, 30), model=model)


def _task(max_attempts=3, retry_delay=1.0):
    return StructuredGenerationTask(
        name="scripts",
        build_prompt=lambda attempt: build_prompt(
            "Write three scripts.",
            [("User Prompt", "Help busy parents cook")],
            attempt=attempt,
            corrective_clause=CLAUSE,
        ),
        validate=lambda text: validate_candidate(text, SCRIPT_SET_SHAPE, ScriptPayload.from_dict),
        fallback=fallback_script_set,
        max_attempts=max_attempts,
        retry_delay=retry_delay,
    )


def test_first_valid_attempt_returns_immediately():
    client = ScriptedClient([f"```json\n{VALID_SCRIPTS}\n```", "unused"])
    sleeps = []

    result = run_structured_generation(_task(), client=client, model="gpt-test", sleep=sleeps.append)

    assert result.state is PipelineState.SUCCEEDED
    assert result.used_fallback is False
    assert result.attempt_count == 1
    assert len(client.prompts) == 1
    assert sleeps == []
    assert result.usage.total_tokens == 30
    assert [script.subtitle for script in result.payload.scripts] == ["حل سريع", "نصيحة اليوم", "خطوة بخطوة"]


def test_recovers_on_third_attempt_with_corrective_clause():
    client = ScriptedClient(["not json", json.dumps({"scripts": []}), VALID_SCRIPTS])
    sleeps = []

    result = run_structured_generation(_task(), client=client, model="gpt-test", sleep=sleeps.append)

    assert result.state is PipelineState.SUCCEEDED
    assert result.attempt_count == 3
    assert CLAUSE not in client.prompts[0]
    assert CLAUSE in client.prompts[1]
    assert CLAUSE in client.prompts[2]
    assert sleeps == [1.0, 1.0]
    assert result.attempts[0].error.startswith("Invalid JSON")


@pytest.mark.parametrize("max_attempts", [1, 3, 4])
def test_never_exceeds_max_attempts_and_falls_back(max_attempts):
    client = ScriptedClient(["still not json"] * 10)
    sleeps = []

    result = run_structured_generation(
        _task(max_attempts=max_attempts),
        client=client,
        model="gpt-test",
        sleep=sleeps.append,
    )

    assert len(client.prompts) == max_attempts
    assert len(sleeps) == max_attempts - 1
    assert result.state is PipelineState.EXHAUSTED
    assert result.used_fallback is True
    assert result.payload == fallback_script_set()


def test_client_errors_count_as_failed_attempts():
    client = ScriptedClient([RuntimeError("rate limited"), VALID_SCRIPTS])

    result = run_structured_generation(_task(), client=client, model="gpt-test", sleep=lambda _: None)

    assert result.state is PipelineState.SUCCEEDED
    assert result.attempt_count == 2
    assert "rate limited" in result.attempts[0].error


def test_missing_client_serves_fallback_without_attempts():
    result = run_structured_generation(_task(), client=None, model="gpt-test")

    assert result.used_fallback is True
    assert result.attempt_count == 0
    assert result.usage == TokenUsage()


def test_zero_delay_skips_sleep():
    client = ScriptedClient(["bad", "bad", "bad"])
    sleeps = []

    run_structured_generation(_task(retry_delay=0.0), client=client, model="gpt-test", sleep=sleeps.append)

    assert sleeps == []


def test_validator_errors_count_as_failed_attempts():
    calls = []

    def flaky_validate(text):
        calls.append(text)
        if len(calls) == 1:
            raise TypeError("'int' object is not iterable")
        return validate_candidate(text, SCRIPT_SET_SHAPE, ScriptPayload.from_scripts)

    task = _task()
    task.validate = flaky_validate
    client = ScriptedClient([VALID_SCRIPTS, VALID_SCRIPTS])

    result = run_structured_generation(task, client=client, model="gpt-test", sleep=lambda _: None)

    assert result.state is PipelineState.SUCCEEDED
    assert result.attempt_count == 2
    assert "not iterable" in result.attempts[0].error


def test_deeply_nested_output_is_retried():
    client = ScriptedClient(["[" * 100000 + "]" * 100000, VALID_SCRIPTS])

    result = run_structured_generation(_task(), client=client, model="gpt-test", sleep=lambda _: None)

    assert result.state is PipelineState.SUCCEEDED
    assert result.attempt_count == 2
    assert result.attempts[0].error.startswith("Invalid JSON")
