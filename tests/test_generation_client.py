import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from reelscript.services.generation_client import (
    GenerationServiceError,
    OpenAIGenerationClient,
    TokenUsage,
    build_generation_client,
)


class RecordingEndpoint:
    def __init__(self, response):
        self.response = response
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        return self.response


def _client_with(monkeypatch, *, responses=None, chat=None, completions=None):
    client = OpenAIGenerationClient("sk-test-key-1234")
    fake = SimpleNamespace(
        responses=responses,
        chat=SimpleNamespace(completions=chat),
        completions=completions,
    )
    monkeypatch.setattr(client, "_client", fake)
    return client


def test_token_usage_reads_both_naming_schemes():
    assert TokenUsage.from_response({"input_tokens": 3, "output_tokens": 4}) == TokenUsage(3, 4, 7)
    assert TokenUsage.from_response(SimpleNamespace(prompt_tokens=1, completion_tokens=2, total_tokens=5)) == TokenUsage(
        1, 2, 5
    )
    assert TokenUsage.from_response(None).to_dict() == {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


@pytest.mark.parametrize(
    "model, responses, chat",
    [
        ("gpt-5-mini-2025-08-07", True, False),
        ("gpt-4.1-nano", True, False),
        ("gpt-4o-mini", False, True),
        ("text-davinci-003", False, False),
    ],
)
def test_api_family_selection(model, responses, chat):
    assert OpenAIGenerationClient._uses_responses_api(model) is responses
    assert OpenAIGenerationClient._uses_chat_completions(model) is chat


def test_generate_uses_responses_api(monkeypatch):
    endpoint = RecordingEndpoint(
        SimpleNamespace(output_text=' {"scripts": []} ', usage={"input_tokens": 10, "output_tokens": 5}, model="gpt-5")
    )
    client = _client_with(monkeypatch, responses=endpoint)

    result = client.generate("Write scripts", model="gpt-5", temperature=1.0, max_tokens=300)

    assert result.text == '{"scripts": []}'
    assert result.usage == TokenUsage(10, 5, 15)
    assert endpoint.kwargs == {"model": "gpt-5", "input": "Write scripts", "max_output_tokens": 300, "temperature": 1.0}


def test_chat_prepends_system_message_for_chat_models(monkeypatch):
    reply = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Salam!"))],
        usage=SimpleNamespace(prompt_tokens=4, completion_tokens=2, total_tokens=6),
        model="gpt-4o-mini",
    )
    endpoint = RecordingEndpoint(reply)
    client = _client_with(monkeypatch, chat=endpoint)

    result = client.chat([{"role": "user", "content": "Hi"}], model="gpt-4o-mini", system="Be brief.")

    assert result.text == "Salam!"
    assert endpoint.kwargs["messages"][0] == {"role": "system", "content": "Be brief."}
    assert endpoint.kwargs["max_tokens"] == 2048


def test_empty_output_raises(monkeypatch):
    endpoint = RecordingEndpoint(SimpleNamespace(output_text="", status="incomplete", incomplete_details=None))
    client = _client_with(monkeypatch, responses=endpoint)

    with pytest.raises(GenerationServiceError):
        client.generate("Write scripts", model="gpt-5")


def test_build_generation_client_requires_a_key():
    assert build_generation_client({"OPENAI_API_KEY": ""}) is None
    assert isinstance(build_generation_client({"OPENAI_API_KEY": "sk-test"}), OpenAIGenerationClient)
