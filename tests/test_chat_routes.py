import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from reelscript import create_app
from reelscript.config import TestConfig
from reelscript.extensions import db
from reelscript.models import AIModel, ApiUsage, Chat, Message, User
from reelscript.services.generation_client import GenerationResult, TokenUsage


class FakeChatClient:
    def __init__(self):
        self.calls = []
        self.fail_titles = False

    def chat(self, messages, *, model, system=None, temperature=None, max_tokens=None):
        self.calls.append({"messages": list(messages), "model": model, "system": system})
        if model == TestConfig.TITLE_MODEL:
            if self.fail_titles:
                raise RuntimeError("title model unavailable")
            return GenerationResult(text='"Meal prep ideas"', usage=TokenUsage(5, 3, 8), model=model)
        return GenerationResult(text=f"Reply #{len(self.calls)}", usage=TokenUsage(12, 8, 20), model=model)


@pytest.fixture
def fake_client():
    return FakeChatClient()


@pytest.fixture
def app_instance(fake_client):
    app = create_app(TestConfig, generation_client=fake_client)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app_instance):
    return app_instance.test_client()


def _make_user(email):
    user = User(email=email, is_verified=True)
    user.set_password("password123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def user(app_instance):
    return _make_user("chatter@example.com")


@pytest.fixture
def ai_model(app_instance):
    model = AIModel(name="gpt-4o-mini", display_name="GPT-4o mini", custom_prompt="Answer in Darja.")
    db.session.add(model)
    db.session.commit()
    return model


def _login(client, email="chatter@example.com"):
    client.post("/auth/login", json={"email": email, "password": "password123"})


def _send(client, model_id, text, chat_id="chat-1"):
    return client.post(
        "/chat/api/chat",
        json={"id": chat_id, "selectedModelId": model_id, "messages": [{"role": "user", "content": text}]},
    )


def test_first_message_creates_titled_chat(client, user, ai_model, fake_client):
    _login(client)

    response = _send(client, ai_model.id, "Give me three meal prep ideas")

    assert response.status_code == 200
    data = response.get_json()
    assert data["chatId"] == "chat-1"
    assert data["title"] == "Meal prep ideas"
    assert data["message"]["role"] == "assistant"
    assert data["tokenUsage"]["total_tokens"] == 20

    chat_call = fake_client.calls[-1]
    assert chat_call["model"] == "gpt-4o-mini"
    assert chat_call["system"] == "Answer in Darja."
    assert Message.query.filter_by(chat_id="chat-1").count() == 2
    assert {usage.type for usage in ApiUsage.query.all()} == {"chat", "title-generation"}


def test_only_recent_messages_are_sent(client, user, ai_model, fake_client):
    _login(client)
    for text in ("first question", "second question", "third question"):
        assert _send(client, ai_model.id, text).status_code == 200

    sent = fake_client.calls[-1]["messages"]
    assert len(sent) == TestConfig.CHAT_HISTORY_WINDOW
    assert sent[-1] == {"role": "user", "content": "third question"}
    assert "first question" not in [message["content"] for message in sent]


def test_title_falls_back_to_first_message(client, user, ai_model, fake_client):
    fake_client.fail_titles = True
    _login(client)

    response = _send(client, ai_model.id, "  How do I   price my handmade soap?  ")

    assert response.get_json()["title"] == "How do I price my handmade soap?"


def test_chat_of_another_user_is_unauthorized(client, user, ai_model):
    owner = _make_user("owner@example.com")
    db.session.add(Chat(id="private-chat", user_id=owner.id, title="Secret"))
    db.session.commit()
    _login(client)

    assert _send(client, ai_model.id, "let me in", chat_id="private-chat").status_code == 401
    assert client.get("/chat/api/chats/private-chat").status_code == 401


def test_unknown_model_and_missing_user_message(client, user, ai_model, fake_client):
    _login(client)

    assert _send(client, "missing-model", "hello there").status_code == 404

    response = client.post(
        "/chat/api/chat",
        json={"id": "chat-2", "selectedModelId": ai_model.id, "messages": [{"role": "assistant", "content": "hi"}]},
    )
    assert response.status_code == 400
    assert fake_client.calls == []


def test_list_read_and_delete_chats(client, user, ai_model):
    _login(client)
    _send(client, ai_model.id, "Give me three meal prep ideas")

    chats = client.get("/chat/api/chats").get_json()["chats"]
    assert [chat["id"] for chat in chats] == ["chat-1"]

    transcript = client.get("/chat/api/chats/chat-1").get_json()
    assert [message["role"] for message in transcript["messages"]] == ["user", "assistant"]

    assert client.delete("/chat/api/chats/chat-1").status_code == 200
    assert client.get("/chat/api/chats").get_json()["chats"] == []
    assert client.get("/chat/api/chats/chat-1").status_code == 404


def test_active_models_are_listed(client, user, ai_model):
    db.session.add(AIModel(name="gpt-3.5-turbo", is_active=False))
    db.session.commit()
    _login(client)

    models = client.get("/chat/api/models").get_json()["models"]

    assert [model["name"] for model in models] == ["gpt-4o-mini"]
