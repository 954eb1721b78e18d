"""Chat conversations with admin-configured models."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..models import AIModel, ApiUsage, Chat, Message
from .errors import AuthenticationError, InputValidationError, NotFoundError, PersistenceError
from .generation_client import GenerationResult, GenerationServiceError, TokenUsage

TITLE_MAX_LENGTH = 80

TITLE_INSTRUCTIONS = (
    "You will generate a short title based on the first message a user begins a conversation with. "
    "Keep it under 80 characters, summarise the message and do not use quotes or colons."
)


@dataclass
class ChatReply:
    chat: Chat
    message: Message
    usage: TokenUsage

    def to_dict(self) -> dict:
        return {
            "chatId": self.chat.id,
            "title": self.chat.title,
            "message": self.message.to_dict(),
            "tokenUsage": self.usage.to_dict(),
        }


def last_user_message(messages: Sequence[Any]) -> str:
    for item in reversed(list(messages or [])):
        if isinstance(item, dict) and item.get("role") == "user":
            content = item.get("content")
            if isinstance(content, str) and content.strip():
                return content.strip()
    raise InputValidationError("No user message found")


def truncate_title(text: str, limit: int = TITLE_MAX_LENGTH) -> str:
    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    return collapsed[: limit - 1].rstrip() + "…"


def send_chat_message(
    session,
    *,
    user_id: int,
    chat_id: Optional[str],
    messages: Sequence[Any],
    model_id: str,
    client: Optional[Any],
) -> ChatReply:
    """Append the newest user message to a chat and store the model's reply.

    A new chat is created (and titled) when ``chat_id`` is unknown. Only the
    last ``CHAT_HISTORY_WINDOW`` stored messages are sent to the model.
    """

    ai_model = session.get(AIModel, model_id) if model_id else None
    if ai_model is None or not ai_model.is_active:
        raise NotFoundError("Model not found")

    content = last_user_message(messages)

    if client is None:
        raise GenerationServiceError("Generation service is not configured")

    chat = session.get(Chat, chat_id) if chat_id else None
    if chat is not None and (chat.deleted_at is not None or chat.user_id != user_id):
        raise AuthenticationError("Unauthorized")

    if chat is None:
        title = generate_title(session, content, client=client)
        chat = Chat(user_id=user_id, title=title)
        if chat_id:
            chat.id = chat_id
        session.add(chat)

    window = max(int(current_app.config["CHAT_HISTORY_WINDOW"]), 1)
    earlier = list(chat.messages)[-(window - 1):] if window > 1 else []
    conversation = [{"role": item.role, "content": item.content} for item in earlier]
    conversation.append({"role": "user", "content": content})

    session.add(Message(chat=chat, role="user", content=content))
    _commit(session, "Failed to save chat message")

    started = time.perf_counter()
    result: GenerationResult = client.chat(
        conversation,
        model=ai_model.name,
        system=ai_model.custom_prompt or None,
        temperature=_coalesce(ai_model.temperature, current_app.config["CHAT_DEFAULT_TEMPERATURE"]),
        max_tokens=ai_model.max_tokens or current_app.config["CHAT_DEFAULT_MAX_TOKENS"],
    )
    duration = time.perf_counter() - started

    reply = Message(
        chat=chat,
        role="assistant",
        content=result.text,
        model=ai_model.name,
        prompt_tokens=result.usage.prompt_tokens,
        completion_tokens=result.usage.completion_tokens,
        total_tokens=result.usage.total_tokens,
        duration=duration,
    )
    session.add(reply)
    _commit(session, "Failed to save assistant message")

    record_api_usage(session, chat_id=chat.id, model=ai_model.name, kind="chat", usage=result.usage, duration=duration)
    return ChatReply(chat=chat, message=reply, usage=result.usage)


def generate_title(session, content: str, *, client: Any) -> str:
    """Ask the title model for a short chat title, falling back to the message itself."""

    model = current_app.config["TITLE_MODEL"]
    started = time.perf_counter()
    try:
        result = client.chat(
            [{"role": "user", "content": content}],
            model=model,
            system=TITLE_INSTRUCTIONS,
            max_tokens=60,
        )
    except Exception as exc:  # title generation is optional
        current_app.logger.warning("Title generation failed; using the first message. Error: %s", exc)
        return truncate_title(content)

    record_api_usage(
        session,
        chat_id=None,
        model=model,
        kind="title-generation",
        usage=result.usage,
        duration=time.perf_counter() - started,
    )
    title = (result.text or "").strip().strip('"').strip()
    return truncate_title(title or content)


def record_api_usage(
    session,
    *,
    chat_id: Optional[str],
    model: str,
    kind: str,
    usage: TokenUsage,
    duration: Optional[float] = None,
) -> None:
    try:
        session.add(
            ApiUsage(
                chat_id=chat_id,
                model=model,
                type=kind,
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
                total_tokens=usage.total_tokens,
                duration=duration,
                completed_at=datetime.utcnow(),
            )
        )
        session.commit()
    except SQLAlchemyError:
        current_app.logger.exception("Failed to save token usage for %s", kind)
        session.rollback()


def list_chats(session, user_id: int) -> List[Chat]:
    return (
        session.query(Chat)
        .filter(Chat.user_id == user_id, Chat.deleted_at.is_(None))
        .order_by(Chat.created_at.desc())
        .all()
    )


def get_chat(session, user_id: int, chat_id: str) -> Chat:
    chat = session.get(Chat, chat_id)
    if chat is None or chat.deleted_at is not None:
        raise NotFoundError("Chat not found")
    if chat.user_id != user_id:
        raise AuthenticationError("Unauthorized")
    return chat


def chat_transcript(chat: Chat) -> Dict[str, Any]:
    data = chat.to_dict()
    data["messages"] = [message.to_dict() for message in chat.messages]
    return data


def delete_chat(session, user_id: int, chat_id: str) -> Chat:
    chat = get_chat(session, user_id, chat_id)
    chat.deleted_at = datetime.utcnow()
    _commit(session, "Failed to delete chat")
    return chat


def _commit(session, message: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        current_app.logger.exception(message)
        raise PersistenceError(message, details=[str(exc)]) from exc


def _coalesce(value: Optional[float], default: float) -> float:
    return default if value is None else value
