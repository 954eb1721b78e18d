"""Persistence of accepted generator output."""

from __future__ import annotations

from typing import List, Optional, Sequence

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..models import GeneratedScriptHistory
from .errors import NotFoundError
from .generation_client import TokenUsage
from .payloads import ScriptPayload


def record_generation_history(
    session,
    *,
    user_id: int,
    variant: str,
    prompt: str,
    payload: ScriptPayload,
    usage: TokenUsage,
    model_code_name: Optional[str] = None,
    client_persona: Optional[str] = None,
    content_pillar: Optional[str] = None,
    sub_pillars: Optional[Sequence] = None,
    chosen_sub_pillars: Optional[Sequence[str]] = None,
    hook_types: Optional[Sequence[str]] = None,
    used_fallback: bool = False,
    attempt_count: int = 0,
) -> Optional[str]:
    """Insert a history row and return its id.

    A failed insert is logged and rolled back; ``None`` is returned so the
    caller can still answer with the generated payload.
    """

    entry = GeneratedScriptHistory(
        user_id=user_id,
        variant=variant,
        prompt=prompt,
        client_persona=client_persona if client_persona is not None else payload.client_persona,
        content_pillar=content_pillar if content_pillar is not None else payload.content_pillar,
        sub_pillars=list(sub_pillars) if sub_pillars is not None else list(payload.sub_pillars),
        chosen_sub_pillars=list(chosen_sub_pillars or []),
        hook_types=list(hook_types or []),
        scripts=[script.to_dict() for script in payload.scripts],
        token_usage=usage.to_dict(),
        model_code_name=model_code_name,
        used_fallback=used_fallback,
        attempt_count=attempt_count,
    )
    try:
        session.add(entry)
        session.commit()
    except SQLAlchemyError:
        current_app.logger.exception("Error inserting generated script history for user %s", user_id)
        session.rollback()
        return None

    current_app.logger.info("History entry created: %s", entry.id)
    return entry.id


def list_history(session, user_id: int, *, limit: int = 50) -> List[GeneratedScriptHistory]:
    return (
        session.query(GeneratedScriptHistory)
        .filter_by(user_id=user_id, is_deleted=False)
        .order_by(GeneratedScriptHistory.timestamp.desc())
        .limit(limit)
        .all()
    )


def get_history_entry(session, user_id: int, history_id: str) -> GeneratedScriptHistory:
    entry = (
        session.query(GeneratedScriptHistory)
        .filter_by(id=history_id, user_id=user_id, is_deleted=False)
        .first()
    )
    if entry is None:
        raise NotFoundError("History entry not found")
    return entry


def soft_delete_history(session, user_id: int, history_id: str) -> GeneratedScriptHistory:
    entry = get_history_entry(session, user_id, history_id)
    entry.is_deleted = True
    session.commit()
    return entry
