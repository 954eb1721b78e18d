"""Resolve which instruction template and model a generator should use."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..models import PromptTemplate
from ..system_prompts import get_system_prompt
from .errors import PersistenceError


@dataclass
class ResolvedTemplate:
    prompt: str
    model_code_name: Optional[str]
    template_id: Optional[str] = None


def missing_keys(prompt: str, keys: Iterable[str]) -> List[str]:
    return [key for key in keys if key not in prompt]


def resolve_prompt_template(session, variant: str, *, required_keys: Iterable[str]) -> ResolvedTemplate:
    """Return the current template for ``variant`` or the built-in default.

    A current template must mention every top-level key the variant's output
    requires. Templates that do not are reported in the log and skipped so a
    prompt written for another generator never drives this one.
    """

    try:
        current = (
            session.query(PromptTemplate)
            .filter_by(variant=variant, is_current=True)
            .order_by(PromptTemplate.updated_at.desc())
            .first()
        )
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch current prompt for %s", variant)
        raise PersistenceError("Failed to fetch current prompt", details=[str(exc)]) from exc

    default = ResolvedTemplate(prompt=get_system_prompt(variant), model_code_name=None)
    if current is None:
        current_app.logger.info("No current prompt template for %s; using default.", variant)
        return default

    absent = missing_keys(current.prompt or "", required_keys)
    if absent:
        current_app.logger.warning(
            "Current prompt template %s for %s does not mention %s; using default.",
            current.id,
            variant,
            ", ".join(absent),
        )
        return default

    return ResolvedTemplate(
        prompt=current.prompt,
        model_code_name=(current.model_code_name or "").strip() or None,
        template_id=current.id,
    )
