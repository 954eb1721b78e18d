"""Script and sub-pillar generators built on the structured-generation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from flask import current_app

from ..system_prompts import HOOK_TYPES, get_corrective_clause, get_prompt_max_new_tokens
from .fallbacks import fallback_automatic_scripts, fallback_script_set, fallback_sub_pillars
from .generation_client import TokenUsage
from .generation_requests import PromptRequest, ScriptRequest
from .history import record_generation_history
from .payloads import (
    AUTOMATIC_SCRIPTS_SHAPE,
    SCRIPT_SET_SHAPE,
    SUB_PILLARS_SHAPE,
    ScriptPayload,
    SubPillarPayload,
    as_options,
)
from .pipeline import PipelineResult, StructuredGenerationTask, run_structured_generation
from .prompt_builder import PromptField, build_prompt, join_labels
from .prompt_config import resolve_prompt_template
from .sanitizer import strip_and_collapse, strip_code_fences
from .schema import ObjectShape, required_keys, validate_candidate

SCRIPTS = "scripts"
AUTOMATIC_SCRIPTS = "automatic_scripts"
SUB_PILLARS = "sub_pillars"

_HOOK_LABELS = {slug: label for slug, label, _ in HOOK_TYPES}


@dataclass
class ScriptGenerationResult:
    payload: Any
    usage: TokenUsage
    used_fallback: bool
    attempts: int
    model: Optional[str] = None
    history_id: Optional[str] = None

    def to_response(self) -> dict:
        if isinstance(self.payload, SubPillarPayload):
            body = {
                "contentPillar": self.payload.content_pillar,
                "subPillars": as_options(self.payload.sub_pillars),
                "clientPersona": self.payload.client_persona,
            }
        else:
            body = self.payload.to_dict()
            if "subPillars" in body:
                body["subPillars"] = as_options(body["subPillars"])
            body["historyId"] = self.history_id
        body.update(
            {
                "usedFallback": self.used_fallback,
                "attempts": self.attempts,
                "tokenUsage": self.usage.to_dict(),
            }
        )
        return body


def hook_labels(hook_types: Sequence[str]) -> List[str]:
    return [_HOOK_LABELS.get(value, value) for value in hook_types]


def generate_scripts(
    request: ScriptRequest,
    *,
    user_id: int,
    client: Optional[Any],
    session,
    sleep: Optional[Callable[[float], None]] = None,
) -> ScriptGenerationResult:
    """Generate exactly three scripts for the chosen sub-pillars and hook types."""

    fields: List[PromptField] = [
        ("User Prompt", request.user_prompt),
        ("Client Persona", request.client_persona),
        ("Content Pillar", request.content_pillar),
        ("Sub-Pillars", join_labels(request.sub_pillar_labels)),
        ("Chosen Sub-Pillars", join_labels(request.chosen_labels)),
        ("Hook Types", join_labels(hook_labels(request.hook_types))),
    ]
    outcome, model = _run_variant(
        SCRIPTS,
        fields,
        shape=SCRIPT_SET_SHAPE,
        build=ScriptPayload.from_scripts,
        fallback=fallback_script_set,
        max_attempts=current_app.config["SCRIPT_MAX_ATTEMPTS"],
        default_model=current_app.config["SCRIPT_MODEL"],
        client=client,
        session=session,
        sleep=sleep,
    )

    history_id = record_generation_history(
        session,
        user_id=user_id,
        variant=SCRIPTS,
        prompt=request.user_prompt,
        payload=outcome.payload,
        usage=outcome.usage,
        model_code_name=model,
        client_persona=request.client_persona,
        content_pillar=request.content_pillar,
        sub_pillars=request.sub_pillar_labels,
        chosen_sub_pillars=request.chosen_labels,
        hook_types=request.hook_types,
        used_fallback=outcome.used_fallback,
        attempt_count=outcome.attempt_count,
    )
    return _result(outcome, model, history_id)


def generate_automatic_scripts(
    request: PromptRequest,
    *,
    user_id: int,
    client: Optional[Any],
    session,
    sleep: Optional[Callable[[float], None]] = None,
) -> ScriptGenerationResult:
    """Derive persona, pillar and sub-pillars from a prompt and write at least six scripts."""

    outcome, model = _run_variant(
        AUTOMATIC_SCRIPTS,
        [("User Prompt", request.user_prompt)],
        shape=AUTOMATIC_SCRIPTS_SHAPE,
        build=ScriptPayload.from_dict,
        fallback=fallback_automatic_scripts,
        max_attempts=current_app.config["AUTOMATIC_SCRIPT_MAX_ATTEMPTS"],
        default_model=current_app.config["SCRIPT_MODEL"],
        client=client,
        session=session,
        sleep=sleep,
    )

    payload: ScriptPayload = outcome.payload
    history_id = record_generation_history(
        session,
        user_id=user_id,
        variant=AUTOMATIC_SCRIPTS,
        prompt=request.user_prompt,
        payload=payload,
        usage=outcome.usage,
        model_code_name=model,
        chosen_sub_pillars=payload.sub_pillars,
        hook_types=[slug for slug, _, _ in HOOK_TYPES],
        used_fallback=outcome.used_fallback,
        attempt_count=outcome.attempt_count,
    )
    return _result(outcome, model, history_id)


def generate_sub_pillars(
    request: PromptRequest,
    *,
    client: Optional[Any],
    session,
    sleep: Optional[Callable[[float], None]] = None,
) -> ScriptGenerationResult:
    """Suggest a content pillar, its sub-pillars and a client persona. Nothing is recorded."""

    outcome, model = _run_variant(
        SUB_PILLARS,
        [("User Prompt", request.user_prompt)],
        shape=SUB_PILLARS_SHAPE,
        build=SubPillarPayload.from_dict,
        fallback=fallback_sub_pillars,
        max_attempts=current_app.config["SUB_PILLAR_MAX_ATTEMPTS"],
        default_model=current_app.config["SUB_PILLAR_MODEL"],
        client=client,
        session=session,
        sleep=sleep,
        sanitize=strip_and_collapse,
    )
    return _result(outcome, model, None)


def _run_variant(
    variant: str,
    fields: List[PromptField],
    *,
    shape: ObjectShape,
    build: Callable[[dict], Any],
    fallback: Callable[[], Any],
    max_attempts: int,
    default_model: str,
    client: Optional[Any],
    session,
    sleep: Optional[Callable[[float], None]],
    sanitize: Callable[[str], str] = strip_code_fences,
):
    template = resolve_prompt_template(session, variant, required_keys=required_keys(shape))
    current_app.logger.debug("%s uses prompt template %s", variant, template.template_id or "default")
    corrective_clause = get_corrective_clause(variant)
    model = template.model_code_name or default_model

    task = StructuredGenerationTask(
        name=variant,
        build_prompt=lambda attempt: build_prompt(
            template.prompt,
            fields,
            attempt=attempt,
            corrective_clause=corrective_clause,
        ),
        validate=lambda candidate: validate_candidate(candidate, shape, build),
        fallback=fallback,
        max_attempts=max_attempts,
        retry_delay=current_app.config["GENERATION_RETRY_DELAY"],
        sanitize=sanitize,
        max_tokens=get_prompt_max_new_tokens(variant),
    )

    run_kwargs = {}
    if sleep is not None:
        run_kwargs["sleep"] = sleep
    outcome = run_structured_generation(
        task,
        client=client,
        model=model,
        temperature=current_app.config["GENERATION_TEMPERATURE"],
        **run_kwargs,
    )
    if outcome.used_fallback:
        current_app.logger.warning(
            "%s generation used the fallback payload after %d attempts. Last error: %s",
            variant,
            outcome.attempt_count,
            outcome.last_error or "no generation client configured",
        )
    return outcome, model


def _result(outcome: PipelineResult, model: str, history_id: Optional[str]) -> ScriptGenerationResult:
    return ScriptGenerationResult(
        payload=outcome.payload,
        usage=outcome.usage,
        used_fallback=outcome.used_fallback,
        attempts=outcome.attempt_count,
        model=model,
        history_id=history_id,
    )
