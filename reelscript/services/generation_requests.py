"""Parsing of incoming generation requests.

Requests are checked before any generation call is made. Every problem is
collected so the caller sees all of them at once in the error details.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .errors import InputValidationError

MIN_PROMPT_LENGTH = 10
MIN_PERSONA_LENGTH = 10
MIN_PILLAR_LENGTH = 3


def _text(payload: Mapping[str, Any], key: str, min_length: int, problems: List[str]) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        problems.append(f"{key} is required")
        return ""
    value = value.strip()
    if len(value) < min_length:
        problems.append(f"{key} must be at least {min_length} characters")
    return value


def _string_list(payload: Mapping[str, Any], key: str, problems: List[str]) -> List[str]:
    value = payload.get(key)
    if not isinstance(value, list) or not value:
        problems.append(f"{key} must be a non-empty list")
        return []
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    if len(items) != len(value):
        problems.append(f"{key} must only contain non-empty strings")
    return items


def _options(payload: Mapping[str, Any], key: str, problems: List[str]) -> List[Dict[str, str]]:
    value = payload.get(key)
    if not isinstance(value, list) or not value:
        problems.append(f"{key} must be a non-empty list")
        return []
    options: List[Dict[str, str]] = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            problems.append(f"{key}[{index}] must be an object with value and label")
            continue
        option_value = item.get("value")
        label = item.get("label")
        if not isinstance(option_value, str) or not option_value.strip():
            problems.append(f"{key}[{index}].value is required")
            continue
        if not isinstance(label, str) or not label.strip():
            problems.append(f"{key}[{index}].label is required")
            continue
        options.append({"value": option_value.strip(), "label": label.strip()})
    return options


def _as_mapping(payload: Any) -> Mapping[str, Any]:
    return payload if isinstance(payload, Mapping) else {}


def _raise_if(problems: List[str]) -> None:
    if problems:
        raise InputValidationError("Invalid request data", details=problems)


@dataclass
class PromptRequest:
    """Request carrying only a free-text prompt."""

    user_prompt: str

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "PromptRequest":
        payload = _as_mapping(payload)
        problems: List[str] = []
        user_prompt = _text(payload, "userPrompt", MIN_PROMPT_LENGTH, problems)
        _raise_if(problems)
        return cls(user_prompt=user_prompt)


@dataclass
class ScriptRequest:
    user_prompt: str
    client_persona: str
    content_pillar: str
    sub_pillars: List[Dict[str, str]] = field(default_factory=list)
    chosen_sub_pillars: List[str] = field(default_factory=list)
    hook_types: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "ScriptRequest":
        payload = _as_mapping(payload)
        problems: List[str] = []
        request = cls(
            user_prompt=_text(payload, "userPrompt", MIN_PROMPT_LENGTH, problems),
            client_persona=_text(payload, "clientPersona", MIN_PERSONA_LENGTH, problems),
            content_pillar=_text(payload, "contentPillar", MIN_PILLAR_LENGTH, problems),
            sub_pillars=_options(payload, "subPillars", problems),
            chosen_sub_pillars=_string_list(payload, "chosenSubPillars", problems),
            hook_types=_string_list(payload, "hookType", problems),
        )

        known = {option["value"] for option in request.sub_pillars}
        if known:
            unknown = [value for value in request.chosen_sub_pillars if value not in known]
            if unknown:
                problems.append("chosenSubPillars must reference values from subPillars: " + ", ".join(unknown))

        _raise_if(problems)
        return request

    @property
    def chosen_labels(self) -> List[str]:
        labels = {option["value"]: option["label"] for option in self.sub_pillars}
        return [labels.get(value, value) for value in self.chosen_sub_pillars]

    @property
    def sub_pillar_labels(self) -> List[str]:
        return [option["label"] for option in self.sub_pillars]
