"""Typed payloads produced by the script generators and their shapes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .schema import ListField, ObjectShape, TextField

SCRIPT_ENTRY_SHAPE = ObjectShape(
    fields=(
        TextField("subtitle", min_length=3),
        TextField("content", min_length=10),
    )
)

SCRIPT_SET_SHAPE = ObjectShape(fields=(ListField("scripts", SCRIPT_ENTRY_SHAPE, exact=3),))

AUTOMATIC_SCRIPTS_SHAPE = ObjectShape(
    fields=(
        TextField("clientPersona", min_length=10),
        TextField("contentPillar", min_length=3),
        ListField("subPillars", TextField("subPillar", min_length=5), exact=5),
        ListField("scripts", SCRIPT_ENTRY_SHAPE, minimum=6),
    )
)

SUB_PILLARS_SHAPE = ObjectShape(
    fields=(
        TextField("contentPillar"),
        ListField("subPillars", TextField("subPillar"), minimum=1),
        TextField("clientPersona"),
    )
)


@dataclass
class ScriptEntry:
    subtitle: str
    content: str

    @classmethod
    def from_dict(cls, data: dict) -> "ScriptEntry":
        return cls(subtitle=data["subtitle"].strip(), content=data["content"].strip())

    def to_dict(self) -> Dict[str, str]:
        return {"subtitle": self.subtitle, "content": self.content}


@dataclass
class ScriptPayload:
    scripts: List[ScriptEntry]
    client_persona: Optional[str] = None
    content_pillar: Optional[str] = None
    sub_pillars: List[str] = field(default_factory=list)

    @classmethod
    def from_scripts(cls, data: dict) -> "ScriptPayload":
        """Build from the script list alone; other keys in ``data`` are ignored."""

        return cls(scripts=[ScriptEntry.from_dict(item) for item in data["scripts"]])

    @classmethod
    def from_dict(cls, data: dict) -> "ScriptPayload":
        return cls(
            scripts=[ScriptEntry.from_dict(item) for item in data["scripts"]],
            client_persona=_strip_optional(data.get("clientPersona")),
            content_pillar=_strip_optional(data.get("contentPillar")),
            sub_pillars=[str(item).strip() for item in data.get("subPillars") or []],
        )

    def to_dict(self) -> dict:
        payload: dict = {"scripts": [entry.to_dict() for entry in self.scripts]}
        if self.client_persona is not None:
            payload["clientPersona"] = self.client_persona
        if self.content_pillar is not None:
            payload["contentPillar"] = self.content_pillar
        if self.sub_pillars:
            payload["subPillars"] = list(self.sub_pillars)
        return payload


@dataclass
class SubPillarPayload:
    content_pillar: str
    sub_pillars: List[str]
    client_persona: str

    @classmethod
    def from_dict(cls, data: dict) -> "SubPillarPayload":
        return cls(
            content_pillar=data["contentPillar"].strip(),
            sub_pillars=[item.strip() for item in data["subPillars"]],
            client_persona=data["clientPersona"].strip(),
        )

    def to_dict(self) -> dict:
        return {
            "contentPillar": self.content_pillar,
            "subPillars": list(self.sub_pillars),
            "clientPersona": self.client_persona,
        }


def as_options(values: List[str]) -> List[Dict[str, str]]:
    """Render sub-pillars as the ``{value, label}`` options the client expects."""

    return [{"value": value, "label": value} for value in values]


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str):
        return value.strip()
    return None
