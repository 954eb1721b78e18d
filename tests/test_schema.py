import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from reelscript.services.fallbacks import (
    fallback_automatic_scripts,
    fallback_script_set,
    fallback_sub_pillars,
)
from reelscript.services.payloads import (
    AUTOMATIC_SCRIPTS_SHAPE,
    SCRIPT_SET_SHAPE,
    SUB_PILLARS_SHAPE,
    ScriptPayload,
    SubPillarPayload,
)
from reelscript.services.schema import Invalid, Valid, required_keys, validate_candidate


def _script(subtitle="نصيحة سريعة", content="<p>ابدأ نهارك بخطة واضحة.</p>"):
    return {"subtitle": subtitle, "content": content}


def test_exactly_three_scripts_validate():
    candidate = json.dumps({"scripts": [_script(), _script(), _script()]})

    outcome = validate_candidate(candidate, SCRIPT_SET_SHAPE, ScriptPayload.from_dict)

    assert isinstance(outcome, Valid)
    assert len(outcome.payload.scripts) == 3
    assert outcome.payload.scripts[0].subtitle == "نصيحة سريعة"


def test_four_scripts_fail_when_exactly_three_required():
    candidate = json.dumps({"scripts": [_script() for _ in range(4)]})

    outcome = validate_candidate(candidate, SCRIPT_SET_SHAPE, ScriptPayload.from_dict)

    assert isinstance(outcome, Invalid)
    assert "exactly 3 items (got 4)" in outcome.reason


def test_short_fields_are_reported_with_their_path():
    candidate = json.dumps({"scripts": [_script(subtitle="ab"), _script(content="  short  "), _script()]})

    outcome = validate_candidate(candidate, SCRIPT_SET_SHAPE, ScriptPayload.from_dict)

    assert isinstance(outcome, Invalid)
    assert "scripts[0].subtitle must be at least 3 characters" in outcome.reason
    assert "scripts[1].content must be at least 10 characters" in outcome.reason


def test_invalid_json_is_reported():
    outcome = validate_candidate("{not json", SCRIPT_SET_SHAPE, ScriptPayload.from_dict)

    assert isinstance(outcome, Invalid)
    assert outcome.reason.startswith("Invalid JSON")


def test_extra_keys_are_ignored():
    candidate = json.dumps({"scripts": [_script()] * 3, "notes": "ignored"})

    assert isinstance(validate_candidate(candidate, SCRIPT_SET_SHAPE, ScriptPayload.from_dict), Valid)


def test_automatic_shape_requires_exactly_five_sub_pillars_and_six_scripts():
    data = {
        "clientPersona": "Young urban parents looking for quick healthy recipes",
        "contentPillar": "ماكلة صحية",
        "subPillars": ["وصفات سريعة للفطور"] * 4,
        "scripts": [_script()] * 5,
    }

    outcome = validate_candidate(json.dumps(data), AUTOMATIC_SCRIPTS_SHAPE, ScriptPayload.from_dict)

    assert isinstance(outcome, Invalid)
    assert "subPillars must contain exactly 5 items (got 4)" in outcome.reason
    assert "scripts must contain at least 6 items (got 5)" in outcome.reason


def test_missing_field_is_required():
    outcome = validate_candidate(
        json.dumps({"contentPillar": "ماكلة", "subPillars": ["فطور"]}),
        SUB_PILLARS_SHAPE,
        SubPillarPayload.from_dict,
    )

    assert isinstance(outcome, Invalid)
    assert "clientPersona is required" in outcome.reason


def test_fallback_payloads_pass_their_own_shapes():
    cases = [
        (fallback_script_set(), SCRIPT_SET_SHAPE, ScriptPayload.from_dict),
        (fallback_automatic_scripts(), AUTOMATIC_SCRIPTS_SHAPE, ScriptPayload.from_dict),
        (fallback_sub_pillars(), SUB_PILLARS_SHAPE, SubPillarPayload.from_dict),
    ]

    for payload, shape, build in cases:
        outcome = validate_candidate(json.dumps(payload.to_dict()), shape, build)
        assert isinstance(outcome, Valid), getattr(outcome, "reason", None)


def test_required_keys_lists_top_level_fields():
    assert required_keys(AUTOMATIC_SCRIPTS_SHAPE) == ["clientPersona", "contentPillar", "subPillars", "scripts"]


def test_deeply_nested_json_is_reported_as_invalid():
    candidate = "[" * 100000 + "]" * 100000

    outcome = validate_candidate(candidate, SCRIPT_SET_SHAPE, ScriptPayload.from_scripts)

    assert isinstance(outcome, Invalid)
    assert outcome.reason.startswith("Invalid JSON")


def test_script_set_builder_keeps_only_scripts():
    candidate = json.dumps({"scripts": [_script()] * 3, "subPillars": 5, "clientPersona": "ignored"})

    outcome = validate_candidate(candidate, SCRIPT_SET_SHAPE, ScriptPayload.from_scripts)

    assert isinstance(outcome, Valid)
    assert outcome.payload.to_dict() == {"scripts": [_script()] * 3}
