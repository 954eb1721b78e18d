import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from reelscript.services.prompt_builder import build_prompt, join_labels
from reelscript.system_prompts import SYSTEM_PROMPTS, get_corrective_clause, get_prompt_max_new_tokens


def test_fields_follow_the_given_order_and_skip_empty_values():
    prompt = build_prompt(
        "  Template body  ",
        [("User Prompt", "Sell handmade soap"), ("Client Persona", ""), ("Content Pillar", "صابون طبيعي")],
    )

    assert prompt == "Template body\n\nUser Prompt: Sell handmade soap\nContent Pillar: صابون طبيعي"


def test_corrective_clause_only_after_first_attempt():
    fields = [("User Prompt", "Sell handmade soap")]
    clause = get_corrective_clause("scripts")

    first = build_prompt("Template", fields, attempt=1, corrective_clause=clause)
    second = build_prompt("Template", fields, attempt=2, corrective_clause=clause)

    assert clause not in first
    assert second.endswith(clause)
    assert second.startswith(first)


def test_join_labels_drops_blank_entries():
    assert join_labels(["Quick Wins", " ", "Fix a Problem "]) == "Quick Wins, Fix a Problem"


def test_default_templates_mention_their_output_keys():
    assert '"scripts"' in SYSTEM_PROMPTS["scripts"]["base"]
    for key in ("clientPersona", "contentPillar", "subPillars", "scripts"):
        assert key in SYSTEM_PROMPTS["automatic_scripts"]["base"]
    for key in ("contentPillar", "subPillars", "clientPersona"):
        assert key in SYSTEM_PROMPTS["sub_pillars"]["base"]


def test_max_new_tokens_lookup_uses_fallback_for_unknown_prompt():
    assert get_prompt_max_new_tokens("automatic_scripts") == 4000
    assert get_prompt_max_new_tokens("missing", fallback=128) == 128
