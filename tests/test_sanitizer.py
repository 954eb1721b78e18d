import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from reelscript.services.sanitizer import collapse_whitespace, strip_and_collapse, strip_code_fences


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n{"a": 1}\n```', '{"a": 1}'),
        ('```javascript\n{"a": 1}\n```', '{"a": 1}'),
        ('```JSON {"a": 1} ```', '{"a": 1}'),
        ('  {"a": 1}  ', '{"a": 1}'),
        ('```json\n```json\n{"a": 1}\n```\n```', '{"a": 1}'),
        ("", ""),
    ],
)
def test_strip_code_fences(raw, expected):
    assert strip_code_fences(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ['```json\n{"a": 1}\n```', "``````", "plain text", '```JSON {"b": [1, 2]} ```'],
)
def test_sanitizers_are_idempotent(raw):
    once = strip_code_fences(raw)
    assert strip_code_fences(once) == once

    collapsed = strip_and_collapse(raw)
    assert strip_and_collapse(collapsed) == collapsed


def test_collapse_whitespace_folds_newlines_and_runs():
    assert collapse_whitespace('{\n  "a":\r\n\t1\n}') == '{ "a": 1 }'
