from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple


PromptField = Tuple[str, Optional[str]]


def build_prompt(
    template: str,
    fields: Iterable[PromptField],
    *,
    attempt: int = 1,
    corrective_clause: Optional[str] = None,
) -> str:
    """Join ``template`` with ``Label: value`` lines in the given order.

    Fields whose value is empty are skipped. From the second attempt on the
    ``corrective_clause`` is appended as its own paragraph.
    """

    lines = [f"{label}: {value}" for label, value in fields if value]
    prompt = template.strip()
    if lines:
        prompt = f"{prompt}\n\n" + "\n".join(lines)
    if attempt > 1 and corrective_clause:
        prompt = f"{prompt}\n\n{corrective_clause.strip()}"
    return prompt


def join_labels(values: Sequence[str]) -> str:
    return ", ".join(value.strip() for value in values if value and value.strip())
