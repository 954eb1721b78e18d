"""Declarative shape checks for structured model output.

A shape is built from :class:`TextField`, :class:`ListField` and
:class:`ObjectShape`. :func:`validate_candidate` parses a JSON candidate,
checks it against a shape and returns either :class:`Valid` with a typed
payload or :class:`Invalid` with the reason. Only presence, types, element
counts and minimum string lengths are checked; free-form text such as script
bodies is never matched against wording. Keys that the shape does not name
are ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Valid(Generic[T]):
    payload: T


@dataclass(frozen=True)
class Invalid:
    reason: str


ValidationOutcome = Union[Valid, Invalid]


@dataclass(frozen=True)
class TextField:
    name: str
    min_length: int = 1

    def violations(self, value: Any, path: str) -> List[str]:
        if not isinstance(value, str):
            return [f"{path} must be a string"]
        length = len(value.strip())
        if length == 0:
            return [f"{path} must not be empty"]
        if length < self.min_length:
            return [f"{path} must be at least {self.min_length} characters"]
        return []


@dataclass(frozen=True)
class ObjectShape:
    fields: Tuple[Any, ...]

    def violations(self, value: Any, path: str = "") -> List[str]:
        if not isinstance(value, dict):
            return [f"{path or 'payload'} must be an object"]
        problems: List[str] = []
        for rule in self.fields:
            field_path = f"{path}.{rule.name}" if path else rule.name
            if rule.name not in value or value[rule.name] is None:
                problems.append(f"{field_path} is required")
                continue
            problems.extend(rule.violations(value[rule.name], field_path))
        return problems


@dataclass(frozen=True)
class ListField:
    name: str
    item: Union[TextField, ObjectShape]
    exact: Optional[int] = None
    minimum: Optional[int] = None

    def violations(self, value: Any, path: str) -> List[str]:
        if not isinstance(value, list):
            return [f"{path} must be a list"]
        problems: List[str] = []
        if self.exact is not None and len(value) != self.exact:
            problems.append(f"{path} must contain exactly {self.exact} items (got {len(value)})")
        if self.minimum is not None and len(value) < self.minimum:
            problems.append(f"{path} must contain at least {self.minimum} items (got {len(value)})")
        for index, element in enumerate(value):
            problems.extend(self.item.violations(element, f"{path}[{index}]"))
        return problems


def parse_json(candidate: str) -> Tuple[Optional[Any], Optional[str]]:
    try:
        return json.loads(candidate), None
    except (TypeError, ValueError, RecursionError) as exc:
        return None, f"Invalid JSON: {exc}"


def check_shape(data: Any, shape: ObjectShape) -> ValidationOutcome:
    problems = shape.violations(data)
    if problems:
        return Invalid("Invalid response structure: " + "; ".join(problems))
    return Valid(data)


def validate_candidate(
    candidate: str,
    shape: ObjectShape,
    build: Callable[[dict], T],
) -> ValidationOutcome:
    """Parse ``candidate`` and return ``Valid(build(data))`` if it fits ``shape``."""

    data, error = parse_json(candidate)
    if error is not None:
        return Invalid(error)

    outcome = check_shape(data, shape)
    if isinstance(outcome, Invalid):
        return outcome
    return Valid(build(data))


def required_keys(shape: ObjectShape) -> List[str]:
    return [rule.name for rule in shape.fields]
