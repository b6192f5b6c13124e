"""Assertion evaluation against step and final outputs.

Pure functions: nothing here touches the database. A mismatch is a failed
verdict, never an exception; an assertion that cannot be evaluated (unknown
operator, bad regex) yields an errored verdict.
"""

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from src.flowcheck.models import AssertionKind

FINAL_TARGET = "final"


class _Missing:
    """Marker for "no output was produced", distinct from a JSON null."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Verdict:
    passed: bool
    message: str
    actual: Any = None
    expected: Any = None
    errored: bool = False
    assertion_id: str | None = None

    @property
    def status(self) -> str:
        if self.errored:
            return "error"
        return "passed" if self.passed else "failed"


def _show(value: Any) -> str:
    if value is MISSING:
        return "<missing>"
    try:
        return json.dumps(value, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(value)


def resolve_path(value: Any, path: str | None) -> Any:
    """Walk a dot path (``a.b[0].c``, optionally ``$.``-prefixed) into a value.

    Returns MISSING when any segment does not exist.
    """
    if not path or path == "$":
        return value
    if path.startswith("$."):
        path = path[2:]
    elif path.startswith("$"):
        path = path[1:]

    current = value
    for part in (p for p in re.split(r"\.|\[|\]", path) if p):
        if isinstance(current, Mapping):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, list):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                return MISSING
        else:
            return MISSING
    return current


def first_difference(actual: Any, expected: Any, path: str = "$") -> str | None:
    """Path of the first structural mismatch, or None if the values are equal.

    Booleans never equal numbers, and ints equal floats only by value.
    """
    if isinstance(actual, bool) or isinstance(expected, bool):
        if not (isinstance(actual, bool) and isinstance(expected, bool)) or actual != expected:
            return path
        return None
    if isinstance(actual, Mapping) and isinstance(expected, Mapping):
        for key in expected:
            if key not in actual:
                return f"{path}.{key}"
            diff = first_difference(actual[key], expected[key], f"{path}.{key}")
            if diff:
                return diff
        for key in actual:
            if key not in expected:
                return f"{path}.{key}"
        return None
    if isinstance(actual, list) and isinstance(expected, list):
        for index, (a, e) in enumerate(zip(actual, expected, strict=False)):
            diff = first_difference(a, e, f"{path}[{index}]")
            if diff:
                return diff
        if len(actual) != len(expected):
            return f"{path}[{min(len(actual), len(expected))}]"
        return None
    if isinstance(actual, (int, float)) and isinstance(expected, (int, float)):
        return None if actual == expected else path
    if type(actual) is not type(expected) or actual != expected:
        return path
    return None


def deep_equal(actual: Any, expected: Any) -> bool:
    return first_difference(actual, expected) is None


def _contains(actual: Any, expected: Any) -> bool | None:
    """Containment check; None when the types do not support it."""
    if isinstance(actual, str):
        return expected in actual if isinstance(expected, str) else None
    if isinstance(actual, list):
        return any(deep_equal(item, expected) for item in actual)
    if isinstance(actual, Mapping):
        if not isinstance(expected, Mapping):
            return None
        return all(key in actual and deep_equal(actual[key], value) for key, value in expected.items())
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, Mapping)):
        return len(value) == 0
    return False


_COMPARISONS = {
    "gt": (lambda a, e: a > e, ">"),
    "gte": (lambda a, e: a >= e, ">="),
    "lt": (lambda a, e: a < e, "<"),
    "lte": (lambda a, e: a <= e, "<="),
}


def _evaluate_custom(operator: str | None, actual: Any, expected: Any) -> tuple[bool, str, bool]:
    """Returns (passed, message, errored)."""
    if operator in _COMPARISONS:
        compare, symbol = _COMPARISONS[operator]
        if not (_is_number(actual) and _is_number(expected)):
            return False, f"Cannot compare {_show(actual)} {symbol} {_show(expected)}: not numbers", False
        passed = compare(actual, expected)
        return passed, f"Expected {_show(actual)} {symbol} {_show(expected)}", False

    if operator == "ne":
        passed = not deep_equal(actual, expected)
        return passed, f"Expected value to differ from {_show(expected)}", False

    if operator == "matches":
        if not isinstance(expected, str):
            return False, "Operator 'matches' needs a string pattern", True
        try:
            pattern = re.compile(expected)
        except re.error as e:
            return False, f"Invalid pattern {expected!r}: {e}", True
        passed = isinstance(actual, str) and pattern.search(actual) is not None
        return passed, f"Expected {_show(actual)} to match {expected!r}", False

    if operator == "length":
        length = len(actual) if isinstance(actual, (str, list, Mapping)) else None
        passed = length is not None and _is_number(expected) and length == expected
        return passed, f"Expected length {_show(expected)}, got {_show(length)}", False

    if operator == "has_property":
        passed = isinstance(actual, Mapping) and isinstance(expected, str) and expected in actual
        return passed, f"Expected object to have property {_show(expected)}", False

    if operator == "is_empty":
        return _is_empty(actual), f"Expected empty value, got {_show(actual)}", False
    if operator == "not_empty":
        return not _is_empty(actual), f"Expected non-empty value, got {_show(actual)}", False
    if operator == "is_true":
        return actual is True, f"Expected true, got {_show(actual)}", False
    if operator == "is_false":
        return actual is False, f"Expected false, got {_show(actual)}", False

    if operator == "not_contains":
        contained = _contains(actual, expected)
        if contained is None:
            return False, f"Cannot check whether {_show(actual)} contains {_show(expected)}", False
        return not contained, f"Expected {_show(actual)} not to contain {_show(expected)}", False

    if operator == "is_null":
        return actual is None, f"Expected null, got {_show(actual)}", False
    if operator == "is_not_null":
        return actual is not None, "Expected a non-null value", False

    return False, f"Unsupported custom operator: {operator!r}", True



def evaluate(assertion: Mapping[str, Any], actual: Any) -> Verdict:
    """Evaluate one assertion against the output produced for its target.

    Args:
        assertion: Assertion object (``kind``, ``expected``, optional ``path``
            and ``operator``).
        actual: The target's output, or MISSING if it produced none.
    """
    expected = assertion.get("expected")
    assertion_id = assertion.get("id")

    kind = assertion.get("kind")
    value = resolve_path(actual, assertion.get("path")) if actual is not MISSING else MISSING
    if value is MISSING:
        if actual is MISSING:
            return Verdict(
                False, "no output produced for target", None, expected, assertion_id=assertion_id
            )
        if kind == AssertionKind.CUSTOM and assertion.get("operator") == "is_null":
            # An absent value inside a produced output counts as null
            return Verdict(True, "Value is absent", None, expected, assertion_id=assertion_id)
        message = f"no value at path {assertion.get('path')!r}"
        return Verdict(False, message, None, expected, assertion_id=assertion_id)

    if kind == AssertionKind.EQUALS:
        diff = first_difference(value, expected)
        if diff is None:
            return Verdict(True, "Value equals expected", value, expected, assertion_id=assertion_id)
        return Verdict(
            False,
            f"Expected {_show(expected)}, got {_show(value)} (first difference at {diff})",
            value,
            expected,
            assertion_id=assertion_id,
        )

    if kind == AssertionKind.CONTAINS:
        contained = _contains(value, expected)
        if contained is None:
            message = f"Cannot check whether {_show(value)} contains {_show(expected)}"
        elif contained:
            message = "Value contains expected"
        else:
            message = f"Expected {_show(value)} to contain {_show(expected)}"
        return Verdict(bool(contained), message, value, expected, assertion_id=assertion_id)

    if kind == AssertionKind.EXISTS:
        passed = value is not None
        message = "Value exists" if passed else "Expected a value, got null"
        return Verdict(passed, message, value, expected, assertion_id=assertion_id)

    if kind == AssertionKind.CUSTOM:
        passed, message, errored = _evaluate_custom(assertion.get("operator"), value, expected)
        if passed:
            message = f"Custom assertion '{assertion.get('operator')}' passed"
        return Verdict(passed, message, value, expected, errored=errored, assertion_id=assertion_id)

    return Verdict(
        False, f"Unknown assertion kind: {kind!r}", value, expected, errored=True, assertion_id=assertion_id
    )


def output_for_target(target: str, outputs: Mapping[str, Any]) -> Any:
    """The value an assertion targets: one step's output, or all of them for ``final``."""
    if target == FINAL_TARGET:
        return dict(outputs)
    return outputs.get(target, MISSING)


def evaluate_all(
    assertions: list[Mapping[str, Any]], outputs: Mapping[str, Any]
) -> list[Verdict]:
    """Evaluate a batch of assertions against ``{step_id: output}``."""
    return [evaluate(a, output_for_target(str(a.get("target")), outputs)) for a in assertions]
