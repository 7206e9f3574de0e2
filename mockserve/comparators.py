"""Value comparators, edit distances and text diffs used for request matching."""

from __future__ import annotations

import difflib
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class Tokenizer(Enum):
    """How a text is split into tokens before diffing."""

    LINE = "Line"
    WORD = "Word"
    CHARACTER = "Character"


class DiffKind(Enum):
    """Kind of change a diff token represents."""

    SAME = "Same"
    ADD = "Add"
    REM = "Rem"


@dataclass(frozen=True)
class Diff:
    """One token of a diff together with its kind."""

    kind: DiffKind
    text: str


@dataclass
class DiffResult:
    """Outcome of diffing two texts."""

    tokenizer: Tokenizer
    distance: float
    differences: list[Diff] = field(default_factory=list)


def levenshtein(a: str, b: str) -> int:
    """Return the character-level Levenshtein distance between two strings."""
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def _json_text(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def display(value: Any) -> str:
    """Render a value as text the way it is shown in distances and reports."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, re.Pattern):
        return value.pattern
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    try:
        return _json_text(value)
    except (TypeError, ValueError):
        return str(value)


def distance_for(expected: Any, actual: Any) -> int:
    """Return the edit distance between the rendered forms of two optional values."""
    return levenshtein(display(expected), display(actual))


def _tokenize(text: str, tokenizer: Tokenizer) -> list[str]:
    if tokenizer is Tokenizer.LINE:
        return text.splitlines(keepends=True)
    if tokenizer is Tokenizer.WORD:
        return re.findall(r"\s+|\S+", text)
    return list(text)


def diff_str(base: str, edit: str, tokenizer: Tokenizer) -> DiffResult:
    """Diff ``base`` against ``edit`` token by token."""
    old = _tokenize(base, tokenizer)
    new = _tokenize(edit, tokenizer)
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
    differences: list[Diff] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            differences.extend(Diff(DiffKind.SAME, t) for t in old[i1:i2])
            continue
        if tag in ("delete", "replace"):
            differences.extend(Diff(DiffKind.REM, t) for t in old[i1:i2])
        if tag in ("insert", "replace"):
            differences.extend(Diff(DiffKind.ADD, t) for t in new[j1:j2])
    return DiffResult(tokenizer=tokenizer, distance=matcher.ratio(), differences=differences)


def _scalars_equal(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if isinstance(actual, (int, float)) and isinstance(expected, (int, float)):
        return type(actual) is type(expected) and actual == expected
    return type(actual) is type(expected) and actual == expected


def json_matches(actual: Any, expected: Any, inclusive: bool) -> bool:
    """Compare two JSON values.

    In strict mode both must be equal. In inclusive mode ``actual`` may hold
    additional object keys and trailing array elements.
    """
    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            return False
        if not inclusive and set(actual) != set(expected):
            return False
        return all(
            key in actual and json_matches(actual[key], value, inclusive)
            for key, value in expected.items()
        )
    if isinstance(expected, list):
        if not isinstance(actual, list):
            return False
        if len(actual) < len(expected):
            return False
        if not inclusive and len(actual) != len(expected):
            return False
        return all(json_matches(a, e, inclusive) for a, e in zip(actual, expected))
    if isinstance(actual, (dict, list)):
        return False
    return _scalars_equal(actual, expected)


class ValueComparator(ABC):
    """Compares a value required by a mock with a value taken from a request."""

    name: str = ""

    @abstractmethod
    def matches(self, mock_value: Any, req_value: Any) -> bool:
        """Return True if the request value satisfies the mock value."""

    def distance(self, mock_value: Any, req_value: Any) -> int:
        """Return how far apart the two values are; either may be None."""
        return distance_for(mock_value, req_value)


class _JSONComparator(ValueComparator):
    inclusive = False

    def matches(self, mock_value: Any, req_value: Any) -> bool:
        return json_matches(req_value, mock_value, self.inclusive)

    def distance(self, mock_value: Any, req_value: Any) -> int:
        expected = "" if mock_value is None else _json_text(mock_value)
        actual = "" if req_value is None else _json_text(req_value)
        return levenshtein(expected, actual)


class JSONExactMatchComparator(_JSONComparator):
    """Requires the request JSON to equal the mock JSON."""

    name = "equals"
    inclusive = False


class JSONContainsMatchComparator(_JSONComparator):
    """Requires the request JSON to include the mock JSON."""

    name = "contains"
    inclusive = True


class StringExactMatchComparator(ValueComparator):
    """Requires two strings to be equal, optionally ignoring case."""

    name = "equals"

    def __init__(self, case_sensitive: bool) -> None:
        self.case_sensitive = case_sensitive

    def matches(self, mock_value: str, req_value: str) -> bool:
        if self.case_sensitive:
            return mock_value == req_value
        return mock_value.lower() == req_value.lower()


class StringContainsMatchComparator(ValueComparator):
    """Requires the request string to contain the mock string, optionally ignoring case."""

    name = "contains"

    def __init__(self, case_sensitive: bool) -> None:
        self.case_sensitive = case_sensitive

    def matches(self, mock_value: str, req_value: str) -> bool:
        if self.case_sensitive:
            return mock_value in req_value
        return mock_value.lower() in req_value.lower()


class StringRegexMatchComparator(ValueComparator):
    """Requires the request string to match the mock regular expression."""

    name = "matches regex"

    def matches(self, mock_value: re.Pattern[str] | str, req_value: str) -> bool:
        return re.search(mock_value, req_value) is not None


class AnyValueComparator(ValueComparator):
    """Accepts any value."""

    name = "any"

    def matches(self, mock_value: Any, req_value: Any) -> bool:
        return True

    def distance(self, mock_value: Any, req_value: Any) -> int:
        return 0


class FunctionMatchesRequestComparator(ValueComparator):
    """Applies a user-supplied predicate to the whole request."""

    name = "matches"

    def matches(self, mock_value: Callable[[Any], bool], req_value: Any) -> bool:
        return bool(mock_value(req_value))

    def distance(self, mock_value: Callable[[Any], bool] | None, req_value: Any) -> int:
        if mock_value is None:
            return 0
        if req_value is None:
            return 1
        return 0 if self.matches(mock_value, req_value) else 1