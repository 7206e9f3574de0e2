"""Lookup helpers for string-keyed mappings, optionally ignoring key case."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def contains_entry(mapping: Mapping[Any, Any], key: Any, value: Any) -> bool:
    """Return True if ``mapping`` holds ``key`` with exactly ``value``."""
    return any(k == key and v == value for k, v in mapping.items())


def contains(mapping: Mapping[Any, Any], other: Mapping[Any, Any]) -> bool:
    """Return True if every entry of ``other`` is also an entry of ``mapping``."""
    return all(contains_entry(mapping, k, v) for k, v in other.items())


def contains_entry_with_case_insensitive_key(
    mapping: Mapping[str, str], key: str, value: str
) -> bool:
    """Like :func:`contains_entry`, but keys are compared without regard to case."""
    key_lc = key.lower()
    return any(k.lower() == key_lc and v == value for k, v in mapping.items())


def contains_with_case_insensitive_key(
    mapping: Mapping[str, str], other: Mapping[str, str]
) -> bool:
    """Like :func:`contains`, but keys are compared without regard to case."""
    return all(
        contains_entry_with_case_insensitive_key(mapping, k, v) for k, v in other.items()
    )


def contains_case_insensitive_key(mapping: Mapping[str, Any], key: str) -> bool:
    """Return True if ``mapping`` has a key equal to ``key`` ignoring case."""
    key_lc = key.lower()
    return any(k.lower() == key_lc for k in mapping)


def get_case_insensitive(mapping: Mapping[str, Any], key: str) -> Any | None:
    """Return the value of the first key (in sorted order) equal to ``key`` ignoring case."""
    key_lc = key.lower()
    found = next((k for k in sorted(mapping) if k.lower() == key_lc), None)
    return None if found is None else mapping[found]