"""Data types describing requests, mock definitions and verification results."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable

from mockserve.comparators import DiffKind, DiffResult

Pair = tuple[str, str]


def _pairs_to_list(pairs: list[Pair] | None) -> list[list[str]] | None:
    return None if pairs is None else [[k, v] for k, v in pairs]


def _pairs_from_list(items: Any) -> list[Pair] | None:
    return None if items is None else [(str(k), str(v)) for k, v in items]


def _body_to_list(body: bytes | None) -> list[int] | None:
    return None if body is None else list(body)


def _body_from_value(value: Any) -> bytes | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _delay_to_dict(delay: timedelta | None) -> dict[str, int] | None:
    if delay is None:
        return None
    total_micros = (delay.days * 86400 + delay.seconds) * 1_000_000 + delay.microseconds
    secs, micros = divmod(total_micros, 1_000_000)
    return {"secs": secs, "nanos": micros * 1000}


def _delay_from_value(value: Any) -> timedelta | None:
    if value is None:
        return None
    if isinstance(value, dict):
        return timedelta(
            seconds=value.get("secs", 0), microseconds=value.get("nanos", 0) // 1000
        )
    return timedelta(milliseconds=value)


def _diff_to_dict(diff: DiffResult | None) -> dict[str, Any] | None:
    if diff is None:
        return None
    return {
        "tokenizer": diff.tokenizer.value,
        "distance": diff.distance,
        "differences": [{d.kind.value: d.text} for d in diff.differences],
    }


@dataclass
class HttpMockRequest:
    """An HTTP request as received by the mock server."""

    method: str
    path: str
    headers: list[Pair] | None = None
    query_params: list[Pair] | None = None
    body: bytes | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "method": self.method,
            "headers": _pairs_to_list(self.headers),
            "query_params": _pairs_to_list(self.query_params),
            "body": _body_to_list(self.body),
        }


_SCALAR_FIELDS = ("path", "method", "body", "json_body")
_LIST_FIELDS = (
    "path_contains",
    "header_exists",
    "cookie_exists",
    "json_body_includes",
    "body_contains",
    "query_param_exists",
    "x_www_form_urlencoded_key_exists",
)
_PATTERN_FIELDS = ("path_matches", "body_matches")
_PAIR_FIELDS = ("headers", "cookies", "query_param", "x_www_form_urlencoded")


@dataclass
class RequestRequirements:
    """What a request has to satisfy for a mock to match it."""

    path: str | None = None
    path_contains: list[str] | None = None
    path_matches: list[re.Pattern[str]] | None = None
    method: str | None = None
    headers: list[Pair] | None = None
    header_exists: list[str] | None = None
    cookies: list[Pair] | None = None
    cookie_exists: list[str] | None = None
    body: str | None = None
    json_body: Any = None
    json_body_includes: list[Any] | None = None
    body_contains: list[str] | None = None
    body_matches: list[re.Pattern[str]] | None = None
    query_param_exists: list[str] | None = None
    query_param: list[Pair] | None = None
    x_www_form_urlencoded: list[Pair] | None = None
    x_www_form_urlencoded_key_exists: list[str] | None = None
    matchers: list[Callable[[HttpMockRequest], bool]] | None = None

    def __post_init__(self) -> None:
        for name in _PATTERN_FIELDS:
            patterns = getattr(self, name)
            if patterns is not None:
                setattr(self, name, [re.compile(p) for p in patterns])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequestRequirements:
        kwargs: dict[str, Any] = {name: data.get(name) for name in _SCALAR_FIELDS}
        for name in _LIST_FIELDS:
            items = data.get(name)
            kwargs[name] = None if items is None else list(items)
        for name in _PATTERN_FIELDS:
            items = data.get(name)
            kwargs[name] = None if items is None else [re.compile(p) for p in items]
        for name in _PAIR_FIELDS:
            kwargs[name] = _pairs_from_list(data.get(name))
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {name: getattr(self, name) for name in _SCALAR_FIELDS}
        for name in _LIST_FIELDS:
            items = getattr(self, name)
            result[name] = None if items is None else list(items)
        for name in _PATTERN_FIELDS:
            items = getattr(self, name)
            result[name] = None if items is None else [p.pattern for p in items]
        for name in _PAIR_FIELDS:
            result[name] = _pairs_to_list(getattr(self, name))
        return result


@dataclass
class MockServerHttpResponse:
    """The response a mock serves."""

    status: int | None = None
    headers: list[Pair] | None = None
    body: bytes | None = None
    delay: timedelta | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MockServerHttpResponse:
        status = data.get("status")
        return cls(
            status=None if status is None else int(status),
            headers=_pairs_from_list(data.get("headers")),
            body=_body_from_value(data.get("body")),
            delay=_delay_from_value(data.get("delay")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "headers": _pairs_to_list(self.headers),
            "body": _body_to_list(self.body),
            "delay": _delay_to_dict(self.delay),
        }


@dataclass
class MockDefinition:
    """A request requirement paired with the response to serve."""

    request: RequestRequirements
    response: MockServerHttpResponse

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MockDefinition:
        return cls(
            request=RequestRequirements.from_dict(data.get("request") or {}),
            response=MockServerHttpResponse.from_dict(data.get("response") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"request": self.request.to_dict(), "response": self.response.to_dict()}


@dataclass
class ActiveMock:
    """A mock registered on the server."""

    id: int
    definition: MockDefinition
    is_static: bool = False
    call_counter: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "call_counter": self.call_counter,
            "definition": self.definition.to_dict(),
            "is_static": self.is_static,
        }


@dataclass
class Reason:
    """Why a value did not match."""

    expected: str
    actual: str
    comparison: str
    best_match: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "expected": self.expected,
            "actual": self.actual,
            "comparison": self.comparison,
            "best_match": self.best_match,
        }


@dataclass
class Mismatch:
    """A single difference between a request and a mock requirement."""

    title: str
    reason: Reason | None = None
    diff: DiffResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "reason": None if self.reason is None else self.reason.to_dict(),
            "diff": _diff_to_dict(self.diff),
        }


@dataclass
class ClosestMatch:
    """The recorded request closest to a requirement, with its mismatches."""

    request: HttpMockRequest
    request_index: int
    mismatches: list[Mismatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request": self.request.to_dict(),
            "request_index": self.request_index,
            "mismatches": [m.to_dict() for m in self.mismatches],
        }


__all__ = [
    "ActiveMock",
    "ClosestMatch",
    "DiffKind",
    "HttpMockRequest",
    "Mismatch",
    "MockDefinition",
    "MockServerHttpResponse",
    "Reason",
    "RequestRequirements",
]