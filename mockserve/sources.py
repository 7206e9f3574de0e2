"""Functions extracting the values a mock requires from its request requirements."""

from __future__ import annotations

import re
from typing import Any, Callable

from mockserve.models import HttpMockRequest, RequestRequirements

KeyValue = tuple[str, "str | None"]


def _single(value: Any) -> list[Any] | None:
    return None if value is None else [value]


def _many(values: list[Any] | None) -> list[Any] | None:
    return None if values is None else list(values)


def _pairs(pairs: list[tuple[str, str]] | None) -> list[KeyValue] | None:
    return None if pairs is None else [(k, v) for k, v in pairs]


def _keys(keys: list[str] | None) -> list[KeyValue] | None:
    return None if keys is None else [(k, None) for k in keys]


def path_source(mock: RequestRequirements) -> list[str] | None:
    return _single(mock.path)


def path_contains_source(mock: RequestRequirements) -> list[str] | None:
    return _many(mock.path_contains)


def path_regex_source(mock: RequestRequirements) -> list[re.Pattern[str]] | None:
    return _many(mock.path_matches)


def method_source(mock: RequestRequirements) -> list[str] | None:
    return _single(mock.method)


def string_body_source(mock: RequestRequirements) -> list[str] | None:
    return _single(mock.body)


def body_contains_source(mock: RequestRequirements) -> list[str] | None:
    return _many(mock.body_contains)


def body_regex_source(mock: RequestRequirements) -> list[re.Pattern[str]] | None:
    return _many(mock.body_matches)


def json_body_source(mock: RequestRequirements) -> list[Any] | None:
    return _single(mock.json_body)


def partial_json_body_source(mock: RequestRequirements) -> list[Any] | None:
    return _many(mock.json_body_includes)


def header_source(mock: RequestRequirements) -> list[KeyValue] | None:
    return _pairs(mock.headers)


def header_exists_source(mock: RequestRequirements) -> list[KeyValue] | None:
    return _keys(mock.header_exists)


def cookie_source(mock: RequestRequirements) -> list[KeyValue] | None:
    return _pairs(mock.cookies)


def cookie_exists_source(mock: RequestRequirements) -> list[KeyValue] | None:
    return _keys(mock.cookie_exists)


def query_param_source(mock: RequestRequirements) -> list[KeyValue] | None:
    return _pairs(mock.query_param)


def query_param_exists_source(mock: RequestRequirements) -> list[KeyValue] | None:
    return _keys(mock.query_param_exists)


def form_urlencoded_source(mock: RequestRequirements) -> list[KeyValue] | None:
    return _pairs(mock.x_www_form_urlencoded)


def form_urlencoded_key_exists_source(mock: RequestRequirements) -> list[KeyValue] | None:
    return _keys(mock.x_www_form_urlencoded_key_exists)


def function_source(
    mock: RequestRequirements,
) -> list[Callable[[HttpMockRequest], bool]] | None:
    return _many(mock.matchers)