"""Standalone server that preloads static mocks from YAML files."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Awaitable
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from mockserve.handlers import add_new_mock
from mockserve.models import MockDefinition, MockServerHttpResponse, RequestRequirements
from mockserve.server import start_server
from mockserve.state import MockServerState

logger = logging.getLogger(__name__)

_METHODS = ("GET", "HEAD", "POST", "PUT", "DELETE", "CONNECT", "OPTIONS", "TRACE", "PATCH")
_EXTENSIONS = ("yaml", "yml")


def _string(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{field}' must be a string")
    return value


def _strings(value: Any, field: str) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"'{field}' must be a list of strings")
    return [_string(item, field) for item in value]


def _pairs(value: Any, field: str) -> list[tuple[str, str]] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"'{field}' must be a list of name/value pairs")
    pairs = []
    for item in value:
        if not isinstance(item, dict) or "name" not in item or "value" not in item:
            raise ValueError(f"'{field}' entries need a 'name' and a 'value'")
        pairs.append((_string(item["name"], field), _string(item["value"], field)))
    return pairs


def _non_negative_int(value: Any, field: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{field}' must be a non-negative integer")
    return value


def _method(value: Any) -> str | None:
    method = _string(value, "method")
    if method is not None and method not in _METHODS:
        raise ValueError(f"unknown HTTP method: {method}")
    return method


def _check_definition(data: Any, source: Path) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{source}: a mock definition must be a mapping")
    for section in ("when", "then"):
        if not isinstance(data.get(section), dict):
            raise ValueError(f"{source}: missing or invalid '{section}' section")
    return data


def read_static_mocks(path: str | os.PathLike[str]) -> list[dict[str, Any]]:
    """Load every YAML mock definition in ``path``.

    Files with an extension other than ``yaml`` or ``yml`` are skipped; files
    without an extension are read.
    """
    definitions = []
    for file_path in sorted(Path(path).iterdir()):
        suffix = file_path.suffix
        if suffix and suffix[1:] not in _EXTENSIONS:
            continue
        logger.info("Loading static mock file from '%s'", file_path)
        content = file_path.read_bytes().decode("utf-8")
        definitions.append(_check_definition(yaml.safe_load(content), file_path))
    return definitions


def map_to_mock_definition(yaml_definition: dict[str, Any]) -> MockDefinition:
    """Convert a YAML mock definition into a :class:`MockDefinition`."""
    when = yaml_definition.get("when") or {}
    then = yaml_definition.get("then") or {}

    json_partial = when.get("json_body_partial")
    if json_partial is not None and not isinstance(json_partial, list):
        raise ValueError("'json_body_partial' must be a list")

    request = RequestRequirements(
        path=_string(when.get("path"), "path"),
        path_contains=_strings(when.get("path_contains"), "path_contains"),
        path_matches=_strings(when.get("path_matches"), "path_matches"),
        method=_method(when.get("method")),
        headers=_pairs(when.get("header"), "header"),
        header_exists=_strings(when.get("header_exists"), "header_exists"),
        cookies=_pairs(when.get("cookie"), "cookie"),
        cookie_exists=_strings(when.get("cookie_exists"), "cookie_exists"),
        body=_string(when.get("body"), "body"),
        json_body=when.get("json_body"),
        json_body_includes=None if json_partial is None else list(json_partial),
        body_contains=_strings(when.get("body_contains"), "body_contains"),
        body_matches=_strings(when.get("body_matches"), "body_matches"),
        query_param_exists=_strings(when.get("query_param_exists"), "query_param_exists"),
        query_param=_pairs(when.get("query_param"), "query_param"),
        x_www_form_urlencoded=_pairs(
            when.get("x_www_form_urlencoded_tuple"), "x_www_form_urlencoded_tuple"
        ),
        x_www_form_urlencoded_key_exists=_strings(
            when.get("x_www_form_urlencoded_key_exists"), "x_www_form_urlencoded_key_exists"
        ),
        matchers=None,
    )

    body = _string(then.get("body"), "body")
    delay = _non_negative_int(then.get("delay"), "delay")
    response = MockServerHttpResponse(
        status=_non_negative_int(then.get("status"), "status"),
        headers=_pairs(then.get("header"), "header"),
        body=None if body is None else body.encode("utf-8"),
        delay=None if delay is None else timedelta(milliseconds=delay),
    )
    return MockDefinition(request=request, response=response)


async def start_standalone_server(
    port: int,
    expose: bool,
    static_mock_dir_path: str | os.PathLike[str] | None,
    print_access_log: bool,
    history_limit: int = sys.maxsize,
    shutdown: Awaitable[None] | None = None,
) -> None:
    """Load static mocks from ``static_mock_dir_path`` and serve until ``shutdown``."""
    state = MockServerState(history_limit)
    if static_mock_dir_path is not None:
        for definition in read_static_mocks(static_mock_dir_path):
            add_new_mock(state, map_to_mock_definition(definition), True)
    await start_server(port, expose, state, print_access_log, shutdown)