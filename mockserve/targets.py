"""Functions extracting comparable values from incoming requests."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import parse_qsl

from mockserve.models import HttpMockRequest

logger = logging.getLogger(__name__)

KeyValue = tuple[str, "str | None"]


class CookieParseError(ValueError):
    """Raised when a Cookie header cannot be parsed."""


def _parse_cookie_header(value: str) -> list[tuple[str, str]]:
    cookies: list[tuple[str, str]] = []
    for segment in value.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        name, sep, cookie_value = segment.partition("=")
        name = name.strip()
        if not sep:
            raise CookieParseError(f"cookie pair without '=': {segment!r}")
        if not name:
            raise CookieParseError(f"cookie pair without a name: {segment!r}")
        cookies.append((name, cookie_value.strip()))
    return cookies


def parse_cookies(req: HttpMockRequest) -> list[tuple[str, str]]:
    """Return the cookies of the first Cookie header of ``req``."""
    header = next(
        (v for k, v in req.headers or () if k.lower() == "cookie"),
        None,
    )
    if header is None:
        return []
    return _parse_cookie_header(header)


def string_body_target(req: HttpMockRequest) -> str | None:
    if req.body is None:
        return None
    return req.body.decode("utf-8", errors="replace")


def json_body_target(req: HttpMockRequest) -> Any:
    if req.body is None:
        return None
    try:
        return json.loads(req.body)
    except (ValueError, UnicodeDecodeError) as exc:
        logger.debug("Cannot parse json value: %s", exc)
        return None


def cookie_target(req: HttpMockRequest) -> list[KeyValue] | None:
    try:
        cookies = parse_cookies(req)
    except CookieParseError as exc:
        logger.info(
            "Cannot parse cookies. Cookie matching will not work for this request. Error: %s",
            exc,
        )
        return None
    return list(cookies)


def header_target(req: HttpMockRequest) -> list[KeyValue] | None:
    return None if req.headers is None else [(k, v) for k, v in req.headers]


def query_parameter_target(req: HttpMockRequest) -> list[KeyValue] | None:
    return None if req.query_params is None else [(k, v) for k, v in req.query_params]


def path_target(req: HttpMockRequest) -> str:
    return req.path


def method_target(req: HttpMockRequest) -> str:
    return req.method


def full_request_target(req: HttpMockRequest) -> HttpMockRequest:
    return req


def form_urlencoded_body_target(req: HttpMockRequest) -> list[KeyValue] | None:
    if req.body is None:
        return None
    text = req.body.decode("utf-8", errors="replace")
    return parse_qsl(text, keep_blank_values=True, encoding="utf-8", errors="replace")