"""Route handlers that turn management and mock requests into server responses."""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any
from urllib.parse import parse_qsl

from mockserve import handlers
from mockserve.models import (
    HttpMockRequest,
    MockDefinition,
    MockServerHttpResponse,
    RequestRequirements,
)
from mockserve.state import MockServerState, ServerRequestHeader, ServerResponse
from mockserve.state import verify as find_closest_match

Pair = tuple[str, str]

_DECODE_ERRORS = (ValueError, TypeError, KeyError, AttributeError, re.error)


def _create_response(
    status: int, headers: list[Pair] | None = None, body: bytes | None = None
) -> ServerResponse:
    return ServerResponse(status=status, headers=list(headers or []), body=body or b"")


def _create_json_response(
    status: int, body: Any, headers: list[Pair] | None = None
) -> ServerResponse:
    try:
        encoded = json.dumps(body).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Cannot serialize body: {exc}") from exc
    all_headers = list(headers or [])
    all_headers.append(("content-type", "application/json"))
    return _create_response(status, all_headers, encoded)


def _error(status: int, message: Any) -> ServerResponse:
    return _create_json_response(status, {"message": str(message)})


def _parse_json_object(body: bytes) -> dict[str, Any]:
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def ping() -> ServerResponse:
    """Answer a health check."""
    return _create_response(200)


def add(state: MockServerState, body: bytes) -> ServerResponse:
    """Register a mock described by the JSON ``body``."""
    try:
        mock_def = MockDefinition.from_dict(_parse_json_object(body))
    except _DECODE_ERRORS as exc:
        return _error(500, exc)
    try:
        mock_id = handlers.add_new_mock(state, mock_def, False)
    except handlers.MockValidationError as exc:
        return _error(500, exc)
    return _create_json_response(201, {"mock_id": mock_id})


def delete_one(state: MockServerState, mock_id: int) -> ServerResponse:
    """Delete one mock by id."""
    try:
        found = handlers.delete_one_mock(state, mock_id)
    except handlers.StaticMockError as exc:
        return _error(500, exc)
    return _create_response(202 if found else 404)


def delete_all_mocks(state: MockServerState) -> ServerResponse:
    """Delete every non-static mock."""
    handlers.delete_all_mocks(state)
    return _create_response(202)


def delete_history(state: MockServerState) -> ServerResponse:
    """Forget all recorded requests."""
    handlers.delete_history(state)
    return _create_response(202)


def read_one(state: MockServerState, mock_id: int) -> ServerResponse:
    """Return one mock as JSON, or 404 if it does not exist."""
    mock = handlers.read_one_mock(state, mock_id)
    if mock is None:
        return _create_response(404)
    return _create_json_response(200, mock.to_dict())


def verify(state: MockServerState, body: bytes) -> ServerResponse:
    """Report the recorded request closest to the requirements in the JSON ``body``."""
    try:
        requirements = RequestRequirements.from_dict(_parse_json_object(body))
    except _DECODE_ERRORS as exc:
        return _error(500, exc)
    closest = find_closest_match(state, requirements)
    if closest is None:
        return _create_response(404)
    return _create_json_response(200, closest.to_dict())


def extract_query_params(query_string: str) -> list[Pair]:
    """Decode a URL query string into name/value pairs, in order."""
    return parse_qsl(query_string, keep_blank_values=True, encoding="utf-8", errors="replace")


def to_handler_request(req: ServerRequestHeader, body: bytes) -> HttpMockRequest:
    """Build the request representation the handlers work with."""
    return HttpMockRequest(
        method=req.method,
        path=req.path,
        headers=list(req.headers),
        query_params=extract_query_params(req.query),
        body=bytes(body),
    )


def _to_route_response(response: MockServerHttpResponse | None) -> ServerResponse:
    if response is None:
        return _error(404, "Request did not match any route or mock")
    status = 200 if response.status is None else response.status
    return _create_response(status, response.headers, response.body)


async def serve(state: MockServerState, req: ServerRequestHeader, body: bytes) -> ServerResponse:
    """Serve the response of the first mock matching the request, after its delay."""
    try:
        handler_request = to_handler_request(req, body)
    except ValueError as exc:
        return _error(500, exc)
    response = handlers.find_mock(state, handler_request)
    if response is not None and response.delay is not None:
        await asyncio.sleep(response.delay.total_seconds())
    return _to_route_response(response)