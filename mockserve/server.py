"""HTTP front end of the mock server: routing, response mapping and the listener."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable

from aiohttp import web

from mockserve import routes
from mockserve.state import MockServerState, ServerRequestHeader, ServerResponse

logger = logging.getLogger(__name__)

BASE_PATH = "/__httpmock__"

PING_PATH = re.compile(rf"^{BASE_PATH}/ping\Z")
MOCKS_PATH = re.compile(rf"^{BASE_PATH}/mocks\Z")
MOCK_PATH = re.compile(rf"^{BASE_PATH}/mocks/([0-9]+)\Z")
HISTORY_PATH = re.compile(rf"^{BASE_PATH}/history\Z")
VERIFY_PATH = re.compile(rf"^{BASE_PATH}/verify\Z")

_MAX_ID = 2**64 - 1
_HEADER_NAME = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+\Z")


class RoutingError(Exception):
    """Raised when a request cannot be routed or a response cannot be built."""


def _parse_id(text: str) -> int:
    digits = text[1:] if text.startswith("+") and len(text) > 1 else text
    if not text:
        raise RoutingError(
            "Error parsing id as a number: cannot parse integer from empty string"
        )
    if not all(c in "0123456789" for c in digits):
        raise RoutingError("Error parsing id as a number: invalid digit found in string")
    value = int(digits)
    if value > _MAX_ID:
        raise RoutingError(
            "Error parsing id as a number: number too large to fit in target type"
        )
    return value


def get_path_param(regex: re.Pattern[str], idx: int, path: str) -> int:
    """Return capture group ``idx`` of ``regex`` in ``path`` as a non-negative integer."""
    found = regex.search(path)
    if found is None:
        raise RoutingError(f"Error capturing parameter from request path: {path}")
    try:
        value = found.group(idx)
    except IndexError:
        value = None
    if value is None:
        raise RoutingError(f"Error capturing resource id in request path: {path}")
    return _parse_id(value)


async def route_request(
    state: MockServerState, request_header: ServerRequestHeader, body: bytes
) -> ServerResponse:
    """Send a request to the management route it addresses, or serve it from the mocks."""
    logger.debug("Routing incoming request: %r", request_header)
    path = request_header.path
    method = request_header.method

    if PING_PATH.search(path) and method == "GET":
        return routes.ping()

    if MOCKS_PATH.search(path):
        if method == "POST":
            return routes.add(state, body)
        if method == "DELETE":
            return routes.delete_all_mocks(state)

    if MOCK_PATH.search(path):
        try:
            mock_id = get_path_param(MOCK_PATH, 1, path)
        except RoutingError as exc:
            raise RoutingError(f"Cannot parse id from path: {exc}") from exc
        if method == "GET":
            return routes.read_one(state, mock_id)
        if method == "DELETE":
            return routes.delete_one(state, mock_id)

    if VERIFY_PATH.search(path) and method == "POST":
        return routes.verify(state, body)

    if HISTORY_PATH.search(path) and method == "DELETE":
        return routes.delete_history(state)

    return await routes.serve(state, request_header, body)


def error_response(body: str) -> ServerResponse:
    """Build a plain 500 response carrying ``body`` as its text."""
    return ServerResponse(status=500, headers=[], body=body.encode("utf-8"))


def map_response(response: ServerResponse) -> web.Response:
    """Turn a route response into a response the HTTP server can send."""
    headers: list[tuple[str, str]] = []
    for name, value in response.headers:
        if not _HEADER_NAME.match(name):
            raise RoutingError("Cannot create header from name: invalid HTTP header name")
        raw = value.encode("utf-8")
        if any((b < 0x20 and b != 0x09) or b == 0x7F for b in raw):
            raise RoutingError("Cannot create header from value: failed to parse header value")
        if any(b >= 0x80 for b in raw):
            raise RoutingError(
                "Cannot create header from value string: failed to convert header to a str"
            )
        headers.append((name, value))
    if not 100 <= response.status <= 999:
        raise RoutingError("Cannot create HTTP response: invalid status code")
    return web.Response(status=response.status, headers=headers, body=bytes(response.body))


async def _handle_server_request(
    state: MockServerState, request: web.BaseRequest
) -> web.Response:
    try:
        header = ServerRequestHeader(
            method=request.method,
            path=request.rel_url.raw_path,
            query=request.rel_url.raw_query_string,
            headers=[(k.lower(), v) for k, v in request.headers.items()],
        )
    except (UnicodeError, ValueError) as exc:
        return map_response(error_response(f"Cannot parse request: {exc}"))

    try:
        body = await request.read()
    except (OSError, ValueError) as exc:
        return map_response(error_response(f"Cannot read request body: {exc}"))

    try:
        routed = await route_request(state, header, body)
    except (RoutingError, ValueError) as exc:
        return map_response(error_response(f"Request handler error: {exc}"))

    try:
        return map_response(routed)
    except RoutingError as exc:
        return map_response(error_response(f"Cannot build response: {exc}"))


def _make_handler(
    state: MockServerState, print_access_log: bool
) -> Callable[[web.BaseRequest], Awaitable[web.Response]]:
    async def handler(request: web.BaseRequest) -> web.Response:
        received = time.monotonic()
        method = request.method
        uri = str(request.rel_url)
        version = f"HTTP/{request.version.major}.{request.version.minor}"

        response = await _handle_server_request(state, request)

        if print_access_log and not uri.startswith(f"{BASE_PATH}/"):
            elapsed_ms = int((time.monotonic() - received) * 1000)
            logger.info('"%s %s %s" %d %d', method, uri, version, response.status, elapsed_ms)
        return response

    return handler


async def start_server(
    port: int,
    expose: bool,
    state: MockServerState,
    print_access_log: bool = False,
    shutdown: Awaitable[None] | None = None,
    on_bound: Callable[[tuple[str, int]], None] | None = None,
) -> None:
    """Serve until ``shutdown`` completes (or forever when it is None).

    ``on_bound`` receives the host and port actually bound once the listener is up.
    """
    host = "0.0.0.0" if expose else "127.0.0.1"
    runner = web.ServerRunner(web.Server(_make_handler(state, print_access_log)))
    await runner.setup()
    try:
        site = web.TCPSite(runner, host, port)
        await site.start()
        address = runner.addresses[0]
        bound = (str(address[0]), int(address[1]))
        if on_bound is not None:
            on_bound(bound)
        logger.info("Listening on %s:%s", *bound)
        if shutdown is None:
            await asyncio.Event().wait()
        else:
            await shutdown
    finally:
        await runner.cleanup()