import asyncio
import json
import re

import aiohttp
import pytest

from mockserve.server import (
    HISTORY_PATH,
    MOCK_PATH,
    MOCKS_PATH,
    PING_PATH,
    VERIFY_PATH,
    RoutingError,
    error_response,
    get_path_param,
    map_response,
    route_request,
    start_server,
)
from mockserve.state import MockServerState, ServerRequestHeader, ServerResponse


def _header(method, path, query=""):
    return ServerRequestHeader(method=method, path=path, query=query, headers=[])


def _mock_body(path="/hello", status=201, body=b"hi"):
    return json.dumps(
        {
            "request": {"path": path, "method": "GET"},
            "response": {"status": status, "body": list(body)},
        }
    ).encode()


def test_route_regex():
    assert MOCK_PATH.search("/__httpmock__/mocks/1")
    assert MOCK_PATH.search("/__httpmock__/mocks/1295473892374")
    assert not MOCK_PATH.search("/__httpmock__/mocks/abc")
    assert not MOCK_PATH.search("/__httpmock__/mocks")
    assert not MOCK_PATH.search("/__httpmock__/mocks/345345/test")
    assert not MOCK_PATH.search("test/__httpmock__/mocks/345345/test")

    assert PING_PATH.search("/__httpmock__/ping")
    assert not PING_PATH.search("/__httpmock__/ping/1295473892374")
    assert not PING_PATH.search("test/ping/1295473892374")

    assert VERIFY_PATH.search("/__httpmock__/verify")
    assert not VERIFY_PATH.search("/__httpmock__/verify/1295473892374")
    assert not VERIFY_PATH.search("test/verify/1295473892374")

    assert HISTORY_PATH.search("/__httpmock__/history")
    assert not HISTORY_PATH.search("/__httpmock__/history/1295473892374")
    assert not HISTORY_PATH.search("test/history/1295473892374")

    assert MOCKS_PATH.search("/__httpmock__/mocks")
    assert not MOCKS_PATH.search("/__httpmock__/mocks/5")
    assert not MOCKS_PATH.search("test/__httpmock__/mocks/5")
    assert not MOCKS_PATH.search("test/__httpmock__/mocks/567")


def test_error_response():
    res = error_response("test")
    assert res.body.decode() == "test"
    assert res.status == 500


def test_response_header_key_parsing_error():
    res = ServerResponse(status=500, headers=[(";;;", ";;;")], body=b"")
    with pytest.raises(RoutingError, match="Cannot create header from name"):
        map_response(res)


def test_response_header_value_control_character():
    res = ServerResponse(status=200, headers=[("x-a", "a\nb")], body=b"")
    with pytest.raises(RoutingError, match="Cannot create header from value:"):
        map_response(res)


def test_response_header_value_not_ascii():
    res = ServerResponse(status=200, headers=[("x-a", "é")], body=b"")
    with pytest.raises(RoutingError, match="Cannot create header from value string"):
        map_response(res)


def test_map_response_keeps_status_headers_and_body():
    res = map_response(ServerResponse(status=418, headers=[("x-a", "b")], body=b"tea"))
    assert res.status == 418
    assert res.headers["x-a"] == "b"
    assert res.body == b"tea"


def test_get_path_param_regex_error():
    regex = re.compile(r"^/__httpmock__/mocks/([0-9]+)$")
    with pytest.raises(RoutingError, match="Error capturing parameter from request path"):
        get_path_param(regex, 0, "")


def test_get_path_param_index_error():
    regex = re.compile(r"^/__httpmock__/mocks/([0-9]+)$")
    with pytest.raises(RoutingError) as info:
        get_path_param(regex, 5, "/__httpmock__/mocks/5")
    assert str(info.value) == (
        "Error capturing resource id in request path: /__httpmock__/mocks/5"
    )


def test_get_path_param_number_error():
    regex = re.compile(r"^/__httpmock__/mocks/([0-9]+)$")
    with pytest.raises(RoutingError) as info:
        get_path_param(regex, 0, "/__httpmock__/mocks/9999999999999999999999999")
    assert str(info.value) == "Error parsing id as a number: invalid digit found in string"


def test_get_path_param_reads_group():
    regex = re.compile(r"^/__httpmock__/mocks/([0-9]+)$")
    assert get_path_param(regex, 1, "/__httpmock__/mocks/42") == 42


@pytest.mark.asyncio
async def test_route_ping():
    res = await route_request(MockServerState(), _header("GET", "/__httpmock__/ping"), b"")
    assert res.status == 200


@pytest.mark.asyncio
async def test_route_add_read_and_delete_mock():
    state = MockServerState()
    added = await route_request(state, _header("POST", "/__httpmock__/mocks"), _mock_body())
    assert added.status == 201
    mock_id = json.loads(added.body)["mock_id"]

    read = await route_request(state, _header("GET", f"/__httpmock__/mocks/{mock_id}"), b"")
    assert read.status == 200
    assert json.loads(read.body)["id"] == mock_id

    deleted = await route_request(
        state, _header("DELETE", f"/__httpmock__/mocks/{mock_id}"), b""
    )
    assert deleted.status == 202
    again = await route_request(
        state, _header("DELETE", f"/__httpmock__/mocks/{mock_id}"), b""
    )
    assert again.status == 404


@pytest.mark.asyncio
async def test_route_serves_mock_and_reports_unmatched():
    state = MockServerState()
    await route_request(state, _header("POST", "/__httpmock__/mocks"), _mock_body())
    served = await route_request(state, _header("GET", "/hello"), b"")
    assert served.status == 201
    assert served.body == b"hi"

    missing = await route_request(state, _header("GET", "/other"), b"")
    assert missing.status == 404
    assert json.loads(missing.body)["message"] == "Request did not match any route or mock"


@pytest.mark.asyncio
async def test_route_delete_history():
    state = MockServerState()
    await route_request(state, _header("GET", "/anything"), b"")
    assert len(state.history) == 1
    res = await route_request(state, _header("DELETE", "/__httpmock__/history"), b"")
    assert res.status == 202
    assert state.history == []


@pytest.mark.asyncio
async def test_route_id_too_large():
    path = "/__httpmock__/mocks/99999999999999999999999999"
    with pytest.raises(RoutingError, match="Cannot parse id from path"):
        await route_request(MockServerState(), _header("GET", path), b"")


@pytest.mark.asyncio
async def test_server_end_to_end():
    state = MockServerState()
    bound = asyncio.get_running_loop().create_future()
    stop = asyncio.Event()
    task = asyncio.create_task(
        start_server(0, False, state, False, stop.wait(), bound.set_result)
    )
    try:
        host, port = await asyncio.wait_for(bound, 5)
        base = f"http://{host}:{port}"
        async with aiohttp.ClientSession() as session:
            async with session.get(f"{base}/__httpmock__/ping") as res:
                assert res.status == 200
            async with session.post(f"{base}/__httpmock__/mocks", data=_mock_body()) as res:
                assert res.status == 201
            async with session.get(f"{base}/hello") as res:
                assert res.status == 201
                assert await res.read() == b"hi"
            async with session.get(f"{base}/nope") as res:
                assert res.status == 404
    finally:
        stop.set()
        await asyncio.wait_for(task, 5)
    assert [r.path for r in state.history] == ["/hello", "/nope"]