import re

import pytest

from mockserve.models import HttpMockRequest, RequestRequirements
from mockserve.state import (
    MockServerState,
    ServerRequestHeader,
    ServerResponse,
    request_matches,
    verify,
)


def _matches(req, mock):
    return request_matches(MockServerState(), req, mock)


def test_create_new_id_counts_up_from_zero():
    state = MockServerState()
    assert [state.create_new_id() for _ in range(3)] == [0, 1, 2]


def test_new_state_is_empty():
    state = MockServerState(history_limit=5)
    assert state.mocks == {}
    assert state.history == []
    assert state.history_limit == 5
    assert len(state.matchers) == 18


def test_server_structs_defaults():
    header = ServerRequestHeader()
    response = ServerResponse()
    assert (header.method, header.path, header.query, header.headers) == ("", "", "", [])
    assert (response.status, response.headers, response.body) == (0, [], b"")


def test_body_contains():
    request = HttpMockRequest("GET", "/test-path", body=b"test")
    assert _matches(request, RequestRequirements(body_contains=["xxx"])) is False
    assert _matches(request, RequestRequirements(body_contains=["es"])) is True


def test_query_params_exact():
    params1 = [("k", "v")]
    params2 = [("h", "o")]
    request = HttpMockRequest("GET", "/test-path", query_params=params1)
    assert _matches(request, RequestRequirements(query_param=params2)) is False
    assert _matches(request, RequestRequirements(query_param=list(params1))) is True


def test_path_match():
    req = HttpMockRequest("GET", "/test-path")
    assert _matches(req, RequestRequirements(path="/test-path")) is True


def test_path_no_match():
    req = HttpMockRequest("GET", "/test-path")
    assert _matches(req, RequestRequirements(path="/another-path")) is False


def test_method_match():
    req = HttpMockRequest("GET", "/test")
    assert _matches(req, RequestRequirements(method="GET")) is True


def test_method_no_match():
    req = HttpMockRequest("GET", "/test")
    assert _matches(req, RequestRequirements(method="POST")) is False


def test_body_match():
    req = HttpMockRequest("GET", "/test", body=b"test")
    assert _matches(req, RequestRequirements(body="test")) is True


def test_body_no_match():
    req = HttpMockRequest("GET", "/test", body=b"some text")
    assert _matches(req, RequestRequirements(body="some other text")) is False


def test_headers_exact_match():
    h1 = [("h1", "v1"), ("h2", "v2")]
    h2 = [("h1", "v1"), ("h2", "v2")]
    req = HttpMockRequest("GET", "/test", headers=h1)
    assert _matches(req, RequestRequirements(headers=h2)) is True


def test_headers_match_superset():
    req = HttpMockRequest("GET", "/test", headers=[("h1", "v1"), ("h2", "v2")])
    assert _matches(req, RequestRequirements(headers=[("h1", "v1")])) is True


def test_headers_no_match_empty():
    req = HttpMockRequest("GET", "/test", headers=[("req_headers", "v1"), ("h2", "v2")])
    assert _matches(req, RequestRequirements()) is True


def test_headers_match_empty():
    assert _matches(HttpMockRequest("GET", "/test"), RequestRequirements()) is True


def test_header_missing_does_not_match():
    req = HttpMockRequest("GET", "/test", headers=[("h1", "v1")])
    assert _matches(req, RequestRequirements(headers=[("h3", "v3")])) is False


def test_path_contains():
    req = HttpMockRequest("GET", "test")
    assert _matches(req, RequestRequirements(path_contains=["x"])) is False
    assert _matches(req, RequestRequirements(path_contains=["es"])) is True


def test_path_matches():
    req = HttpMockRequest("GET", "test")
    assert _matches(req, RequestRequirements(path_matches=[re.compile("x")])) is False
    assert _matches(req, RequestRequirements(path_matches=[re.compile("test")])) is True


def test_user_function_matcher():
    req = HttpMockRequest("GET", "/x")
    assert _matches(req, RequestRequirements(matchers=[lambda r: r.path == "/x"])) is True
    assert _matches(req, RequestRequirements(matchers=[lambda r: r.path == "/y"])) is False


def test_verify_picks_closest_request():
    state = MockServerState()
    state.history.append(HttpMockRequest("POST", "/Brians"))
    state.history.append(HttpMockRequest("GET", "/Briann"))
    state.history.append(HttpMockRequest("DELETE", "/xxxxxxx/xxxxxx"))

    rr = RequestRequirements(method="GET", path="/Briann")
    result = verify(state, rr)

    assert result is not None
    assert result.request_index == 0
    assert result.request == HttpMockRequest("POST", "/Brians")
    assert [m.title for m in result.mismatches] == [
        "The path does not match",
        "The method does not match",
    ]


def test_verify_empty_history_returns_none():
    assert verify(MockServerState(), RequestRequirements(path="/a")) is None


def test_verify_all_matching_returns_none():
    state = MockServerState()
    state.history.append(HttpMockRequest("GET", "/a"))
    assert verify(state, RequestRequirements(path="/a")) is None


@pytest.mark.parametrize(
    "paths, expected_index",
    [
        (["/zzzz", "/abd"], 1),
        (["/abd", "/abe"], 0),
    ],
)
def test_verify_ties_and_order(paths, expected_index):
    state = MockServerState()
    state.history.extend(HttpMockRequest("GET", p) for p in paths)
    result = verify(state, RequestRequirements(path="/abc"))
    assert result is not None
    assert result.request_index == expected_index