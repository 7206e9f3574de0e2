import json
import re
from datetime import timedelta

import pytest

from mockserve.comparators import Tokenizer, diff_str
from mockserve.models import (
    ActiveMock,
    ClosestMatch,
    HttpMockRequest,
    Mismatch,
    MockDefinition,
    MockServerHttpResponse,
    Reason,
    RequestRequirements,
)


def _requirements():
    return RequestRequirements(
        path="/test",
        path_contains=["es"],
        path_matches=[re.compile(r"^/t")],
        method="POST",
        headers=[("h1", "v1")],
        header_exists=["h2"],
        cookies=[("c", "v")],
        cookie_exists=["d"],
        body="text",
        json_body={"a": [1, 2]},
        json_body_includes=[{"a": 1}],
        body_contains=["ex"],
        body_matches=[re.compile("t.*t")],
        query_param_exists=["q"],
        query_param=[("k", "v")],
        x_www_form_urlencoded=[("f", "g")],
        x_www_form_urlencoded_key_exists=["f"],
    )


def test_request_requirements_round_trip():
    req = _requirements()
    data = req.to_dict()
    assert RequestRequirements.from_dict(data).to_dict() == data


def test_request_requirements_to_dict_is_json_serialisable():
    data = _requirements().to_dict()
    assert json.loads(json.dumps(data)) == data
    assert data["path_matches"] == [r"^/t"]
    assert data["headers"] == [["h1", "v1"]]


def test_request_requirements_from_dict_converts_types():
    req = RequestRequirements.from_dict(
        {"query_param": [["k", "v"]], "body_matches": ["^x$"]}
    )
    assert req.query_param == [("k", "v")]
    assert req.body_matches[0].match("x")
    assert req.path is None


def test_request_requirements_compiles_string_patterns():
    req = RequestRequirements(path_matches=["^/a$"])
    assert req.path_matches[0].pattern == "^/a$"
    assert req.path_matches[0].match("/a")


def test_request_requirements_invalid_regex():
    with pytest.raises(re.error):
        RequestRequirements.from_dict({"path_matches": ["("]})


def test_matchers_are_not_serialised():
    req = RequestRequirements(matchers=[lambda r: True])
    assert "matchers" not in req.to_dict()


def test_response_round_trip():
    resp = MockServerHttpResponse(
        status=418, headers=[("a", "b")], body=b"\x00\xffabc", delay=timedelta(milliseconds=1500)
    )
    assert MockServerHttpResponse.from_dict(resp.to_dict()) == resp


def test_response_delay_format():
    resp = MockServerHttpResponse(delay=timedelta(seconds=2))
    assert resp.to_dict()["delay"] == {"secs": 2, "nanos": 0}


def test_response_from_dict_accepts_string_body_and_millis():
    resp = MockServerHttpResponse.from_dict({"body": "hi", "delay": 250})
    assert resp.body == b"hi"
    assert resp.delay == timedelta(milliseconds=250)
    assert resp.status is None


def test_mock_definition_round_trip():
    definition = MockDefinition(_requirements(), MockServerHttpResponse(status=201, body=b"ok"))
    data = definition.to_dict()
    restored = MockDefinition.from_dict(json.loads(json.dumps(data)))
    assert restored.to_dict() == data
    assert restored.response == definition.response


def test_active_mock_to_dict():
    definition = MockDefinition(RequestRequirements(path="/x"), MockServerHttpResponse())
    mock = ActiveMock(7, definition, is_static=True, call_counter=3)
    data = mock.to_dict()
    assert data["id"] == 7
    assert data["call_counter"] == 3
    assert data["is_static"] is True
    assert data["definition"] == definition.to_dict()


def test_http_mock_request_defaults_and_to_dict():
    req = HttpMockRequest("GET", "/p")
    assert req.headers is None and req.query_params is None and req.body is None
    full = HttpMockRequest("GET", "/p", headers=[("a", "b")], body=b"xy")
    data = full.to_dict()
    assert data["method"] == "GET"
    assert data["headers"] == [["a", "b"]]
    assert bytes(data["body"]) == b"xy"


def test_mismatch_with_reason_and_diff():
    diff = diff_str("a\nb\n", "a\nc\n", Tokenizer.LINE)
    mismatch = Mismatch(
        "The body does not match",
        reason=Reason("a", "b", "equals", False),
        diff=diff,
    )
    data = mismatch.to_dict()
    assert data["title"] == "The body does not match"
    assert data["reason"] == {
        "expected": "a",
        "actual": "b",
        "comparison": "equals",
        "best_match": False,
    }
    assert data["diff"]["tokenizer"] == "Line"
    assert all(set(d) <= {"Same", "Add", "Rem"} for d in data["diff"]["differences"])
    assert {"Same": "a\n"} in data["diff"]["differences"]


def test_mismatch_without_reason():
    data = Mismatch("t").to_dict()
    assert data == {"title": "t", "reason": None, "diff": None}


def test_closest_match_to_dict():
    req = HttpMockRequest("GET", "/x")
    match = ClosestMatch(req, 2, [Mismatch("m")])
    data = match.to_dict()
    assert data["request_index"] == 2
    assert data["request"] == req.to_dict()
    assert data["mismatches"] == [Mismatch("m").to_dict()]