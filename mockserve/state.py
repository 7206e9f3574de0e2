"""Shared server state and the request matching and verification built on it."""

from __future__ import annotations

import itertools
import logging
import sys
import threading
from dataclasses import dataclass, field

from mockserve.matchers import Matcher, default_matchers
from mockserve.models import (
    ActiveMock,
    ClosestMatch,
    HttpMockRequest,
    Mismatch,
    RequestRequirements,
)

logger = logging.getLogger(__name__)

Pair = tuple[str, str]


@dataclass
class ServerRequestHeader:
    """The head of an incoming HTTP request: method, path, raw query and headers."""

    method: str = ""
    path: str = ""
    query: str = ""
    headers: list[Pair] = field(default_factory=list)


@dataclass
class ServerResponse:
    """A response produced by a route, before it is written to the wire."""

    status: int = 0
    headers: list[Pair] = field(default_factory=list)
    body: bytes = b""


class MockServerState:
    """State shared by all request handlers: mocks, request history and matchers."""

    def __init__(self, history_limit: int = sys.maxsize) -> None:
        self.history_limit = history_limit
        self.mocks: dict[int, ActiveMock] = {}
        self.history: list[HttpMockRequest] = []
        self.matchers: list[Matcher] = default_matchers()
        self.lock = threading.RLock()
        self._ids = itertools.count()
        self._id_lock = threading.Lock()

    def create_new_id(self) -> int:
        """Return a new, unique mock id; ids start at 0 and increase by one."""
        with self._id_lock:
            return next(self._ids)


def request_matches(
    state: MockServerState, req: HttpMockRequest, mock: RequestRequirements
) -> bool:
    """Return True if ``req`` satisfies every matcher of ``state`` for ``mock``."""
    logger.debug("Matching incoming HTTP request")
    return all(matcher.matches(req, mock) for matcher in state.matchers)


def _request_distance(
    req: HttpMockRequest, mock: RequestRequirements, matchers: list[Matcher]
) -> int:
    return sum(matcher.distance(req, mock) for matcher in matchers)


def _request_mismatches(
    req: HttpMockRequest, mock: RequestRequirements, matchers: list[Matcher]
) -> list[Mismatch]:
    return [mismatch for matcher in matchers for mismatch in matcher.mismatches(req, mock)]


def verify(state: MockServerState, mock_rr: RequestRequirements) -> ClosestMatch | None:
    """Find the recorded request that does not match ``mock_rr`` but comes closest.

    Returns None when every recorded request matches or nothing was recorded.
    The request index refers to the position among the non-matching requests.
    """
    with state.lock:
        non_matching = [
            req for req in state.history if not request_matches(state, req, mock_rr)
        ]
    if not non_matching:
        return None

    distances = [_request_distance(req, mock_rr, state.matchers) for req in non_matching]
    best_index = min(range(len(distances)), key=distances.__getitem__)
    best_request = non_matching[best_index]
    return ClosestMatch(
        request=best_request,
        request_index=best_index,
        mismatches=_request_mismatches(best_request, mock_rr, state.matchers),
    )