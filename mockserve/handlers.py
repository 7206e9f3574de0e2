"""Operations on the server state: registering, reading, deleting and serving mocks."""

from __future__ import annotations

import copy
import logging

from mockserve.models import (
    ActiveMock,
    HttpMockRequest,
    MockDefinition,
    MockServerHttpResponse,
)
from mockserve.state import MockServerState, request_matches

logger = logging.getLogger(__name__)

NON_BODY_METHODS = ("GET", "HEAD")
"""HTTP methods that cannot carry a request body."""

_MAX_HISTORY_BEFORE_TRIM = 100


class MockValidationError(ValueError):
    """Raised when a mock definition is not valid."""


class StaticMockError(RuntimeError):
    """Raised when an operation is not allowed on a static mock."""


def validate_mock_definition(mock_def: MockDefinition) -> None:
    """Raise :class:`MockValidationError` if ``mock_def`` cannot be served."""
    request = mock_def.request
    if request.body is not None and request.method in NON_BODY_METHODS:
        raise MockValidationError("A body cannot be sent along with the specified method")


def add_new_mock(state: MockServerState, mock_def: MockDefinition, is_static: bool) -> int:
    """Validate and register a mock, returning its new id."""
    try:
        validate_mock_definition(mock_def)
    except MockValidationError as exc:
        raise MockValidationError(f"Validation error: {exc}") from exc

    mock_id = state.create_new_id()
    logger.debug("Adding new mock with ID=%s", mock_id)
    with state.lock:
        state.mocks[mock_id] = ActiveMock(id=mock_id, definition=mock_def, is_static=is_static)
    return mock_id


def read_one_mock(state: MockServerState, mock_id: int) -> ActiveMock | None:
    """Return a copy of the mock with ``mock_id``, or None if there is none."""
    with state.lock:
        found = state.mocks.get(mock_id)
        return None if found is None else copy.deepcopy(found)


def delete_one_mock(state: MockServerState, mock_id: int) -> bool:
    """Delete the mock with ``mock_id``; return whether it existed.

    Static mocks cannot be deleted and raise :class:`StaticMockError`.
    """
    with state.lock:
        found = state.mocks.get(mock_id)
        if found is not None and found.is_static:
            raise StaticMockError(f"Cannot delete static mock with ID {mock_id}")
        removed = state.mocks.pop(mock_id, None)
    logger.debug("Deleted mock with id=%s", mock_id)
    return removed is not None


def delete_all_mocks(state: MockServerState) -> None:
    """Delete every mock that is not static."""
    with state.lock:
        for mock_id in [k for k, m in state.mocks.items() if not m.is_static]:
            del state.mocks[mock_id]
    logger.debug("Deleted all mocks")


def delete_history(state: MockServerState) -> None:
    """Forget all recorded requests."""
    with state.lock:
        state.history.clear()
    logger.debug("Deleted request history")


def find_mock(state: MockServerState, req: HttpMockRequest) -> MockServerHttpResponse | None:
    """Record ``req`` and return the response of the first mock (by id) that matches it."""
    with state.lock:
        if len(state.history) > _MAX_HISTORY_BEFORE_TRIM:
            del state.history[0]
        state.history.append(req)

        for mock_id in sorted(state.mocks):
            mock = state.mocks[mock_id]
            if request_matches(state, req, mock.definition.request):
                logger.debug("Matched mock with id=%s to the following request: %r", mock_id, req)
                mock.call_counter += 1
                return copy.deepcopy(mock.definition.response)

    logger.debug("Could not match any mock to the following request: %r", req)
    return None