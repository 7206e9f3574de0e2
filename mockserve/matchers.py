"""Matchers that decide whether a request satisfies a mock's requirements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from mockserve import sources, targets
from mockserve.comparators import (
    AnyValueComparator,
    FunctionMatchesRequestComparator,
    JSONContainsMatchComparator,
    JSONExactMatchComparator,
    StringContainsMatchComparator,
    StringExactMatchComparator,
    StringRegexMatchComparator,
    Tokenizer,
    ValueComparator,
    diff_str,
    display,
)
from mockserve.models import HttpMockRequest, Mismatch, Reason, RequestRequirements

KeyValue = tuple[Any, Any]


class Matcher(ABC):
    """Compares one aspect of a request with the requirements of a mock."""

    @abstractmethod
    def matches(self, req: HttpMockRequest, mock: RequestRequirements) -> bool:
        """Return True if the request satisfies this aspect of the mock."""

    @abstractmethod
    def distance(self, req: HttpMockRequest, mock: RequestRequirements) -> int:
        """Return a weighted measure of how far the request is from the mock."""

    @abstractmethod
    def mismatches(self, req: HttpMockRequest, mock: RequestRequirements) -> list[Mismatch]:
        """Describe every requirement of this aspect that the request misses."""


@dataclass
class SingleValueMatcher(Matcher):
    """Compares a single request value with each value a mock requires."""

    entity_name: str
    source: Callable[[RequestRequirements], list[Any] | None]
    target: Callable[[HttpMockRequest], Any]
    comparator: ValueComparator
    with_reason: bool = True
    diff_with: Tokenizer | None = None
    weight: int = 1

    def _find_unmatched(self, req_value: Any, mock_values: list[Any] | None) -> list[Any]:
        if mock_values is None:
            return []
        if req_value is None:
            return list(mock_values)
        return [m for m in mock_values if not self.comparator.matches(m, req_value)]

    def _evaluate(self, req: HttpMockRequest, mock: RequestRequirements) -> tuple[Any, list[Any]]:
        req_value = self.target(req)
        return req_value, self._find_unmatched(req_value, self.source(mock))

    def matches(self, req: HttpMockRequest, mock: RequestRequirements) -> bool:
        _, unmatched = self._evaluate(req, mock)
        return not unmatched

    def distance(self, req: HttpMockRequest, mock: RequestRequirements) -> int:
        req_value, unmatched = self._evaluate(req, mock)
        return sum(self.comparator.distance(m, req_value) * self.weight for m in unmatched)

    def mismatches(self, req: HttpMockRequest, mock: RequestRequirements) -> list[Mismatch]:
        req_value, unmatched = self._evaluate(req, mock)
        actual = display(req_value)
        result = []
        for mock_value in unmatched:
            expected = display(mock_value)
            reason = (
                Reason(
                    expected=expected,
                    actual=actual,
                    comparison=self.comparator.name,
                    best_match=False,
                )
                if self.with_reason
                else None
            )
            diff = None if self.diff_with is None else diff_str(expected, actual, self.diff_with)
            result.append(
                Mismatch(
                    title=f"The {self.entity_name} does not match",
                    reason=reason,
                    diff=diff,
                )
            )
        return result


@dataclass
class MultiValueMatcher(Matcher):
    """Compares key/value pairs of a request with the pairs a mock requires."""

    entity_name: str
    source: Callable[[RequestRequirements], list[KeyValue] | None]
    target: Callable[[HttpMockRequest], list[KeyValue] | None]
    key_comparator: ValueComparator
    value_comparator: ValueComparator
    with_reason: bool = True
    diff_with: Tokenizer | None = None
    weight: int = 1

    def _pair_matches(self, sk: Any, sv: Any, tk: Any, tv: Any) -> bool:
        if not self.key_comparator.matches(sk, tk):
            return False
        if sv is None:
            return True
        if tv is None:
            return False
        return self.value_comparator.matches(sv, tv)

    def _find_unmatched(
        self, req_values: list[KeyValue], mock_values: list[KeyValue]
    ) -> list[KeyValue]:
        return [
            (sk, sv)
            for sk, sv in mock_values
            if not any(self._pair_matches(sk, sv, tk, tv) for tk, tv in req_values)
        ]

    def _find_best_match(
        self, sk: Any, sv: Any, req_values: list[KeyValue]
    ) -> KeyValue | None:
        if not req_values:
            return None
        key_text = display(sk)
        exact = next(((tk, tv) for tk, tv in req_values if display(tk) == key_text), None)
        if exact is not None:
            return exact
        return min(
            req_values,
            key=lambda pair: self.key_comparator.distance(sk, pair[0])
            + self.value_comparator.distance(sv, pair[1]),
        )

    def _evaluate(
        self, req: HttpMockRequest, mock: RequestRequirements
    ) -> tuple[list[KeyValue], list[KeyValue]]:
        req_values = self.target(req) or []
        mock_values = self.source(mock) or []
        return req_values, self._find_unmatched(req_values, mock_values)

    def matches(self, req: HttpMockRequest, mock: RequestRequirements) -> bool:
        _, unmatched = self._evaluate(req, mock)
        return not unmatched

    def distance(self, req: HttpMockRequest, mock: RequestRequirements) -> int:
        req_values, unmatched = self._evaluate(req, mock)
        total = 0
        for k, v in unmatched:
            best = self._find_best_match(k, v, req_values)
            bmk, bmv = (None, None) if best is None else best
            total += (
                self.key_comparator.distance(k, bmk) + self.value_comparator.distance(v, bmv)
            ) * self.weight
        return total

    def mismatches(self, req: HttpMockRequest, mock: RequestRequirements) -> list[Mismatch]:
        req_values, unmatched = self._evaluate(req, mock)
        result = []
        for k, v in unmatched:
            best = self._find_best_match(k, v, req_values)
            if v is None:
                title = (
                    f"Expected {self.entity_name} with name '{display(k)}' "
                    "to be present in the request but it wasn't."
                )
            else:
                title = (
                    f"Expected {self.entity_name} with name '{display(k)}' and value "
                    f"'{display(v)}' to be present in the request but it wasn't."
                )
            reason = None
            if best is not None:
                bmk, bmv = best
                reason = Reason(
                    expected=display(k) if v is None else f"{display(k)}={display(v)}",
                    actual=display(bmk) if bmv is None else f"{display(bmk)}={display(bmv)}",
                    comparison=(
                        f"key={self.key_comparator.name}, value={self.value_comparator.name}"
                    ),
                    best_match=True,
                )
            result.append(Mismatch(title=title, reason=reason, diff=None))
        return result


@dataclass
class FunctionValueMatcher(Matcher):
    """Applies user-supplied predicates of a mock to the request."""

    entity_name: str
    source: Callable[[RequestRequirements], list[Any] | None]
    target: Callable[[HttpMockRequest], Any]
    comparator: ValueComparator
    weight: int = 1

    def _unmatched_positions(self, req: HttpMockRequest, mock: RequestRequirements) -> list[int]:
        mock_values = self.source(mock)
        if mock_values is None:
            return []
        req_value = self.target(req)
        if req_value is None:
            return list(range(len(mock_values)))
        return [
            idx
            for idx, value in enumerate(mock_values)
            if not self.comparator.matches(value, req_value)
        ]

    def matches(self, req: HttpMockRequest, mock: RequestRequirements) -> bool:
        return not self._unmatched_positions(req, mock)

    def distance(self, req: HttpMockRequest, mock: RequestRequirements) -> int:
        return len(self._unmatched_positions(req, mock)) * self.weight

    def mismatches(self, req: HttpMockRequest, mock: RequestRequirements) -> list[Mismatch]:
        return [
            Mismatch(title=f"The {self.entity_name} at position {idx + 1} does not match")
            for idx in self._unmatched_positions(req, mock)
        ]


def default_matchers() -> list[Matcher]:
    """Return the matchers the server evaluates, in evaluation order."""
    return [
        SingleValueMatcher(
            "path", sources.path_source, targets.path_target,
            StringExactMatchComparator(False), weight=10,
        ),
        SingleValueMatcher(
            "path", sources.path_contains_source, targets.path_target,
            StringContainsMatchComparator(True), weight=10,
        ),
        SingleValueMatcher(
            "path", sources.path_regex_source, targets.path_target,
            StringRegexMatchComparator(), weight=10,
        ),
        SingleValueMatcher(
            "method", sources.method_source, targets.method_target,
            StringExactMatchComparator(False), weight=3,
        ),
        MultiValueMatcher(
            "query parameter", sources.query_param_source, targets.query_parameter_target,
            StringExactMatchComparator(True), StringExactMatchComparator(True),
        ),
        MultiValueMatcher(
            "query parameter", sources.query_param_exists_source,
            targets.query_parameter_target,
            StringExactMatchComparator(True), AnyValueComparator(),
        ),
        MultiValueMatcher(
            "cookie", sources.cookie_source, targets.cookie_target,
            StringExactMatchComparator(True), StringExactMatchComparator(True),
        ),
        MultiValueMatcher(
            "cookie", sources.cookie_exists_source, targets.cookie_target,
            StringExactMatchComparator(True), AnyValueComparator(),
        ),
        MultiValueMatcher(
            "header", sources.header_source, targets.header_target,
            StringExactMatchComparator(False), StringExactMatchComparator(True),
        ),
        MultiValueMatcher(
            "header", sources.header_exists_source, targets.header_target,
            StringExactMatchComparator(False), AnyValueComparator(),
        ),
        SingleValueMatcher(
            "body", sources.string_body_source, targets.string_body_target,
            StringExactMatchComparator(False), with_reason=False, diff_with=Tokenizer.LINE,
        ),
        SingleValueMatcher(
            "body", sources.body_contains_source, targets.string_body_target,
            StringContainsMatchComparator(True), with_reason=False, diff_with=Tokenizer.LINE,
        ),
        SingleValueMatcher(
            "body", sources.body_regex_source, targets.string_body_target,
            StringRegexMatchComparator(), with_reason=False, diff_with=Tokenizer.LINE,
        ),
        SingleValueMatcher(
            "body", sources.partial_json_body_source, targets.json_body_target,
            JSONContainsMatchComparator(), with_reason=False, diff_with=Tokenizer.LINE,
        ),
        SingleValueMatcher(
            "body", sources.json_body_source, targets.json_body_target,
            JSONExactMatchComparator(), with_reason=True, diff_with=Tokenizer.LINE,
        ),
        MultiValueMatcher(
            "x-www-form-urlencoded body tuple", sources.form_urlencoded_source,
            targets.form_urlencoded_body_target,
            StringExactMatchComparator(True), StringExactMatchComparator(True),
        ),
        MultiValueMatcher(
            "x-www-form-urlencoded body tuple", sources.form_urlencoded_key_exists_source,
            targets.form_urlencoded_body_target,
            StringExactMatchComparator(True), AnyValueComparator(),
        ),
        FunctionValueMatcher(
            "user provided matcher function", sources.function_source,
            targets.full_request_target, FunctionMatchesRequestComparator(),
        ),
    ]