"""Response filters and matchers, and the manager that holds them."""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .models import Response

ALL_STATUSES = 0

_INT_RE = re.compile(r"[+-]?[0-9]+")
_RANGE_RE = re.compile(r"([0-9]+)-([0-9]+)")


class FilterError(ValueError):
    """Raised when a filter or matcher cannot be created."""


@dataclass(frozen=True)
class ValueRange:
    """An inclusive integer range."""

    min: int
    max: int

    def __contains__(self, number: int) -> bool:
        return self.min <= number <= self.max

    def __str__(self) -> str:
        return str(self.min) if self.min == self.max else f"{self.min}-{self.max}"


def parse_value_range(text: str) -> ValueRange:
    """Parse ``"N"`` or ``"N-M"`` into a ValueRange."""
    match = _RANGE_RE.fullmatch(text)
    if match:
        return ValueRange(int(match.group(1)), int(match.group(2)))
    if _INT_RE.fullmatch(text):
        value = int(text)
        return ValueRange(value, value)
    raise FilterError(f"Invalid value: {text}")


def _as_text(value: Union[bytes, str]) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", "surrogateescape")
    return value


class RangeFilter(ABC):
    """A filter that checks a measured quantity against a list of ranges."""

    label = "Range filter or matcher"
    verbose_name = "Value"

    def __init__(self, value: str) -> None:
        self.value: list[ValueRange] = [self._parse_part(part) for part in value.split(",")]

    def _parse_part(self, part: str) -> ValueRange:
        try:
            return parse_value_range(part)
        except FilterError:
            raise FilterError(f"{self.label}: invalid value: {part}") from None

    def _contains(self, number: int) -> bool:
        return any(number in rng for rng in self.value)

    @abstractmethod
    def filter(self, response: Response) -> bool:
        """Return True when the response falls within one of the ranges."""

    def spec(self) -> str:
        """The option string this filter represents."""
        return ",".join(str(rng) for rng in self.value)

    def describe(self) -> str:
        return f"{self.verbose_name}: {self.spec()}"

    def to_dict(self) -> dict[str, str]:
        return {"value": self.spec()}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.spec()!r})"


class StatusFilter(RangeFilter):
    """Filters on the HTTP status code; ``all`` matches every response."""

    label = "Status filter or matcher (-fc / -mc)"
    verbose_name = "Response status"

    def _parse_part(self, part: str) -> ValueRange:
        if part == "all":
            return ValueRange(ALL_STATUSES, ALL_STATUSES)
        try:
            return parse_value_range(part)
        except FilterError:
            raise FilterError(f"{self.label}: invalid value {part}") from None

    def filter(self, response: Response) -> bool:
        for rng in self.value:
            if rng.min == ALL_STATUSES and rng.max == ALL_STATUSES:
                return True
            if response.status_code in rng:
                return True
        return False

    def spec(self) -> str:
        return ",".join(
            "all" if rng.min == ALL_STATUSES and rng.max == ALL_STATUSES else str(rng)
            for rng in self.value
        )


class SizeFilter(RangeFilter):
    """Filters on the response content length."""

    label = "Size filter or matcher (-fs / -ms)"
    verbose_name = "Response size"

    def filter(self, response: Response) -> bool:
        return self._contains(response.content_length)


class WordFilter(RangeFilter):
    """Filters on the number of space-separated words in the body."""

    label = "Word filter or matcher (-fw / -mw)"
    verbose_name = "Response words"

    def filter(self, response: Response) -> bool:
        return self._contains(len(response.data.split(b" ")))


class LineFilter(RangeFilter):
    """Filters on the number of lines in the body."""

    label = "Line filter or matcher (-fl / -ml)"
    verbose_name = "Response lines"

    def filter(self, response: Response) -> bool:
        return self._contains(len(response.data.split(b"\n")))


class RegexpFilter:
    """Filters on a regular expression searched in headers and body.

    Input keywords in the pattern are replaced with the escaped input values.
    """

    def __init__(self, value: str) -> None:
        try:
            self.pattern = re.compile(value)
        except re.error:
            raise FilterError(
                f"Regexp filter or matcher (-fr / -mr): invalid value: {value}"
            ) from None
        self._raw = value

    def filter(self, response: Response) -> bool:
        headers = "".join(
            f"{name}: {value}\r\n"
            for name, values in response.headers.items()
            for value in values
        )
        text = headers + _as_text(response.data)
        pattern = self._raw
        if response.request is not None:
            for keyword, item in response.request.input.items():
                pattern = pattern.replace(keyword, re.escape(_as_text(item)))
        try:
            return re.search(pattern, text) is not None
        except re.error:
            return False

    def spec(self) -> str:
        return self._raw

    def describe(self) -> str:
        return f"Regexp: {self._raw}"

    def to_dict(self) -> dict[str, str]:
        return {"value": self._raw}

    def __repr__(self) -> str:
        return f"RegexpFilter({self._raw!r})"


class TimeFilter:
    """Filters on time to first byte, given as ``>ms`` or ``<ms``."""

    def __init__(self, value: str) -> None:
        greater = value.startswith(">")
        less = value.startswith("<")
        if greater == less or not _INT_RE.fullmatch(value[1:]):
            raise FilterError(f"Time filter or matcher (-ft / -mt): invalid value: {value}")
        self.ms = int(value[1:])
        self.greater_than = greater
        self.less_than = less
        self._raw = value

    def filter(self, response: Response) -> bool:
        elapsed_ms = int(response.duration * 1000)
        if self.greater_than:
            return elapsed_ms > self.ms
        return elapsed_ms < self.ms

    def spec(self) -> str:
        return self._raw

    def describe(self) -> str:
        return f"Response time: {self._raw}"

    def to_dict(self) -> dict[str, str]:
        return {"value": self._raw}

    def __repr__(self) -> str:
        return f"TimeFilter({self._raw!r})"


Filter = Union[RangeFilter, RegexpFilter, TimeFilter]

_FILTER_TYPES = {
    "status": StatusFilter,
    "size": SizeFilter,
    "word": WordFilter,
    "line": LineFilter,
    "regexp": RegexpFilter,
    "time": TimeFilter,
}


def new_filter(name: str, value: str) -> Filter:
    """Create a filter of the given kind from its option string."""
    try:
        kind = _FILTER_TYPES[name]
    except KeyError:
        raise FilterError(f"Could not create filter with name {name}") from None
    return kind(value)


@dataclass
class PerDomainFilter:
    """Filters that apply to a single host."""

    filters: dict[str, Filter]
    is_calibrated: bool = False


def _merged(existing: dict[str, Filter], name: str, option: str, replace: bool) -> None:
    created = new_filter(name, option)
    if name not in existing or replace:
        existing[name] = created
        return
    try:
        existing[name] = new_filter(name, existing[name].spec() + "," + option)
    except FilterError:
        pass


@dataclass
class MatcherManager:
    """Holds matchers, global filters and per-host filters."""

    is_calibrated: bool = False
    matchers: dict[str, Filter] = field(default_factory=dict)
    filters: dict[str, Filter] = field(default_factory=dict)
    per_domain_filters: dict[str, PerDomainFilter] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def set_calibrated(self, value: bool) -> None:
        self.is_calibrated = value

    def set_calibrated_for_host(self, host: str, value: bool) -> None:
        existing = self.per_domain_filters.get(host)
        if existing is not None:
            existing.is_calibrated = value
        else:
            self.per_domain_filters[host] = PerDomainFilter(self.filters, is_calibrated=True)

    def add_filter(self, name: str, option: str, replace: bool) -> None:
        """Add a filter, appending to an existing one of the same kind unless replacing."""
        with self._lock:
            _merged(self.filters, name, option, replace)

    def add_per_domain_filter(self, domain: str, name: str, option: str) -> None:
        with self._lock:
            domain_filters = self.per_domain_filters.get(domain)
            if domain_filters is None:
                domain_filters = PerDomainFilter(self.filters)
            try:
                _merged(domain_filters.filters, name, option, False)
            finally:
                self.per_domain_filters[domain] = domain_filters

    def remove_filter(self, name: str) -> None:
        with self._lock:
            self.filters.pop(name, None)

    def add_matcher(self, name: str, option: str) -> None:
        with self._lock:
            _merged(self.matchers, name, option, False)

    def filters_for_domain(self, domain: str) -> dict[str, Filter]:
        domain_filters = self.per_domain_filters.get(domain)
        if domain_filters is None:
            return self.filters
        return domain_filters.filters

    def calibrated_for_domain(self, domain: str) -> bool:
        domain_filters = self.per_domain_filters.get(domain)
        return domain_filters.is_calibrated if domain_filters is not None else False