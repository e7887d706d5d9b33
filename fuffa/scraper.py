"""Scrapers: rules that pull data out of responses with regexps or CSS selectors."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from bs4 import BeautifulSoup

if TYPE_CHECKING:
    from .models import Response


@dataclass
class ScraperResult:
    """Values extracted from one response by one rule."""

    name: str
    type: str
    action: list[str]
    results: list[str]


@dataclass
class ScraperRule:
    """A single extraction rule.

    ``type`` is ``regexp`` or ``query`` (a CSS selector); ``target`` is
    ``body``, ``headers`` or anything else for both.
    """

    name: str = ""
    rule: str = ""
    target: str = ""
    type: str = ""
    only_matched: bool = False
    action: list[str] = field(default_factory=list)
    _compiled: Optional[re.Pattern[str]] = field(default=None, init=False, repr=False, compare=False)

    def compile(self) -> None:
        """Prepare the rule for use; raises re.error on a broken regexp."""
        if self.type == "regexp":
            self._compiled = re.compile(self.rule)

    def check(self, data: str) -> list[str]:
        """Return the values the rule finds in the data."""
        if self.type == "regexp":
            return self._check_regexp(data)
        if self.type == "query":
            return self._check_query(data)
        return []

    def _check_query(self, data: str) -> list[str]:
        try:
            document = BeautifulSoup(data, "html.parser")
            return [element.get_text() for element in document.select(self.rule)]
        except Exception:  # an unparsable selector simply matches nothing
            return []

    def _check_regexp(self, data: str) -> list[str]:
        if self._compiled is None:
            return []
        values: list[str] = []
        for match in self._compiled.finditer(data):
            values.append(match.group(0))
            values.extend(match.groups(default=""))
        return values


@dataclass
class ScraperGroup:
    """A named set of rules, as stored in one JSON file."""

    rules: list[ScraperRule] = field(default_factory=list)
    name: str = ""
    active: bool = False


def _field(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is not bool and isinstance(value, bool)):
        raise ValueError(f"cannot read {type(value).__name__} into field {key}")
    return value


def _lower_keys(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object for {what}")
    return {str(key).lower(): value for key, value in data.items()}


def _rule_from_json(data: Any) -> ScraperRule:
    values = _lower_keys(data, "rule")
    action = _field(values, "action", list, [])
    if not all(isinstance(item, str) for item in action):
        raise ValueError("cannot read non-string values into field action")
    return ScraperRule(
        name=_field(values, "name", str, ""),
        rule=_field(values, "rule", str, ""),
        target=_field(values, "target", str, ""),
        type=_field(values, "type", str, ""),
        only_matched=_field(values, "onlymatched", bool, False),
        action=list(action),
    )


def _read_group(path: str) -> ScraperGroup:
    with open(path, "r", encoding="utf-8") as handle:
        values = _lower_keys(json.load(handle), "group")
    return ScraperGroup(
        rules=[_rule_from_json(rule) for rule in _field(values, "rules", list, [])],
        name=_field(values, "groupname", str, ""),
        active=_field(values, "active", bool, False),
    )


def header_string(headers: dict[str, list[str]]) -> str:
    """Render headers as ``Name: value`` lines."""
    return "".join(f"{name}: {value}\n" for name, values in headers.items() for value in values)


def parse_active_groups(text: str) -> list[str]:
    """Split a comma separated list of group names, normalised to lower case."""
    return [part.strip().lower() for part in text.split(",")]


def is_active(name: str, groups: list[str]) -> bool:
    return name.strip().lower() in groups


@dataclass
class Scraper:
    """Holds the active rules and runs them against responses."""

    rules: list[ScraperRule] = field(default_factory=list)

    def append_from_file(self, path: str) -> None:
        """Add every valid rule of a group file.

        Rules that fail to compile are skipped; if the last rule of the file
        is one of them its error is raised after the others were added.
        """
        group = _read_group(path)
        last_error: Optional[re.error] = None
        for rule in group.rules:
            try:
                rule.compile()
            except re.error as err:
                last_error = err
                continue
            last_error = None
            self.rules.append(rule)
        if last_error is not None:
            raise last_error

    def execute(self, response: Response, matched: bool) -> list[ScraperResult]:
        """Run the rules on a response; rules marked only_matched need a match."""
        body = response.data.decode("utf-8", "replace")
        found = []
        for rule in self.rules:
            if rule.only_matched and not matched:
                continue
            if rule.target == "body":
                source = body
            elif rule.target == "headers":
                source = header_string(response.headers)
            else:
                source = header_string(response.headers) + body
            values = rule.check(source)
            if values:
                found.append(ScraperResult(name=rule.name, type=rule.type, action=rule.action, results=values))
        return found


def from_dir(dirname: str, active: str) -> tuple[Scraper, list[str]]:
    """Load the active groups from the JSON files of a directory.

    A group is loaded when it is marked active and ``all`` is among the
    active names, or when its own name is. Returns the scraper and the
    errors met on the way.
    """
    scraper = Scraper()
    errors: list[str] = []
    groups = parse_active_groups(active)
    try:
        entries = sorted(os.scandir(dirname), key=lambda entry: entry.name)
    except OSError as err:
        return scraper, [str(err)]
    for entry in entries:
        if not entry.is_file(follow_symlinks=False) or not entry.name.endswith(".json"):
            continue
        path = os.path.join(dirname, entry.name)
        try:
            group = _read_group(path)
        except (OSError, ValueError) as err:
            errors.append(f"{path} : {err}")
            continue
        if (group.active and is_active("all", groups)) or is_active(group.name, groups):
            for rule in group.rules:
                try:
                    rule.compile()
                except re.error as err:
                    errors.append(f"{path} : {err}")
                    continue
                scraper.rules.append(rule)
    return scraper, errors