import json
import re

import pytest

from fuffa.models import Response
from fuffa.scraper import (
    Scraper,
    ScraperRule,
    from_dir,
    header_string,
    is_active,
    parse_active_groups,
)


def _rule(**kwargs):
    rule = ScraperRule(**kwargs)
    rule.compile()
    return rule


def _write_group(path, name, active, rules):
    path.write_text(json.dumps({"groupname": name, "active": active, "rules": rules}))


def test_regexp_rule_returns_matches_and_groups():
    rule = _rule(name="ids", rule=r"id=(\d+)", type="regexp")
    assert rule.check("id=1 id=22") == ["id=1", "1", "id=22", "22"]


def test_regexp_rule_unmatched_group_is_empty():
    rule = _rule(rule=r"a(b)?", type="regexp")
    assert rule.check("a") == ["a", ""]


def test_invalid_regexp_fails_to_compile():
    with pytest.raises(re.error):
        _rule(rule="(", type="regexp")


def test_query_rule_selects_text():
    rule = _rule(rule="h1", type="query")
    assert rule.check("<html><body><h1>Title</h1><p>x</p></body></html>") == ["Title"]


def test_unknown_type_finds_nothing():
    rule = _rule(rule="x", type="other")
    assert rule.check("xxx") == []


def test_execute_targets_headers_and_body():
    scraper = Scraper(
        rules=[
            _rule(name="hdr", rule=r"X-Trace: (\w+)", type="regexp", target="headers", action=["output"]),
            _rule(name="body", rule="X-Trace", type="regexp", target="body"),
            _rule(name="both", rule=r"abc|inner", type="regexp", target="all"),
        ]
    )
    response = Response(headers={"X-Trace": ["abc"]}, data=b"<p>inner</p>")
    results = scraper.execute(response, True)
    assert [r.name for r in results] == ["hdr", "both"]
    assert results[0].results == ["X-Trace: abc", "abc"]
    assert results[0].action == ["output"]
    assert results[1].results == ["abc", "inner"]


def test_execute_skips_only_matched_rules_without_match():
    scraper = Scraper(rules=[_rule(name="m", rule="body", type="regexp", target="body", only_matched=True)])
    response = Response(data=b"body")
    assert scraper.execute(response, False) == []
    assert len(scraper.execute(response, True)) == 1


def test_header_string():
    assert header_string({"A": ["1", "2"]}) == "A: 1\nA: 2\n"


def test_parse_active_groups_and_is_active():
    groups = parse_active_groups(" All , Foo")
    assert groups == ["all", "foo"]
    assert is_active(" FOO ", groups)
    assert not is_active("bar", groups)


def test_append_from_file_skips_bad_rule(tmp_path):
    path = tmp_path / "group.json"
    _write_group(path, "g", True, [
        {"name": "bad", "rule": "(", "type": "regexp"},
        {"name": "good", "rule": "x", "type": "regexp"},
    ])
    scraper = Scraper()
    scraper.append_from_file(str(path))
    assert [r.name for r in scraper.rules] == ["good"]


def test_append_from_file_raises_when_last_rule_bad(tmp_path):
    path = tmp_path / "group.json"
    _write_group(path, "g", True, [
        {"name": "good", "rule": "x", "type": "regexp"},
        {"name": "bad", "rule": "(", "type": "regexp"},
    ])
    scraper = Scraper()
    with pytest.raises(re.error):
        scraper.append_from_file(str(path))
    assert [r.name for r in scraper.rules] == ["good"]


def test_from_dir_loads_active_groups(tmp_path):
    _write_group(tmp_path / "a.json", "main", True, [{"name": "r1", "rule": "a", "type": "regexp", "onlymatched": True}])
    _write_group(tmp_path / "b.json", "extra", False, [{"name": "r2", "rule": "b", "type": "regexp"}])
    (tmp_path / "notes.txt").write_text("ignored")

    scraper, errors = from_dir(str(tmp_path), "all")
    assert errors == []
    assert [r.name for r in scraper.rules] == ["r1"]
    assert scraper.rules[0].only_matched is True

    scraper, errors = from_dir(str(tmp_path), "all, EXTRA")
    assert [r.name for r in scraper.rules] == ["r1", "r2"]


def test_from_dir_reports_broken_files(tmp_path):
    (tmp_path / "broken.json").write_text("{not json")
    _write_group(tmp_path / "ok.json", "ok", True, [{"name": "bad", "rule": "(", "type": "regexp"}])
    scraper, errors = from_dir(str(tmp_path), "all")
    assert scraper.rules == []
    assert len(errors) == 2
    assert all(" : " in error for error in errors)


def test_from_dir_missing_directory(tmp_path):
    scraper, errors = from_dir(str(tmp_path / "missing"), "all")
    assert scraper.rules == []
    assert len(errors) == 1