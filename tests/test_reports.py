import base64
import csv
import json

import pytest

from fuffa.models import Config, InputProviderConfig, Result
from fuffa.reports import (
    colorize_results,
    format_duration,
    to_csv_row,
    write_csv,
    write_ejson,
    write_html,
    write_json,
    write_markdown,
)


def _config():
    return Config(
        command_line="fuffa -u http://example.com/FUZZ",
        input_providers=[InputProviderConfig(keyword="FUZZ", value="words.txt")],
    )


def _result(**overrides):
    values = dict(
        input={"FUZZ": b"admin"},
        position=1,
        status_code=200,
        content_length=10,
        content_words=2,
        content_lines=3,
        content_type="text/html",
        url="http://example.com/admin",
        duration=0.25,
        host="example.com",
    )
    values.update(overrides)
    return Result(**values)


def test_to_csv_row_matches_source_case():
    result = Result(
        input={"x": b"B", "FUFFAHASH": b"A"},
        position=1,
        status_code=200,
        content_length=3,
        content_words=4,
        content_lines=5,
        content_type="application/json",
        redirect_location="http://no.pe",
        url="http://as.df",
        duration=123e-9,
        result_file="resultfile",
        host="host",
    )
    assert to_csv_row(result) == [
        "B",
        "http://as.df",
        "http://no.pe",
        "1",
        "200",
        "3",
        "4",
        "5",
        "application/json",
        "123ns",
        "resultfile",
        "A",
    ]


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0s"),
        (123e-9, "123ns"),
        (2e-6, "2µs"),
        (1.5e-6, "1.5µs"),
        (0.0015, "1.5ms"),
        (0.25, "250ms"),
        (1.5, "1.5s"),
        (90, "1m30s"),
        (3600, "1h0m0s"),
        (3723.5, "1h2m3.5s"),
        (-2, "-2s"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_write_csv(tmp_path):
    path = tmp_path / "out.csv"
    write_csv(str(path), _config(), [_result()], False)
    with open(path, newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == [
        "FUZZ", "url", "redirectlocation", "position", "status_code", "content_length",
        "content_words", "content_lines", "content_type", "duration", "resultfile", "Fuffahash",
    ]
    assert rows[1] == [
        "admin", "http://example.com/admin", "", "1", "200", "10", "2", "3",
        "text/html", "250ms", "", "",
    ]


def test_write_csv_encoded(tmp_path):
    path = tmp_path / "out.ecsv"
    original = _result(input={"FUZZ": b"B", "FUFFAHASH": b"A"})
    write_csv(str(path), _config(), [original], True)
    with open(path, newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[1][0] == "Qg=="
    assert rows[1][-1] == "QQ=="
    assert original.input == {"FUZZ": b"B", "FUFFAHASH": b"A"}


def test_write_csv_missing_directory(tmp_path):
    with pytest.raises(OSError):
        write_csv(str(tmp_path / "nope" / "out.csv"), _config(), [], False)


def test_write_json(tmp_path):
    path = tmp_path / "out.json"
    write_json(str(path), _config(), [_result()])
    document = json.loads(path.read_text())
    assert document["commandline"] == "fuffa -u http://example.com/FUZZ"
    assert document["config"]["method"] == "GET"
    assert document["results"] == [
        {
            "input": {"FUZZ": "admin"},
            "position": 1,
            "status": 200,
            "length": 10,
            "words": 2,
            "lines": 3,
            "content-type": "text/html",
            "redirectlocation": "",
            "scraper": {},
            "duration": 250_000_000,
            "resultfile": "",
            "url": "http://example.com/admin",
            "host": "example.com",
        }
    ]


def test_write_ejson(tmp_path):
    path = tmp_path / "out.ejson"
    write_ejson(str(path), _config(), [_result()])
    document = json.loads(path.read_text())
    assert document["config"] is None
    record = document["results"][0]
    assert base64.b64decode(record["input"]["FUZZ"]) == b"admin"
    assert record["duration"] == 250_000_000
    assert record["status_code"] == 200


def test_colorize_results():
    results = [_result(status_code=code) for code in (200, 301, 404, 503, 100)]
    colored = colorize_results(results)
    assert [r.html_color for r in colored] == ["#adea9e", "#bbbbe6", "#d2cb7e", "#de8dc1", "black"]
    assert all(r.html_color == "" for r in results)


def test_write_html(tmp_path):
    path = tmp_path / "out.html"
    result = _result(
        input={"FUZZ": b"<script>", "FUFFAHASH": b"abc123"},
        scraper_data={"title": ["a&b"]},
    )
    write_html(str(path), _config(), [result])
    content = path.read_text()
    assert "&lt;script&gt;" in content
    assert "<script>" not in content
    assert 'class="result-200"' in content
    assert "background-color: #adea9e;" in content
    assert "<td>abc123</td>" in content
    assert "a&amp;amp;b" in content
    assert "<th>FUZZ</th>" in content


def test_write_markdown(tmp_path):
    path = tmp_path / "out.md"
    write_markdown(str(path), _config(), [_result()])
    content = path.read_text()
    assert "Command line : `fuffa -u http://example.com/FUZZ`" in content
    assert "| FUZZ | URL |" in content
    assert (
        "| admin | http://example.com/admin |  | 1 | 200 | 10 | 2 | 3 | text/html | 250ms |  |  | "
        in content
    )


def test_write_markdown_hash_carries_over(tmp_path):
    path = tmp_path / "out.md"
    first = _result(input={"FUZZ": b"one", "FUFFAHASH": b"h1"})
    second = _result(input={"FUZZ": b"two"})
    write_markdown(str(path), _config(), [first, second])
    rows = [line.strip() for line in path.read_text().splitlines() if line.strip().startswith("| one") or line.strip().startswith("| two")]
    assert len(rows) == 2
    assert rows[0].endswith("| h1")
    assert rows[1].endswith("| h1")