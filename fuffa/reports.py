"""Writers for result files: CSV, JSON, HTML and Markdown."""

from __future__ import annotations

import base64
import csv
import dataclasses
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable

from .audit import _dumps

if TYPE_CHECKING:
    from .models import Config, Result

HASH_KEYWORD = "FUFFAHASH"

_STATIC_HEADERS = (
    "url",
    "redirectlocation",
    "position",
    "status_code",
    "content_length",
    "content_words",
    "content_lines",
    "content_type",
    "duration",
    "resultfile",
    "Fuffahash",
)

_HTML_ENTITIES = (("&", "&amp;"), ("'", "&#39;"), ("<", "&lt;"), (">", "&gt;"), ('"', "&#34;"), ("\0", "\ufffd"))


def _text(value: bytes) -> str:
    return value.decode("utf-8", "replace")


def _escape(value: Any) -> str:
    text = str(value)
    for char, entity in _HTML_ENTITIES:
        text = text.replace(char, entity)
    return text


def _nanoseconds(seconds: float) -> int:
    return round(seconds * 1_000_000_000)


def _timestamp() -> str:
    return datetime.now().astimezone().replace(microsecond=0).isoformat()


def _decimal(value: int, digits: int) -> str:
    whole, rest = divmod(value, 10**digits)
    fraction = f"{rest:0{digits}d}".rstrip("0")
    return f"{whole}.{fraction}" if fraction else str(whole)


def format_duration(seconds: float) -> str:
    """Format a duration the compact way: ``123ns``, ``1.5ms``, ``1h2m3.5s``."""
    nanos = _nanoseconds(seconds)
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_decimal(nanos, 3)}µs"
    if nanos < 1_000_000_000:
        return f"{sign}{_decimal(nanos, 6)}ms"
    total, rest = divmod(nanos, 1_000_000_000)
    secs = _decimal(total % 60 * 1_000_000_000 + rest, 9)
    minutes = total // 60 % 60
    hours = total // 3600
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def _keywords(config: Config) -> list[str]:
    return [provider.keyword for provider in config.input_providers]


def to_csv_row(result: Result) -> list[str]:
    """The CSV fields of a result: input values, then the fixed columns, hash last."""
    row = []
    hash_value = ""
    for key, value in result.input.items():
        if key == HASH_KEYWORD:
            hash_value = _text(value)
        else:
            row.append(_text(value))
    row += [
        result.url,
        result.redirect_location,
        str(result.position),
        str(result.status_code),
        str(result.content_length),
        str(result.content_words),
        str(result.content_lines),
        result.content_type,
        format_duration(result.duration),
        result.result_file,
        hash_value,
    ]
    return row


def write_csv(filename: str, config: Config, results: Iterable[Result], encode: bool) -> None:
    """Write results as CSV; with ``encode`` the input values are base64 encoded."""
    with open(filename, "w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(_keywords(config) + list(_STATIC_HEADERS))
        for result in results:
            if encode:
                result = dataclasses.replace(
                    result,
                    input={key: base64.b64encode(value) for key, value in result.input.items()},
                )
            writer.writerow(to_csv_row(result))


def _json_result(result: Result) -> dict[str, Any]:
    return {
        "input": {key: _text(value) for key, value in result.input.items()},
        "position": result.position,
        "status": result.status_code,
        "length": result.content_length,
        "words": result.content_words,
        "lines": result.content_lines,
        "content-type": result.content_type,
        "redirectlocation": result.redirect_location,
        "scraper": result.scraper_data,
        "duration": _nanoseconds(result.duration),
        "resultfile": result.result_file,
        "url": result.url,
        "host": result.host,
    }


def _ejson_result(result: Result) -> dict[str, Any]:
    record = {f.name: getattr(result, f.name) for f in dataclasses.fields(result)}
    record["duration"] = _nanoseconds(result.duration)
    return record


def _write_text(filename: str, text: str) -> None:
    with open(filename, "w", encoding="utf-8") as handle:
        handle.write(text)


def write_json(filename: str, config: Config, results: Iterable[Result]) -> None:
    """Write results and the job configuration as JSON, inputs as text."""
    document = {
        "commandline": config.command_line,
        "time": _timestamp(),
        "results": [_json_result(result) for result in results],
        "config": config,
    }
    _write_text(filename, _dumps(document))


def write_ejson(filename: str, config: Config, results: Iterable[Result]) -> None:
    """Write results as JSON with the input values base64 encoded."""
    document = {
        "commandline": config.command_line,
        "time": _timestamp(),
        "results": [_ejson_result(result) for result in results],
        "config": None,
    }
    _write_text(filename, _dumps(document))


def _status_color(status: int) -> str:
    if 200 <= status <= 299:
        return "#adea9e"
    if 300 <= status <= 399:
        return "#bbbbe6"
    if 400 <= status <= 499:
        return "#d2cb7e"
    if 500 <= status <= 599:
        return "#de8dc1"
    return "black"


def colorize_results(results: Iterable[Result]) -> list[Result]:
    """Copies of the results with a row colour chosen by status code."""
    return [dataclasses.replace(result, html_color=_status_color(result.status_code)) for result in results]


def _split_inputs(result: Result) -> tuple[dict[str, str], str]:
    inputs = {}
    hash_value = ""
    for key, value in result.input.items():
        if key == HASH_KEYWORD:
            hash_value = _text(value)
        else:
            inputs[key] = _text(value)
    return dict(sorted(inputs.items())), hash_value


def _scraper_markup(scraper_data: dict[str, list[str]], escape: bool) -> str:
    clean = _escape if escape else str
    parts = []
    for name, values in scraper_data.items():
        if values:
            parts.append(f"<p><b>{clean(name)}:</b><br />" + "<br />".join(clean(v) for v in values) + "</p>")
    return "".join(parts)


_HTML_STYLE = """
      body { font-family: sans-serif; margin: 2em; }
      table { border-collapse: collapse; width: 100%; }
      th, td { border: 1px solid #999999; padding: 4px 8px; text-align: left; }
      .hidden { display: none; }
"""

_HTML_COLUMNS = (
    "URL", "Redirect location", "Position", "Length", "Words", "Lines",
    "Type", "Duration", "Resultfile", "Scraper data", "Fuffa Hash",
)


def _html_row(result: Result) -> str:
    inputs, hash_value = _split_inputs(result)
    scraper = _scraper_markup(result.scraper_data, escape=True)
    duration = format_duration(result.duration)
    raw_inputs = "".join(f"|{_escape(v)}" for v in inputs.values())
    raw = (
        f"|result_raw|{result.status_code}{raw_inputs}|{_escape(result.url)}|"
        f"{_escape(result.redirect_location)}|{result.position}|{result.content_length}|"
        f"{result.content_words}|{result.content_lines}|{_escape(result.content_type)}|"
        f"{duration}|{_escape(result.result_file)}|{_escape(scraper)}|{_escape(hash_value)}|"
    )
    cells = [f'<td><font color="black" class="status-code">{result.status_code}</font></td>']
    cells += [f"<td>{_escape(v)}</td>" for v in inputs.values()]
    cells += [
        f'<td><a href="{_escape(result.url)}">{_escape(result.url)}</a></td>',
        f'<td><a href="{_escape(result.redirect_location)}">{_escape(result.redirect_location)}</a></td>',
        f"<td>{result.position}</td>",
        f"<td>{result.content_length}</td>",
        f"<td>{result.content_words}</td>",
        f"<td>{result.content_lines}</td>",
        f"<td>{_escape(result.content_type)}</td>",
        f"<td>{duration}</td>",
        f"<td>{_escape(result.result_file)}</td>",
        f"<td>{_escape(scraper)}</td>",
        f"<td>{_escape(hash_value)}</td>",
    ]
    body = "\n".join(f"          {cell}" for cell in cells)
    return (
        f'        <div class="hidden">\n{raw}\n        </div>\n'
        f'        <tr class="result-{result.status_code}" '
        f'style="background-color: {_escape(result.html_color)};">\n{body}\n        </tr>'
    )


def write_html(filename: str, config: Config, results: Iterable[Result]) -> None:
    """Write results as an HTML report with one coloured table row per result."""
    keys = _keywords(config)
    rows = [_html_row(result) for result in colorize_results(results)]
    raw_header = (
        "|result_raw|StatusCode" + "".join(f"|{_escape(k)}" for k in keys)
        + "|Url|RedirectLocation|Position|ContentLength|ContentWords|ContentLines"
        "|ContentType|Duration|Resultfile|ScraperData|FuffaHash|"
    )
    headings = ["Status", *keys, *_HTML_COLUMNS]
    lines = [
        "<!DOCTYPE html>",
        "<html>",
        "  <head>",
        '    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />',
        "    <title>Fuffa Report</title>",
        f"    <style>{_HTML_STYLE}    </style>",
        "  </head>",
        "  <body>",
        "    <h1>Fuffa Report</h1>",
        f"    <pre>{_escape(config.command_line)}</pre>",
        f"    <pre>{_escape(_timestamp())}</pre>",
        '    <table id="fuffareport">',
        "      <thead>",
        f'        <div class="hidden">\n{raw_header}\n        </div>',
        "        <tr>",
        *(f"          <th>{_escape(h)}</th>" for h in headings),
        "        </tr>",
        "      </thead>",
        "      <tbody>",
        *rows,
        "      </tbody>",
        "    </table>",
        "  </body>",
        "</html>",
        "",
    ]
    _write_text(filename, "\n".join(lines))


def write_markdown(filename: str, config: Config, results: Iterable[Result]) -> None:
    """Write results as a Markdown table.

    A result without a hash input shows the hash of the last result that had one.
    """
    keys = _keywords(config)
    header = "".join(f"| {_escape(k)} " for k in keys) + (
        "| URL | Redirectlocation | Position | Status Code | Content Length | Content Words"
        " | Content Lines | Content Type | Duration | ResultFile | ScraperData | Fuffahash"
    )
    separator = "".join("| :- " for _ in keys) + (
        "| :-- | :--------------- | :---- | :------- | :---------- | :------------- "
        "| :------------ | :--------- | :----------- | :------------ | :-------- |"
    )
    rows = []
    hash_value = ""
    for result in results:
        inputs: dict[str, str] = {}
        for key, value in result.input.items():
            if key == HASH_KEYWORD:
                hash_value = _text(value)
            else:
                inputs[key] = _text(value)
        cells = "".join(f"| {_escape(v)} " for _, v in sorted(inputs.items()))
        scraper = _scraper_markup(result.scraper_data, escape=False)
        rows.append(
            f"{cells}| {_escape(result.url)} | {_escape(result.redirect_location)} | "
            f"{result.position} | {result.status_code} | {result.content_length} | "
            f"{result.content_words} | {result.content_lines} | {_escape(result.content_type)} | "
            f"{format_duration(result.duration)} | {_escape(result.result_file)} | "
            f"{_escape(scraper)} | {_escape(hash_value)}"
        )
    text = (
        "# Fuffa Report\n\n"
        f"  Command line : `{_escape(config.command_line)}`\n"
        f"  Time: {_escape(_timestamp())}\n\n"
        f"  {header}\n  {separator}\n  " + "".join(row + "\n  " for row in rows)
    )
    _write_text(filename, text)