"""Terminal output of a fuzzing job: banner, progress, results and result files."""

from __future__ import annotations

import hashlib
import os
import sys
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .audit import _dumps
from .models import Request, Result
from .reports import write_csv, write_ejson, write_html, write_json, write_markdown

if TYPE_CHECKING:
    from .models import Config, Response

VERSION = "2.1.0-dev"

if os.name == "nt":
    TERMINAL_CLEAR_LINE = "\r\r"
    ANSI_CLEAR = ""
    ANSI_RED = ""
    ANSI_GREEN = ""
    ANSI_BLUE = ""
    ANSI_CYAN = ""
    ANSI_YELLOW = ""
else:
    TERMINAL_CLEAR_LINE = "\r\x1b[2K"
    ANSI_CLEAR = "\x1b[0m"
    ANSI_RED = "\x1b[31m"
    ANSI_GREEN = "\x1b[32m"
    ANSI_BLUE = "\x1b[34m"
    ANSI_CYAN = "\x1b[36m"
    ANSI_YELLOW = "\x1b[33m"
BULLET_CHAR = "●"

BANNER_HEADER = """
  ███████╗██╗   ██╗███████╗███████╗ █████╗ 
  ██╔════╝██║   ██║██╔════╝██╔════╝██╔══██╗
  █████╗  ██║   ██║█████╗  █████╗  ███████║
  ██╔══╝  ██║   ██║██╔══╝  ██╔══╝  ██╔══██║
  ██║     ╚██████╔╝██║     ██║     ██║  ██║
  ╚═╝      ╚═════╝ ╚═╝     ╚═╝     ╚═╝  ╚═╝"""
BANNER_SEP = "________________________________________________"

_MAX_LEFT_WIDTH = 80
_MIN_LEFT_WIDTH = 47


@dataclass
class Progress:
    """A snapshot of job progress."""

    started_at: float = field(default_factory=time.time)
    req_count: int = 0
    req_total: int = 0
    req_sec: int = 0
    queue_pos: int = 0
    queue_total: int = 0
    error_count: int = 0


def is_ip_address(host: str) -> bool:
    """Whether the host looks like a dotted IPv4 address."""
    parts = host.split(".")
    if len(parts) != 4:
        return False
    for part in parts:
        if not 1 <= len(part) <= 3:
            return False
        if not all("0" <= char <= "9" for char in part):
            return False
        if int(part) > 255:
            return False
    return True


def _text(value: bytes) -> str:
    return value.decode("utf-8", "replace")


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _err(text: str) -> None:
    sys.stderr.write(text)
    sys.stderr.flush()


def _print_option(name: str, value: str) -> None:
    _err(f" :: {name:<16} : {value}\n")


def _colorize_status_code(status: int) -> str:
    if 200 <= status < 300:
        return ANSI_GREEN
    if 300 <= status < 400:
        return ANSI_CYAN
    if 400 <= status < 500:
        return ANSI_YELLOW
    if 500 <= status < 600:
        return ANSI_RED
    return ANSI_CLEAR


class StdOutput:
    """Prints results to the terminal and collects them for result files."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.results: list[Result] = []
        self.current_results: list[Result] = []
        self.fuzz_keywords = sorted(provider.keyword for provider in config.input_providers)

    def banner(self) -> None:
        config = self.config
        version = VERSION.replace("<3", f"{ANSI_RED}<3{ANSI_CLEAR}")
        _err(f"{BANNER_HEADER} v{version}\n{BANNER_SEP}\n\n")
        _print_option("Method", config.method)
        _print_option("URL", config.url)
        for provider in config.input_providers:
            if provider.name == "wordlist":
                _print_option("Wordlist", f"{provider.keyword}: {provider.value}")
        for name, value in config.headers.items():
            _print_option("Header", f"{name}: {value}")
        if config.data:
            _print_option("Data", config.data)
        if config.extensions:
            _print_option("Extensions", "".join(f"{ext} " for ext in config.extensions))
        if config.output_file:
            output_file = config.output_file
            if config.output_format == "all":
                output_file += ".{json,ejson,html,md,csv,ecsv}"
            _print_option("Output file", output_file)
            _print_option("File format", config.output_format)
        _print_option("Follow redirects", str(config.follow_redirects).lower())
        _print_option("Calibration", str(config.auto_calibration).lower())
        if config.proxy_url:
            _print_option("Proxy", config.proxy_url)
        if config.replay_proxy_url:
            _print_option("ReplayProxy", config.replay_proxy_url)
        _print_option("Timeout", str(config.timeout))
        _print_option("Threads", str(config.threads))
        if config.delay is not None:
            low, high = config.delay
            if low != high:
                _print_option("Delay", f"{low:.2f} - {high:.2f} seconds")
            else:
                _print_option("Delay", f"{low:.2f} seconds")
        for matcher in config.matcher_manager.matchers.values():
            _print_option("Matcher", matcher.describe())
        for flt in config.matcher_manager.filters.values():
            _print_option("Filter", flt.describe())
        _err(f"{BANNER_SEP}\n\n")

    def reset(self) -> None:
        """Forget the results of the current job."""
        self.current_results = []

    def cycle(self) -> None:
        """Move the current job's results to the collected results."""
        self.results.extend(self.current_results)
        self.reset()

    def progress(self, status: Progress) -> None:
        if self.config.quiet:
            return
        elapsed = max(0, int(time.time() - status.started_at))
        rate = status.req_sec if elapsed > 0 else 0
        hours, rest = divmod(elapsed, 3600)
        minutes, seconds = divmod(rest, 60)
        _err(
            f"{TERMINAL_CLEAR_LINE}:: Progress: [{status.req_count}/{status.req_total}] :: "
            f"Job [{status.queue_pos}/{status.queue_total}] :: {rate} req/sec :: "
            f"Duration: [{hours}:{minutes:02d}:{seconds:02d}] :: Errors: {status.error_count} ::"
        )

    def _message(self, label: str, color: str, text: str, trailer: str) -> None:
        if self.config.quiet:
            _err(text)
        elif not self.config.colors:
            _err(f"{TERMINAL_CLEAR_LINE}[{label}] {text}{trailer}")
        else:
            _err(f"{TERMINAL_CLEAR_LINE}[{color}{label}{ANSI_CLEAR}] {text}{trailer}")

    def info(self, text: str) -> None:
        self._message("INFO", ANSI_BLUE, text, "\n\n")

    def error(self, text: str) -> None:
        self._message("ERR", ANSI_RED, text, "\n")

    def warning(self, text: str) -> None:
        self._message("WARN", ANSI_RED, text, "\n")

    def raw(self, text: str) -> None:
        _err(f"{TERMINAL_CLEAR_LINE}{text}")

    def _write_all(self, base: str, results: list[Result]) -> None:
        writers = (
            (".json", lambda name: write_json(name, self.config, results)),
            (".ejson", lambda name: write_ejson(name, self.config, results)),
            (".html", lambda name: write_html(name, self.config, results)),
            (".md", lambda name: write_markdown(name, self.config, results)),
            (".csv", lambda name: write_csv(name, self.config, results, False)),
            (".ecsv", lambda name: write_csv(name, self.config, results, True)),
        )
        for suffix, write in writers:
            try:
                write(base + suffix)
            except (OSError, ValueError) as err:
                self.error(str(err))

    def save_file(self, filename: str, fmt: str) -> None:
        """Save all results so far to a file in the given format."""
        if self.config.output_skip_empty_file and not self.results and not self.current_results:
            self.info("No results and -or defined, output file not written.")
            return
        results = self.results + self.current_results
        if fmt == "all":
            self._write_all(filename, results)
        elif fmt == "json":
            write_json(filename, self.config, results)
        elif fmt == "ejson":
            write_ejson(filename, self.config, results)
        elif fmt == "html":
            write_html(filename, self.config, results)
        elif fmt == "md":
            write_markdown(filename, self.config, results)
        elif fmt == "csv":
            write_csv(filename, self.config, results, False)
        elif fmt == "ecsv":
            write_csv(filename, self.config, results, True)

    def finalize(self) -> None:
        """Write the output file, if one is configured, after all jobs are done."""
        if self.config.output_file:
            try:
                self.save_file(self.config.output_file, self.config.output_format)
            except (OSError, ValueError) as err:
                self.error(str(err))
        if not self.config.quiet:
            _err("\n")

    def result(self, response: Response) -> None:
        """Record a matched response and print it."""
        request = response.request if response.request is not None else Request()
        if self.config.output_directory:
            response.result_file = self._write_result_to_file(response, request)
        result = Result(
            input=dict(request.input),
            position=request.position,
            status_code=response.status_code,
            content_length=response.content_length,
            content_words=response.content_words,
            content_lines=response.content_lines,
            content_type=response.content_type,
            redirect_location=response.redirect_location(),
            scraper_data=response.scraper_data,
            url=request.url,
            duration=response.duration,
            result_file=response.result_file,
            host=request.host,
            is_vhost_mode=self.config.vhost_enumeration,
            vhost_domain=self.config.vhost_domain,
        )
        self.current_results.append(result)
        self.print_result(result)

    def _write_result_to_file(self, response: Response, request: Request) -> str:
        directory = self.config.output_directory
        try:
            os.makedirs(directory, mode=0o750, exist_ok=True)
        except OSError as err:
            self.error(str(err))
            return ""
        content = f"{request.raw}\n---- ↑ Request ---- Response ↓ ----\n\n{response.raw}".encode("utf-8")
        name = hashlib.md5(content).hexdigest()
        try:
            with open(os.path.join(directory, name), "wb") as handle:
                handle.write(content)
        except OSError as err:
            self.error(str(err))
        return name

    def print_result(self, result: Result) -> None:
        config = self.config
        if config.json:
            self._result_json(result)
        elif config.quiet:
            print(result.url)
        elif (
            len(self.fuzz_keywords) > 1
            or config.verbose
            or config.output_directory
            or result.scraper_data
        ):
            self._result_multiline(result)
        else:
            self._result_normal(result)

    def _keyword_value(self, keyword: str, result: Result) -> str:
        if keyword in self.config.command_keywords:
            return str(result.position)
        return _text(result.input.get(keyword, b""))

    def _result_multiline(self, result: Result) -> None:
        color = _colorize_status_code(result.status_code)
        header = (
            f"{TERMINAL_CLEAR_LINE} {color}{BULLET_CHAR}{ANSI_CLEAR}  "
            f"[{color}Status{ANSI_CLEAR}: {color}{result.status_code}{ANSI_CLEAR}, "
            f"Size: {result.content_length}]"
        )
        lines = []
        if self.config.verbose:
            lines.append(f"{TERMINAL_CLEAR_LINE}| URL | {result.url}\n")
            if result.redirect_location:
                lines.append(f"{TERMINAL_CLEAR_LINE}| --> | {result.redirect_location}\n")
        if result.result_file:
            lines.append(f"{TERMINAL_CLEAR_LINE}| RES | {result.result_file}\n")
        for keyword in self.fuzz_keywords:
            lines.append(
                f"{TERMINAL_CLEAR_LINE}    * {keyword}: {self._keyword_value(keyword, result)}\n"
            )
        if result.scraper_data:
            lines.append(f"{TERMINAL_CLEAR_LINE}| SCR |\n")
            for name, values in result.scraper_data.items():
                for value in values:
                    lines.append(f"{TERMINAL_CLEAR_LINE}    * {name}: {value}\n")
        print(f"{header}\n{''.join(lines)}")

    def _result_normal(self, result: Result) -> None:
        color = _colorize_status_code(result.status_code)
        if result.is_vhost_mode:
            left = self._build_vhost_url(result)
        else:
            payload = self._payload(result)
            left = f"{result.url} → {payload}" if payload else result.url
        length = _byte_len(left)
        status = (
            f"[{color}Status{ANSI_CLEAR}: {color}{result.status_code}{ANSI_CLEAR}, "
            f"Size: {result.content_length}]"
        )
        if length > _MAX_LEFT_WIDTH:
            print(f"{TERMINAL_CLEAR_LINE} {color}{BULLET_CHAR}{ANSI_CLEAR}  {left}")
            print(f"{TERMINAL_CLEAR_LINE} {' ' * length} {status}")
        else:
            width = _MIN_LEFT_WIDTH if length < _MAX_LEFT_WIDTH else length
            print(f"{TERMINAL_CLEAR_LINE} {color}{BULLET_CHAR}{ANSI_CLEAR}  {left.ljust(width)} {status}")

    def _result_json(self, result: Result) -> None:
        try:
            line = _dumps(result)
        except (TypeError, ValueError) as err:
            self.error(str(err))
            return
        _err(TERMINAL_CLEAR_LINE)
        print(line)

    def _payload(self, result: Result) -> str:
        for keyword in self.fuzz_keywords:
            if keyword in self.config.command_keywords:
                return str(result.position)
            if keyword in result.input:
                return _text(result.input[keyword])
        return ""

    def _build_vhost_url(self, result: Result) -> str:
        payload = self._payload(result)
        if not payload:
            return result.url
        original = result.url if "://" in result.url else "https://" + result.url
        scheme, remaining = original.split("://", 1)
        host, slash, rest = remaining.partition("/")
        path = "/" + rest if slash else ""
        port = ""
        if ":" in host:
            host, port_number = host.split(":", 1)
            port = ":" + port_number
        domain: Optional[str] = result.vhost_domain
        if not domain:
            domain = "target.local" if is_ip_address(host) else host
        return f"{scheme}://{payload}.{domain}{port}{path}"