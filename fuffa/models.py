"""Core data records shared by the fuzzer: requests, responses, results and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .filters import MatcherManager


@dataclass
class Request:
    """A single HTTP request, either a template or one prepared with inputs."""

    method: str = "GET"
    host: str = ""
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    data: bytes = b""
    input: dict[str, bytes] = field(default_factory=dict)
    position: int = 0
    raw: str = ""
    error: str = ""
    timestamp: Optional[datetime] = None


@dataclass
class Response:
    """The outcome of executing a request."""

    status_code: int = 0
    headers: dict[str, list[str]] = field(default_factory=dict)
    data: bytes = b""
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    cancelled: bool = False
    request: Optional[Request] = None
    raw: str = ""
    result_file: str = ""
    scraper_data: dict[str, list[str]] = field(default_factory=dict)
    duration: float = 0.0
    """Seconds between sending the request and the first response byte."""
    timestamp: Optional[datetime] = None

    def redirect_location(self) -> str:
        """Return the Location header of a 3xx response, or an empty string."""
        if not 300 <= self.status_code <= 399:
            return ""
        for name, values in self.headers.items():
            if name.lower() == "location" and values:
                return values[0]
        return ""


@dataclass
class Result:
    """A response that passed matchers and filters, kept for reporting."""

    input: dict[str, bytes] = field(default_factory=dict)
    position: int = 0
    status_code: int = 0
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    redirect_location: str = ""
    scraper_data: dict[str, list[str]] = field(default_factory=dict)
    duration: float = 0.0
    result_file: str = ""
    url: str = ""
    host: str = ""
    html_color: str = ""
    is_vhost_mode: bool = False
    vhost_domain: str = ""


@dataclass
class InputProviderConfig:
    """Describes one input source bound to a keyword."""

    name: str = "wordlist"
    keyword: str = "FUZZ"
    value: str = ""
    encoders: str = ""
    template: str = ""


@dataclass
class Config:
    """Settings for a fuzzing job."""

    url: str = ""
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    data: str = ""
    command_line: str = ""

    input_mode: str = "clusterbomb"
    input_providers: list[InputProviderConfig] = field(default_factory=list)
    input_num: int = 100
    input_shell: str = ""
    command_keywords: list[str] = field(default_factory=list)
    wordlist_limit: int = 0
    dirsearch_compat: bool = False
    extensions: list[str] = field(default_factory=list)

    output_file: str = ""
    output_format: str = "json"
    output_directory: str = ""
    output_skip_empty_file: bool = False
    audit_log: str = ""

    quiet: bool = False
    colors: bool = False
    json: bool = False
    verbose: bool = False
    noninteractive: bool = False

    follow_redirects: bool = False
    auto_calibration: bool = False
    proxy_url: str = ""
    replay_proxy_url: str = ""
    timeout: int = 10
    threads: int = 40
    rate: int = 0
    delay: Optional[tuple[float, float]] = None
    """Minimum and maximum delay in seconds between requests, or None."""

    http2: bool = False
    raw: bool = False
    sni: str = ""
    client_cert: str = ""
    client_key: str = ""
    ignore_body: bool = False
    debug_first_request: bool = False
    force_debug_next: bool = False

    vhost_enumeration: bool = False
    vhost_domain: str = ""

    scraper_file: str = ""
    scrapers: str = "all"

    matcher_manager: MatcherManager = field(default_factory=MatcherManager)