"""Sends prepared HTTP requests and measures their responses."""

from __future__ import annotations

import dataclasses
import gzip
import re
import string
import time
import warnings
import zlib
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlsplit

import brotli
import requests
from requests.adapters import HTTPAdapter

from .models import Request, Response
from .stdout import VERSION

if TYPE_CHECKING:
    from .models import Config

MAX_DOWNLOAD_SIZE = 5242880
"""Bodies announced larger than this many bytes are not downloaded."""

USER_AGENT = f"FUFFA - FFUF Using Fantastic Formats And colors v{VERSION}"

_DOUBLE_SLASH = re.compile(r"([^:])/+")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_TOKEN_CHARS = frozenset("!#$%&'*+-.^_`|~" + string.ascii_letters + string.digits)

_MAX_DEBUG_BODY = 2000
_DEBUG_CLEAR = "\x1b[0m"
_DEBUG_CYAN = "\x1b[36m"
_DEBUG_YELLOW = "\x1b[33m"
_DEBUG_GREEN = "\x1b[32m"
_DEBUG_BLUE = "\x1b[34m"
_DEBUG_BOLD = "\x1b[1m"

warnings.filterwarnings("ignore", message="Unverified HTTPS request")


def replace_keyword_in_url(url: str, keyword: str, replacement: str) -> str:
    """Replace the keyword in the URL and collapse repeated slashes outside ``://``."""
    return _DOUBLE_SLASH.sub(r"\1/", url.replace(keyword, replacement))


def _canonical_header_key(key: str) -> str:
    if not key or any(char not in _TOKEN_CHARS for char in key):
        return key
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _decode_body(body: bytes, encoding: str) -> Optional[bytes]:
    """Decode a body by its Content-Encoding; None when it cannot be read."""
    try:
        if encoding == "gzip":
            if not body.startswith(b"\x1f\x8b"):
                return body
            return gzip.decompress(body)
        if encoding == "br":
            return brotli.decompress(body)
        if encoding == "deflate":
            return zlib.decompress(body, -zlib.MAX_WBITS)
    except (OSError, EOFError, zlib.error, brotli.error):
        return None
    return body


def _dump_request(prepared: requests.PreparedRequest) -> bytes:
    parts = urlsplit(prepared.url or "")
    target = parts.path or "/"
    if parts.query:
        target += "?" + parts.query
    headers = prepared.headers
    lines = [f"{prepared.method} {target} HTTP/1.1", f"Host: {headers.get('Host', parts.netloc)}"]
    lines += [f"{name}: {value}" for name, value in headers.items() if name.lower() != "host"]
    head = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8", "surrogateescape")
    body = prepared.body or b""
    if isinstance(body, str):
        body = body.encode("utf-8", "surrogateescape")
    return head + body


def _dump_response(http_resp: requests.Response, body: bytes) -> bytes:
    lines = [f"HTTP/1.1 {http_resp.status_code} {http_resp.reason or ''}".rstrip()]
    lines += [f"{name}: {value}" for name, value in http_resp.headers.items()]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8", "surrogateescape") + body


def _truncate_dump(text: str) -> str:
    if len(text) <= _MAX_DEBUG_BODY:
        return text
    header_end = text.find("\r\n\r\n")
    if header_end == -1:
        header_end = text.find("\n\n")
    if header_end != -1 and header_end < _MAX_DEBUG_BODY:
        truncated = text[header_end : header_end + 4] + text[header_end + 4 : _MAX_DEBUG_BODY]
        truncated += (
            f"\n\n{_DEBUG_YELLOW}... [TRUNCATED - {len(text) - len(truncated)} more chars] ...{_DEBUG_CLEAR}"
        )
        return text[:header_end] + truncated
    return text[:_MAX_DEBUG_BODY] + (
        f"\n\n{_DEBUG_YELLOW}... [TRUNCATED - {len(text) - _MAX_DEBUG_BODY} more chars] ...{_DEBUG_CLEAR}"
    )


class SimpleRunner:
    """Executes requests over a shared HTTP session."""

    def __init__(self, config: Config, replay: bool) -> None:
        self.config = config
        self._first_request = True
        proxy = config.replay_proxy_url if replay else config.proxy_url
        self._proxies = {"http": proxy, "https": proxy} if proxy else {}
        self._cert = (config.client_cert, config.client_key) if config.client_cert and config.client_key else None
        self._timeout = config.timeout if config.timeout > 0 else None
        self._session = requests.Session()
        self._session.headers.clear()
        adapter = HTTPAdapter(pool_connections=1000, pool_maxsize=500)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def prepare(self, inputs: dict[str, bytes], base_request: Request) -> Request:
        """A copy of the base request with every keyword replaced by its input."""
        request = dataclasses.replace(base_request, headers=dict(base_request.headers))
        for keyword, item in inputs.items():
            value = item.decode("utf-8", "surrogateescape")
            request.method = request.method.replace(keyword, value)
            request.headers = {
                _canonical_header_key(name.replace(keyword, value)): header.replace(keyword, value)
                for name, header in request.headers.items()
            }
            request.url = replace_keyword_in_url(request.url, keyword, value)
            request.data = request.data.replace(keyword.encode("utf-8", "surrogateescape"), item)
        request.input = inputs
        return request

    def _prepare_http(self, request: Request) -> requests.PreparedRequest:
        request.headers.setdefault("User-Agent", USER_AGENT)
        request.host = request.headers.get("Host") or urlsplit(request.url).netloc
        prepared = requests.Request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            data=request.data or None,
        ).prepare()
        if self.config.raw:
            prepared.url = request.url
        return prepared

    @property
    def _keep_raw(self) -> bool:
        return bool(self.config.output_directory or self.config.audit_log)

    def execute(self, request: Request) -> Response:
        """Send the request and measure the response; raises requests errors."""
        prepared = self._prepare_http(request)
        raw_request = ""
        if self._keep_raw:
            raw_request = _dump_request(prepared).decode("utf-8", "replace")
            request.raw = raw_request
        settings = self._session.merge_environment_settings(
            prepared.url, self._proxies, True, False, self._cert
        )
        start = datetime.now()
        started = time.monotonic()
        with self._session.send(
            prepared,
            timeout=self._timeout,
            allow_redirects=self.config.follow_redirects,
            **settings,
        ) as http_resp:
            duration = time.monotonic() - started
            request.timestamp = start
            response = Response(
                status_code=http_resp.status_code,
                headers={name: [value] for name, value in http_resp.headers.items()},
                content_type=http_resp.headers.get("Content-Type", ""),
                request=request,
            )
            body: Optional[bytes] = None

            def read_body() -> Optional[bytes]:
                nonlocal body
                if body is None:
                    try:
                        body = http_resp.raw.read(decode_content=False)
                    except Exception:  # a broken body leaves the data unread
                        body = None
                return body

            if (self.config.debug_first_request and self._first_request) or self.config.force_debug_next:
                self._print_debug(prepared, http_resp, read_body() or b"")
                self._first_request = False
                self.config.force_debug_next = False

            length = http_resp.headers.get("Content-Length", "")
            if _INTEGER.fullmatch(length):
                size = int(length)
                response.content_length = size
                if self.config.ignore_body or size > MAX_DOWNLOAD_SIZE:
                    response.cancelled = True
                    return response

            raw_body = read_body()
            if self._keep_raw:
                request.raw = raw_request
                response.raw = _dump_response(http_resp, raw_body or b"").decode("utf-8", "replace")
            if raw_body is not None:
                data = _decode_body(raw_body, http_resp.headers.get("Content-Encoding", ""))
                if data is not None:
                    response.content_length = len(data)
                    response.data = data

        response.content_words = len(response.data.split(b" "))
        response.content_lines = len(response.data.split(b"\n"))
        response.duration = duration
        response.timestamp = start + timedelta(seconds=duration)
        return response

    def dump(self, request: Request) -> bytes:
        """The request as it would be written on the wire."""
        return _dump_request(self._prepare_http(request))

    def _print_debug(self, prepared: requests.PreparedRequest, http_resp: requests.Response, body: bytes) -> None:
        rule = "═" * 60
        print(f"\n{_DEBUG_CYAN}{rule}{_DEBUG_CLEAR}")
        print(f"{_DEBUG_BOLD}{_DEBUG_CYAN}🐛 DEBUG: FIRST HTTP REQUEST AND RESPONSE{_DEBUG_CLEAR}")
        print(f"{_DEBUG_CYAN}{rule}{_DEBUG_CLEAR}\n")
        print(f"{_DEBUG_BOLD}{_DEBUG_GREEN}📤 REQUEST:{_DEBUG_CLEAR}")
        print(f"{_DEBUG_GREEN}{'─' * 30}{_DEBUG_CLEAR}")
        print(_dump_request(prepared).decode("utf-8", "replace"))
        print(f"{_DEBUG_BOLD}{_DEBUG_BLUE}📥 RESPONSE:{_DEBUG_CLEAR}")
        print(f"{_DEBUG_BLUE}{'─' * 30}{_DEBUG_CLEAR}")
        print(_truncate_dump(_dump_response(http_resp, body).decode("utf-8", "replace")))
        print(f"{_DEBUG_CYAN}{rule}{_DEBUG_CLEAR}")
        print(f"{_DEBUG_BOLD}{_DEBUG_CYAN}✅ END OF DEBUG OUTPUT{_DEBUG_CLEAR}")
        print(f"{_DEBUG_CYAN}{rule}{_DEBUG_CLEAR}\n")