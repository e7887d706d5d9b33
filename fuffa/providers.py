"""Combines the input providers of a job into keyword/value maps."""

from __future__ import annotations

import base64
import binascii
import hashlib
import html
import json
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Union
from urllib.parse import quote_plus, unquote_to_bytes

from .command import CommandInput
from .wordlist import WordlistInput

if TYPE_CHECKING:
    from .models import Config, InputProviderConfig

InternalProvider = Union[WordlistInput, CommandInput]

_MODES = ("clusterbomb", "pitchfork", "sniper")


class InputError(Exception):
    """Raised when inputs cannot be set up or encoded."""

    def __init__(self, *errors: str) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


def _text(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _html_escape(data: bytes) -> bytes:
    text = _text(data)
    for char, entity in (("&", "&amp;"), ("'", "&#39;"), ("<", "&lt;"), (">", "&gt;"), ('"', "&#34;")):
        text = text.replace(char, entity)
    return _bytes(text)


def _json_escape(data: bytes) -> bytes:
    escaped = json.dumps(_text(data), ensure_ascii=False)[1:-1]
    for char, code in (("<", "\\u003c"), (">", "\\u003e"), ("&", "\\u0026")):
        escaped = escaped.replace(char, code)
    return _bytes(escaped)


def _digest(name: str) -> Callable[[bytes], bytes]:
    return lambda data: hashlib.new(name, data).hexdigest().encode()


_ENCODERS: dict[str, Callable[[bytes], bytes]] = {
    "b64encode": base64.b64encode,
    "b64decode": lambda data: base64.b64decode(data, validate=True),
    "hexencode": binascii.hexlify,
    "hexdecode": lambda data: bytes.fromhex(data.decode("ascii")),
    "htmlescape": _html_escape,
    "htmlunescape": lambda data: _bytes(html.unescape(_text(data))),
    "jsonescape": _json_escape,
    "jsonunescape": lambda data: _bytes(json.loads('"' + _text(data) + '"')),
    "urlencode": lambda data: quote_plus(data, safe="").encode(),
    "urlencodeall": lambda data: "".join(f"%{byte:02X}" for byte in data).encode(),
    "urldecode": lambda data: unquote_to_bytes(data.replace(b"+", b" ")),
    "lower": lambda data: _bytes(_text(data).lower()),
    "upper": lambda data: _bytes(_text(data).upper()),
    "md5": _digest("md5"),
    "sha1": _digest("sha1"),
    "sha224": _digest("sha224"),
    "sha256": _digest("sha256"),
    "sha384": _digest("sha384"),
    "sha512": _digest("sha512"),
}


def _check_encoders(names: list[str]) -> None:
    for name in names:
        if name not in _ENCODERS:
            raise InputError(f"Encoder {name} not found")


def encode_chain(names: list[str], data: bytes) -> bytes:
    """Apply the named encoders to the data, in order."""
    _check_encoders(names)
    for name in names:
        try:
            data = _ENCODERS[name](data)
        except ValueError as err:
            raise InputError(f"{name}: {err}") from None
    return data


class MainInputProvider:
    """Iterates over the input combinations of all providers of a job."""

    def __init__(self, config: Config) -> None:
        if config.input_mode not in _MODES:
            raise InputError(f"Input mode (-mode) {config.input_mode} not recognized")
        self.config = config
        self.providers: list[InternalProvider] = []
        self.encoders: dict[str, list[str]] = {}
        self.position = 0
        self._msb_iterator = 0

    @property
    def _combinatorial(self) -> bool:
        return self.config.input_mode in ("clusterbomb", "sniper")

    def _active(self) -> list[InternalProvider]:
        return [provider for provider in self.providers if provider.active]

    def add_provider(self, provider: InputProviderConfig) -> None:
        """Create and add the input provider described by the config entry."""
        if provider.name == "command":
            self.providers.append(CommandInput(provider.keyword, provider.value, self.config))
        else:
            self.providers.append(WordlistInput(provider.keyword, provider.value, self.config))
        if provider.encoders:
            names = provider.encoders.strip().split(" ")
            _check_encoders(names)
            self.encoders[provider.keyword] = names

    def activate_keywords(self, keywords: list[str]) -> None:
        """Disable providers whose keyword is not listed; listed ones keep their state."""
        for provider in self.providers:
            if provider.keyword not in keywords:
                provider.disable()

    def set_position(self, pos: int) -> None:
        """Move the iteration to a given position."""
        if self._combinatorial:
            self.reset()
            if pos > self.total():
                return
            while self.position < pos - 1:
                self.advance()
                self.value()
        else:
            for provider in self.providers:
                provider.position = pos

    def keywords(self) -> list[str]:
        return [provider.keyword for provider in self.providers]

    def advance(self) -> bool:
        """Step forward; False once every combination has been produced."""
        if self.position >= self.total():
            return False
        self.position += 1
        return True

    def value(self) -> dict[str, bytes]:
        """The keyword/value map for the current step, with encoders applied."""
        if self._combinatorial:
            values = self._clusterbomb_value()
        elif self.config.input_mode == "pitchfork":
            values = self._pitchfork_value()
        else:
            values = {}
        for keyword, names in self.encoders.items():
            if keyword in values:
                try:
                    values[keyword] = encode_chain(names, values[keyword])
                except InputError as err:
                    print(f"ERROR: {err}")
                    values[keyword] = b""
        return values

    def __iter__(self) -> Iterator[dict[str, bytes]]:
        while self.advance():
            yield self.value()

    def reset(self) -> None:
        for provider in self.providers:
            provider.reset_position()
        self.position = 0
        self._msb_iterator = 0

    def _pitchfork_value(self) -> dict[str, bytes]:
        values = {}
        for provider in self._active():
            if not provider.has_next():
                provider.reset_position()
            values[provider.keyword] = provider.value()
            provider.increment_position()
        return values

    def _clusterbomb_value(self) -> dict[str, bytes]:
        while True:
            values: dict[str, bytes] = {}
            signal_next = False
            first = True
            restart = False
            for index, provider in enumerate(self._active()):
                if signal_next:
                    provider.increment_position()
                    signal_next = False
                if not provider.has_next():
                    if index == self._msb_iterator:
                        self._msb_iterator += 1
                        self._clusterbomb_iterator_reset()
                        restart = True
                        break
                    provider.reset_position()
                    signal_next = True
                values[provider.keyword] = provider.value()
                if first:
                    provider.increment_position()
                    first = False
            if not restart:
                return values

    def _clusterbomb_iterator_reset(self) -> None:
        for index, provider in enumerate(self._active()):
            if index < self._msb_iterator:
                provider.reset_position()
            if index == self._msb_iterator:
                provider.increment_position()

    def total(self) -> int:
        """The number of input combinations available."""
        active = self._active()
        if self.config.input_mode == "pitchfork":
            return max((provider.total() for provider in active), default=0)
        if self._combinatorial:
            count = 1
            for provider in active:
                count *= provider.total()
            return count
        return 0


def new_input_provider(config: Config) -> MainInputProvider:
    """Build the input provider for a job, raising InputError on any problem."""
    main = MainInputProvider(config)
    errors = []
    for provider in config.input_providers:
        try:
            main.add_provider(provider)
        except (InputError, OSError) as err:
            errors.append(str(err))
    if errors:
        raise InputError(*errors)
    return main