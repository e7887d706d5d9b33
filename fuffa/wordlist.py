"""Wordlist input: keyword values read line by line from a file or stdin."""

from __future__ import annotations

import re
import string
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Config

_EXT_PLACEHOLDER = re.compile(r"%ext%", re.IGNORECASE)
_EXTENSION_CHARS = frozenset(string.ascii_letters + string.digits)


def strip_comments(text: str) -> str:
    """Strip a trailing `` #`` comment from a word.

    Returns an empty string when the line is blank or is a comment as a whole,
    meaning the line is to be ignored.
    """
    if not text.strip():
        return ""
    if text.lstrip(" ").startswith("#"):
        return ""
    index = text.find(" #")
    if index == -1:
        return text
    return text[:index]


def has_valid_extension(text: str) -> bool:
    """Whether the text ends in a dot followed by 1-4 ASCII letters or digits."""
    dot = text.rfind(".")
    if dot == -1 or dot == len(text) - 1:
        return False
    extension = text[dot + 1 :]
    return 1 <= len(extension) <= 4 and all(char in _EXTENSION_CHARS for char in extension)


def remove_extension(text: str) -> str:
    """Remove a valid extension from the text, if it has one."""
    if not has_valid_extension(text):
        return text
    return text[: text.rfind(".")]


def replace_extension(text: str, new_ext: str) -> str:
    """Replace the extension of the text, or append one when it has none."""
    return f"{remove_extension(text)}.{new_ext}"


def _split_lines(data: bytes) -> list[str]:
    lines = data.split(b"\n")
    if lines and lines[-1] == b"":
        lines.pop()
    return [
        (line[:-1] if line.endswith(b"\r") else line).decode("utf-8", "surrogateescape")
        for line in lines
    ]


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


class WordlistInput:
    """Words for one keyword, loaded from a file path or ``-`` for stdin."""

    def __init__(self, keyword: str, value: str, config: Config) -> None:
        self.keyword = keyword
        self.config = config
        self.active = True
        self.position = 0
        if value == "-":
            raw = sys.stdin.buffer.read()
        else:
            with open(value, "rb") as handle:
                raw = handle.read()
        self._data = self._parse(_split_lines(raw))

    def _parse(self, lines: list[str]) -> list[bytes]:
        config = self.config
        data: list[bytes] = []
        seen: set[str] = set()
        lines_read = 0

        def add_unique(word: str) -> None:
            if word not in seen:
                seen.add(word)
                data.append(_encode(word))

        for line in lines:
            if config.wordlist_limit > 0 and lines_read >= config.wordlist_limit:
                break
            if config.dirsearch_compat and config.extensions and _EXT_PLACEHOLDER.search(line):
                for ext in config.extensions:
                    data.append(_encode(_EXT_PLACEHOLDER.sub(lambda _m, e=ext: e, line)))
                continue
            word = strip_comments(line)
            if not word:
                continue
            add_unique(word)
            lines_read += 1
            if (
                not config.dirsearch_compat
                and self.keyword == "FUZZ"
                and config.extensions
            ):
                for ext in config.extensions:
                    add_unique(replace_extension(word, ext.removeprefix(".")))
        return data

    def has_next(self) -> bool:
        """Whether there are words left at the current position."""
        return self.position < len(self._data)

    def increment_position(self) -> None:
        self.position += 1

    def reset_position(self) -> None:
        self.position = 0

    def value(self) -> bytes:
        """The word at the current position."""
        return self._data[self.position]

    def total(self) -> int:
        return len(self._data)

    def enable(self) -> None:
        self.active = True

    def disable(self) -> None:
        self.active = False