"""Command input: keyword values taken from the output of a shell command."""

from __future__ import annotations

import os
import subprocess
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Config

if os.name == "nt":
    SHELL_CMD = "cmd.exe"
    SHELL_ARG = "/C"
else:
    SHELL_CMD = "/bin/sh"
    SHELL_ARG = "-c"


class CommandInput:
    """Runs a command for every position; its stdout is the value.

    The current position is passed to the command in ``FFUF_NUM``.
    """

    def __init__(self, keyword: str, value: str, config: Config) -> None:
        self.keyword = keyword
        self.config = config
        self.command = value
        self.shell = config.input_shell or SHELL_CMD
        self.active = True
        self.position = 0

    def has_next(self) -> bool:
        return self.position < self.config.input_num

    def increment_position(self) -> None:
        self.position += 1

    def reset_position(self) -> None:
        self.position = 0

    def value(self) -> bytes:
        """Run the command and return its output, or empty bytes on failure."""
        env = {**os.environ, "FFUF_NUM": str(self.position)}
        try:
            completed = subprocess.run(
                [self.shell, SHELL_ARG, self.command],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                env=env,
                check=False,
            )
        except OSError:
            return b""
        if completed.returncode != 0:
            return b""
        return completed.stdout

    def total(self) -> int:
        return self.config.input_num

    def enable(self) -> None:
        self.active = True

    def disable(self) -> None:
        self.active = False