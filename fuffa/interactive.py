"""Interactive control of a running job through commands typed on the terminal."""

from __future__ import annotations

import os
import re
import time
from typing import TYPE_CHECKING, Any, Optional, Protocol

from .filters import FilterError
from .models import Request, Response

if TYPE_CHECKING:
    from .models import Config
    from .stdout import StdOutput

_INTEGER = re.compile(r"[+-]?[0-9]+")

# command suffix -> (filter name, label when replacing, label when appending, label on success)
_FILTER_COMMANDS = {
    "c": ("status", "status code filter", "status code filter", "status code filter"),
    "l": ("line", "line count filter", "line count filter", "line count filter"),
    "w": ("word", "word count filter", "word count filter", "word count filter"),
    "s": ("size", "response size filter", "size filter", "response size filter"),
    "t": ("time", "response time filter", "response time filter", "response time filter"),
}

_HELP = """
available commands:
 afc  [value]             - append to status code filter {fc}
 fc   [value]             - (re)configure status code filter {fc}
 afl  [value]             - append to line count filter {fl}
 fl   [value]             - (re)configure line count filter {fl}
 afw  [value]             - append to word count filter {fw}
 fw   [value]             - (re)configure word count filter {fw}
 afs  [value]             - append to size filter {fs}
 fs   [value]             - (re)configure size filter {fs}
 aft  [value]             - append to time filter {ft}
 ft   [value]             - (re)configure time filter {ft}
 rate [value]             - adjust rate of requests per second {rate}
 queueshow                - show job queue
 queuedel [number]        - delete a job in the queue
 queueskip                - advance to the next queued job
 restart                  - restart and resume the current fuffa job
 resume                   - resume current fuffa job (or: ENTER) 
 show                     - show results for the current job
 savejson [filename]      - save current matches to a file
 help                     - you are looking at it
"""

_HELP_KEYS = {"status": "fc", "line": "fl", "word": "fw", "size": "fs", "time": "ft"}


class _RateThrottle(Protocol):
    def change_rate(self, rate: int) -> None: ...


class _Job(Protocol):
    config: Config
    output: StdOutput
    rate: _RateThrottle

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def reset(self, cycle: bool) -> None: ...

    def skip_queue(self) -> None: ...

    def queued_jobs(self) -> list[Any]: ...

    def delete_queue_item(self, index: int) -> None: ...


def _terminal_path() -> str:
    return "CONIN$" if os.name == "nt" else "/dev/tty"


class InteractiveHandler:
    """Interprets command lines and applies them to a job."""

    pause_delay = 0.5
    """Seconds to wait after pausing before printing the banner."""

    def __init__(self, job: _Job) -> None:
        self.job = job
        self.paused = False

    @property
    def _output(self) -> StdOutput:
        return self.job.output

    def handle_input(self, line: str | bytes) -> None:
        """Run one command line; an empty line toggles pause."""
        if isinstance(line, bytes):
            line = line.decode("utf-8", "replace")
        args = line.strip().split(" ")
        if args == [""]:
            self._toggle_pause()
        else:
            self._dispatch(args)
        if self.paused:
            self._output.raw("> ")

    def _toggle_pause(self) -> None:
        self.paused = not self.paused
        if self.paused:
            self.job.pause()
            time.sleep(self.pause_delay)
            self._output.raw(
                'entering interactive mode\ntype "help" for a list of commands, or ENTER to resume.\n'
            )
        else:
            self.job.resume()

    def _single_argument(self, args: list[str], missing: str) -> Optional[str]:
        if len(args) < 2:
            self._output.error(missing)
            return None
        if len(args) > 2:
            self._output.error(f'Too many arguments for "{args[0]}"')
            return None
        return args[1]

    def _dispatch(self, args: list[str]) -> None:
        command = args[0]
        output = self._output
        if command in ("?", "help"):
            self._print_help()
        elif command == "resume":
            self.paused = False
            self.job.resume()
        elif command == "restart":
            self.job.reset(False)
            self.paused = False
            output.info("Restarting the current fuffa job!")
            self.job.resume()
        elif command == "show":
            for result in output.current_results:
                output.print_result(result)
        elif command == "savejson":
            filename = self._single_argument(args, "Please define the filename")
            if filename is not None:
                self._save_json(filename)
        elif self._is_filter_command(command):
            self._filter_command(command, args)
        elif command == "queueshow":
            self._print_queue()
        elif command == "queuedel":
            index = self._single_argument(
                args,
                'Please define the index of a queued job to remove. Use "queueshow" for listing of jobs.',
            )
            if index is not None:
                self._delete_queue(index)
        elif command == "queueskip":
            self.job.skip_queue()
            output.info("Skipping to the next queued job")
        elif command == "rate":
            value = self._single_argument(args, "Please define the new rate")
            if value is not None:
                if _INTEGER.fullmatch(value):
                    self.job.rate.change_rate(int(value))
                else:
                    output.error(f"Could not adjust rate: invalid number {value!r}")
        elif self.paused:
            output.warning(f'Unknown command: "{command}". Enter "help" for a list of available commands')
        else:
            output.error("NOPE")

    @staticmethod
    def _is_filter_command(command: str) -> bool:
        body = command[1:] if command.startswith("a") else command
        return len(body) == 2 and body[0] == "f" and body[1] in _FILTER_COMMANDS

    def _filter_command(self, command: str, args: list[str]) -> None:
        append = command.startswith("a")
        name, replace_label, append_label, done_label = _FILTER_COMMANDS[command[-1]]
        if append:
            missing = f"Please define a value to append to {append_label}"
        else:
            missing = f'Please define a value for {replace_label}, or "none" for removing it'
        value = self._single_argument(args, missing)
        if value is None:
            return
        self._update_filter(name, value, replace=not append)
        self._output.info(f"New {done_label} value set")

    def _save_json(self, filename: str) -> None:
        try:
            self._output.save_file(filename, "json")
        except (OSError, ValueError, TypeError) as err:
            self._output.error(str(err))
        else:
            self._output.info("Output file successfully saved!")

    def _update_filter(self, name: str, value: str, replace: bool) -> None:
        manager = self.job.config.matcher_manager
        if value == "none":
            manager.remove_filter(name)
        else:
            try:
                manager.add_filter(name, value, replace)
            except FilterError:
                pass
        self._refresh_results()

    def _refresh_results(self) -> None:
        """Re-apply the filters to the results gathered so far."""
        current = list(self._output.current_results)
        kept = []
        for flt in self.job.config.matcher_manager.filters.values():
            for result in current:
                probe = Response(
                    status_code=result.status_code,
                    content_lines=result.content_length,
                    content_words=result.content_words,
                    content_length=result.content_length,
                    request=Request(),
                )
                if not flt.filter(probe):
                    kept.append(result)
        self._output.current_results = kept

    def _print_queue(self) -> None:
        jobs = self.job.queued_jobs()
        if not jobs:
            self._output.info("Job queue is empty")
            return
        self._output.raw("Queued jobs:\n")
        for index, queued in enumerate(jobs):
            postfix = " (active job)" if index == 0 else ""
            self._output.raw(f" [{index}] : {queued.url}{postfix}\n")

    def _delete_queue(self, text: str) -> None:
        if not _INTEGER.fullmatch(text):
            self._output.warning(f"Not a number: {text}")
            return
        index = int(text)
        if index < 0 or index > len(self.job.queued_jobs()) - 1:
            self._output.warning('No such queued job. Use "queueshow" to list the jobs in queue')
        elif index == 0:
            self._output.warning(
                'Cannot delete the currently running job. Use "queueskip" to advance to the next one'
            )
        else:
            self.job.delete_queue_item(index)
            self._output.info("Job successfully deleted!")

    def _print_help(self) -> None:
        active = dict.fromkeys(_HELP_KEYS.values(), "")
        for name, flt in self.job.config.matcher_manager.filters.items():
            key = _HELP_KEYS.get(name)
            if key is not None:
                active[key] = f"(active: {flt.spec()})"
        rate = f"(active: {self.job.config.rate})"
        self._output.raw(_HELP.format(rate=rate, **active))


def handle(job: _Job) -> None:
    """Read commands from the controlling terminal until it closes.

    Raises OSError when the terminal cannot be opened.
    """
    handler = InteractiveHandler(job)
    with open(_terminal_path(), "r", encoding="utf-8", errors="replace") as tty:
        for line in tty:
            handler.handle_input(line.rstrip("\r\n"))