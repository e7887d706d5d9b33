from dataclasses import dataclass, field
from unittest import mock

import pytest

from fuffa.interactive import InteractiveHandler, handle
from fuffa.models import Config, Result
from fuffa.stdout import StdOutput


@dataclass
class FakeRate:
    changes: list = field(default_factory=list)

    def change_rate(self, rate):
        self.changes.append(rate)


@dataclass
class QueuedJob:
    url: str


class FakeJob:
    def __init__(self, config=None, queue=None):
        self.config = config or Config()
        self.output = StdOutput(self.config)
        self.rate = FakeRate()
        self.queue = list(queue or [])
        self.calls = []

    def pause(self):
        self.calls.append("pause")

    def resume(self):
        self.calls.append("resume")

    def reset(self, cycle):
        self.calls.append(("reset", cycle))

    def skip_queue(self):
        self.calls.append("skip")

    def queued_jobs(self):
        return self.queue

    def delete_queue_item(self, index):
        self.calls.append(("delete", index))
        del self.queue[index]


@pytest.fixture
def job():
    return FakeJob()


@pytest.fixture
def handler(job):
    h = InteractiveHandler(job)
    h.pause_delay = 0
    return h


def test_enter_toggles_pause(handler, job, capsys):
    handler.handle_input("")
    assert handler.paused is True
    assert job.calls == ["pause"]
    err = capsys.readouterr().err
    assert "entering interactive mode" in err
    assert err.endswith("> ")
    handler.handle_input(b"  ")
    assert handler.paused is False
    assert job.calls == ["pause", "resume"]


def test_fc_sets_status_filter(handler, job, capsys):
    handler.handle_input("fc 404")
    assert job.config.matcher_manager.filters["status"].spec() == "404"
    assert "New status code filter value set" in capsys.readouterr().err


def test_afc_appends_to_status_filter(handler, job, capsys):
    handler.handle_input("fc 404")
    handler.handle_input("afc 500")
    assert capsys.readouterr().err.count("New status code filter value set") == 2
    assert job.config.matcher_manager.filters["status"].spec() == "404,500"
    handler.handle_input("help")
    assert "append to status code filter (active: 404,500)" in capsys.readouterr().err


def test_fc_replaces_existing_filter(handler, job, capsys):
    handler.handle_input("fc 404")
    handler.handle_input("fc 301")
    assert capsys.readouterr().err.count("New status code filter value set") == 2
    assert job.config.matcher_manager.filters["status"].spec() == "301"
    handler.handle_input("help")
    assert "(re)configure status code filter (active: 301)" in capsys.readouterr().err


def test_none_removes_filter(handler, job, capsys):
    handler.handle_input("fs 10")
    assert "size" in job.config.matcher_manager.filters
    handler.handle_input("help")
    assert "(re)configure size filter (active: 10)" in capsys.readouterr().err
    handler.handle_input("fs none")
    assert "New response size filter value set" in capsys.readouterr().err
    assert "size" not in job.config.matcher_manager.filters
    handler.handle_input("help")
    assert "(re)configure size filter (active:" not in capsys.readouterr().err


def test_invalid_filter_value_is_ignored(handler, job, capsys):
    handler.handle_input("fw invalid")
    assert "word" not in job.config.matcher_manager.filters
    assert "New word count filter value set" in capsys.readouterr().err


def test_filter_command_argument_errors(handler, capsys):
    handler.handle_input("fc")
    handler.handle_input("afs 1 2")
    err = capsys.readouterr().err
    assert 'Please define a value for status code filter, or "none" for removing it' in err
    assert 'Too many arguments for "afs"' in err


def test_filter_refreshes_current_results(handler, job):
    hidden = Result(status_code=404, url="http://example.com/a")
    shown = Result(status_code=200, url="http://example.com/b")
    job.output.current_results = [hidden, shown]
    handler.handle_input("fc 404")
    assert job.output.current_results == [shown]


def test_rate_changes_rate(handler, job, capsys):
    handler.handle_input("rate 50")
    assert capsys.readouterr().err == ""
    assert job.rate.changes == [50]


def test_rate_rejects_non_number(handler, job, capsys):
    handler.handle_input("rate fast")
    assert job.rate.changes == []
    assert "Could not adjust rate" in capsys.readouterr().err


def test_queuedel_cases(capsys):
    job = FakeJob(queue=[QueuedJob("http://example.com/1"), QueuedJob("http://example.com/2")])
    handler = InteractiveHandler(job)
    handler.handle_input("queuedel x")
    handler.handle_input("queuedel 0")
    handler.handle_input("queuedel 5")
    err = capsys.readouterr().err
    assert "Not a number: x" in err
    assert "Cannot delete the currently running job" in err
    assert "No such queued job" in err
    handler.handle_input("queuedel 1")
    assert job.calls == [("delete", 1)]
    assert [q.url for q in job.queue] == ["http://example.com/1"]
    assert "Job successfully deleted!" in capsys.readouterr().err


def test_queueshow_lists_jobs(capsys):
    job = FakeJob(queue=[QueuedJob("http://example.com/1"), QueuedJob("http://example.com/2")])
    InteractiveHandler(job).handle_input("queueshow")
    err = capsys.readouterr().err
    assert " [0] : http://example.com/1 (active job)\n" in err
    assert " [1] : http://example.com/2\n" in err


def test_queueshow_empty(handler, capsys):
    handler.handle_input("queueshow")
    assert "Job queue is empty" in capsys.readouterr().err


def test_queueskip(handler, job, capsys):
    handler.handle_input("queueskip")
    assert "Skipping to the next queued job" in capsys.readouterr().err
    assert job.calls == ["skip"]


def test_restart_resets_and_resumes(handler, job, capsys):
    handler.handle_input("")
    handler.handle_input("restart")
    assert handler.paused is False
    assert job.calls == ["pause", ("reset", False), "resume"]
    assert "Restarting the current fuffa job!" in capsys.readouterr().err


def test_resume_unpauses(handler, job):
    handler.handle_input("")
    handler.handle_input("resume")
    assert handler.paused is False
    assert job.calls[-1] == "resume"


def test_unknown_command(handler, capsys):
    handler.handle_input("bogus")
    assert "NOPE" in capsys.readouterr().err
    handler.handle_input("")
    capsys.readouterr()
    handler.handle_input("bogus")
    assert 'Unknown command: "bogus"' in capsys.readouterr().err


def test_help_shows_active_values(job, capsys):
    job.config.rate = 7
    handler = InteractiveHandler(job)
    handler.handle_input("fc 404")
    capsys.readouterr()
    handler.handle_input("help")
    err = capsys.readouterr().err
    assert "fc   [value]             - (re)configure status code filter (active: 404)" in err
    assert "(active: 7)" in err


def test_show_prints_current_results(handler, job, capsys):
    job.output.current_results = [Result(status_code=200, url="http://example.com/shown")]
    handler.handle_input("show")
    assert "http://example.com/shown" in capsys.readouterr().out


def test_savejson_argument_errors(handler, capsys):
    handler.handle_input("savejson")
    handler.handle_input("savejson a b")
    err = capsys.readouterr().err
    assert "Please define the filename" in err
    assert 'Too many arguments for "savejson"' in err


def test_savejson_failure_reports_error(handler, tmp_path, capsys):
    target = tmp_path / "missing" / "out.json"
    handler.handle_input(f"savejson {target}")
    err = capsys.readouterr().err
    assert "[ERR]" in err
    assert "Output file successfully saved!" not in err
    assert not target.exists()


def test_handle_reads_terminal_lines(job):
    with mock.patch("builtins.open", mock.mock_open(read_data="rate 5\nrate 9\n")):
        handle(job)
    assert job.rate.changes == [5, 9]


def test_handle_raises_when_terminal_unavailable(job):
    with mock.patch("builtins.open", side_effect=OSError("no terminal")):
        with pytest.raises(OSError):
            handle(job)