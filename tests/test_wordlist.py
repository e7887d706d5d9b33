import io
import sys

import pytest

from fuffa.models import Config
from fuffa.wordlist import (
    WordlistInput,
    has_valid_extension,
    remove_extension,
    replace_extension,
    strip_comments,
)


def _words(wordlist):
    result = []
    while wordlist.has_next():
        result.append(wordlist.value())
        wordlist.increment_position()
    return result


@pytest.fixture
def write_list(tmp_path):
    def _write(content):
        path = tmp_path / "words.txt"
        path.write_bytes(content)
        return str(path)

    return _write


def test_strip_comments_ignores_comment_lines():
    assert strip_comments("# text") == ""


def test_strip_comments_strips_comment_after_text():
    assert strip_comments("text # comment") == "text"


@pytest.mark.parametrize("line", ["", "   ", "   # indented comment"])
def test_strip_comments_ignores_blank_and_indented(line):
    assert strip_comments(line) == ""


def test_strip_comments_keeps_hash_without_space():
    assert strip_comments("page#anchor") == "page#anchor"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("index.php", True),
        ("archive.TAR", True),
        ("file.", False),
        ("noext", False),
        ("a.toolong", False),
        ("a.p-p", False),
    ],
)
def test_has_valid_extension(text, expected):
    assert has_valid_extension(text) is expected


def test_remove_extension():
    assert remove_extension("index.php") == "index"
    assert remove_extension("a.toolong") == "a.toolong"


def test_replace_extension():
    assert replace_extension("index.php", "bak") == "index.bak"
    assert replace_extension("admin", "php") == "admin.php"


def test_reads_words_skipping_comments_and_duplicates(write_list):
    path = write_list(b"# header\nadmin\r\n\nlogin # note\nadmin\nimages\n")
    wordlist = WordlistInput("FUZZ", path, Config())
    assert _words(wordlist) == [b"admin", b"login", b"images"]
    assert wordlist.total() == 3


def test_wordlist_limit(write_list):
    path = write_list(b"one\ntwo\nthree\n")
    wordlist = WordlistInput("FUZZ", path, Config(wordlist_limit=2))
    assert _words(wordlist) == [b"one", b"two"]


def test_extensions_added_for_fuzz_keyword(write_list):
    path = write_list(b"index.html\nadmin\n")
    wordlist = WordlistInput("FUZZ", path, Config(extensions=[".php", "bak"]))
    assert _words(wordlist) == [
        b"index.html",
        b"index.php",
        b"index.bak",
        b"admin",
        b"admin.php",
        b"admin.bak",
    ]


def test_extensions_not_added_for_other_keyword(write_list):
    path = write_list(b"admin\n")
    wordlist = WordlistInput("W2", path, Config(extensions=[".php"]))
    assert _words(wordlist) == [b"admin"]


def test_dirsearch_placeholder(write_list):
    path = write_list(b"page.%EXT%\nplain\n")
    config = Config(dirsearch_compat=True, extensions=["php", "asp"])
    wordlist = WordlistInput("FUZZ", path, config)
    assert _words(wordlist) == [b"page.php", b"page.asp", b"plain"]


def test_reads_from_stdin(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"a\nb\n")))
    wordlist = WordlistInput("FUZZ", "-", Config())
    assert _words(wordlist) == [b"a", b"b"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        WordlistInput("FUZZ", str(tmp_path / "missing.txt"), Config())


def test_reset_and_active_state(write_list):
    wordlist = WordlistInput("FUZZ", write_list(b"x\ny\n"), Config())
    wordlist.increment_position()
    assert wordlist.value() == b"y"
    wordlist.reset_position()
    assert wordlist.value() == b"x"
    wordlist.disable()
    assert wordlist.active is False
    wordlist.enable()
    assert wordlist.active is True