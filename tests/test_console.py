"""Tests for the terminal front end."""

import io
import os
import sys
import threading

import pytest

import fast_tagger.console as m
from conftest import Workspace
from fast_tagger import commands as cmd
from fast_tagger.session import Session


def _no_prompt(prompt: str) -> str:
    pytest.fail(f"unexpected prompt {prompt!r}")


def test_decode_line_reads_key_sequences() -> None:
    """Each character is one key press; unknown keys become tag keys."""
    assert m.decode_line("cn", _no_prompt) == [cmd.TagKey("c"), cmd.Next()]
    assert m.decode_line(" ", _no_prompt) == [cmd.Next()]
    assert m.decode_line("+-", _no_prompt) == [cmd.AdjustDelay(-1000), cmd.AdjustDelay(1000)]
    assert m.decode_line("", _no_prompt) == []


def test_decode_line_takes_arguments_inline_or_by_prompt() -> None:
    """G, T and d read their argument from the line or ask for it."""
    asked: list[str] = []

    def ask(prompt: str) -> str:
        asked.append(prompt)
        return "17"

    assert m.decode_line("G 120", _no_prompt) == [cmd.Goto("120")]
    assert m.decode_line("d cat", _no_prompt) == [cmd.DeleteTag("cat")]
    assert m.decode_line("T", ask) == [cmd.TagNumber("17")]
    assert asked == ["Enter tag number: "]


def test_command_for_key_covers_reserved_keys() -> None:
    """Every reserved key maps to a command and other keys do not."""
    for key in cmd.COMMAND_KEYS:
        assert cmd.command_for_key(key, "1") is not None
    assert cmd.command_for_key("c") is None


def test_run_console_tags_and_quits(workspace: Workspace) -> None:
    """A scripted session tags two images, shows tags and quits cleanly."""
    workspace.add_images(5)
    workspace.write_tags()
    session = Session.open(workspace.config())
    output: list[str] = []

    m.run_console(session, io.StringIO("c\no\ns\nG 1\nq\n"), output.append)

    assert (workspace.out / "cat.txt").read_text() == "1\n"
    assert (workspace.out / "dog.txt").read_text() == "2\n"
    assert "- dog" in output
    assert output[-1].endswith(" - sorted, ok.")
    assert (workspace.session / "position.txt").read_text() == "1\n"


def test_run_console_quits_at_end_of_input(workspace: Workspace) -> None:
    """Closing standard input ends the session like q does."""
    workspace.add_images(2)
    workspace.write_tags("1 cat c\n")
    (workspace.out / "cat.txt").write_text("2\n1\n")
    session = Session.open(workspace.config())

    m.run_console(session, io.StringIO("n\n"), lambda _line: None)

    assert (workspace.out / "cat.txt").read_text() == "1\n2\n"


def test_grid_click_syntax(workspace: Workspace) -> None:
    """@n toggles the active tag on the n-th thumbnail of the page."""
    workspace.add_images(4)
    workspace.write_tags()
    for i in (1, 4):
        (workspace.thumbs / f"im{i}_t160.jpg").write_bytes(b"")
    session = Session.open(workspace.config(MODE="grid"))
    output: list[str] = []

    m.run_console(session, io.StringIO("@2\n@3\n@3\n@9\nq\n"), output.append)

    assert (workspace.out / "cat.txt").read_text() == "2\n"
    assert " <add-click>" in output
    assert " <delete-click>" in output
    assert m.decode_click("@9", session) is None
    assert m.decode_click("@1", session) == cmd.ToggleSlot(slot=0, checked=True)


@pytest.mark.skipif(sys.platform == "win32", reason="select() needs POSIX pipes")
def test_run_console_autoforward_ticks(workspace: Workspace) -> None:
    """With autoforward on, a quiet second moves to the next image."""
    workspace.add_images(3)
    workspace.write_tags()
    session = Session.open(workspace.config(DELAY="1000"))
    output: list[str] = []
    read_fd, write_fd = os.pipe()
    os.write(write_fd, b"A\n")
    # One tick fires at 1 s; closing the pipe afterwards ends the session.
    closer = threading.Timer(1.5, os.close, args=(write_fd,))
    closer.start()

    with os.fdopen(read_fd, encoding="utf-8") as stream:
        m.run_console(session, stream, output.append)
    closer.join()

    assert "- autoforward turned on" in output
    assert output.count(" (autoforward)") == 1
    assert session.navigation.current_image == 2
    assert (workspace.session / "position.txt").read_text() == "2\n"
