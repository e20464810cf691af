"""
Line-oriented terminal front end for a tagging session.

Each input line is read as a sequence of key presses (``n``, ``c``, ``2`` ...). The
commands that need an argument take it from the rest of the line (``G 120``, ``T 14``,
``d cat``) or prompt for it. In grid mode ``@3`` toggles the active tag on the third
thumbnail of the page.
"""

import select
import sys
import time
from collections.abc import Callable
from typing import TextIO

from loguru import logger

from fast_tagger import commands as cmd
from fast_tagger.session import Session


ARGUMENT_PROMPTS = {
    "G": "Goto image number: ",
    "T": "Enter tag number: ",
    "d": "Enter tag number/name: ",
}

Output = Callable[[str], None]


def decode_line(line: str, ask: Callable[[str], str]) -> list[cmd.Command]:
    """
    Turn one input line into commands.

    Examples:
        >>> decode_line("G 42", input)
        [Goto(target='42')]
        >>> decode_line("cn", input)
        [TagKey(key='c'), Next()]

    """
    if not line:
        return []
    if line[0] in ARGUMENT_PROMPTS and len(line) > 1:
        command = cmd.command_for_key(line[0], line[1:].strip())
        return [command] if command is not None else []

    decoded: list[cmd.Command] = []
    for key in line:
        if key in ARGUMENT_PROMPTS:
            argument = ask(ARGUMENT_PROMPTS[key])
            command = cmd.command_for_key(key, argument)
        else:
            command = cmd.command_for_key(key)
        decoded.append(command if command is not None else cmd.TagKey(key))
    return decoded


def decode_click(line: str, session: Session) -> cmd.ToggleSlot | None:
    """Decode ``@<n>`` (1-based thumbnail number) into a toggle of that slot."""
    if not session.grid or not line.startswith("@") or not line[1:].isdigit():
        return None
    slot = int(line[1:]) - 1
    slots = session.view().slots
    current = slots[slot] if 0 <= slot < len(slots) else None
    if current is None:
        return None
    return cmd.ToggleSlot(slot=slot, checked=not current.tagged)


def render(session: Session, out: Output) -> None:
    view = session.view()
    out(f"== {view.title}")
    if not session.grid:
        return
    out(f"   active tag: {view.active_tag}")
    n_cols = session.config.as_int("N_COLS")
    cells = [
        f"{i + 1:>3} [{'x' if slot.tagged else ' '}] {slot.image:<8}"
        for i, slot in enumerate(view.slots)
        if slot is not None
    ]
    for row_start in range(0, len(cells), n_cols):
        out("".join(cells[row_start : row_start + n_cols]).rstrip())


def _wait_for_line(stream: TextIO, timeout: float | None) -> str | None:
    """Read a line; None when ``timeout`` seconds pass first."""
    if timeout is not None:
        ready, _, _ = select.select([stream], [], [], max(0.0, timeout))
        if not ready:
            return None
    return stream.readline()


def run_console(
    session: Session,
    stream: TextIO = sys.stdin,
    out: Output = print,
) -> None:
    """Drive ``session`` from ``stream`` until the operator quits or input ends."""

    def ask(prompt: str) -> str:
        out(prompt)
        return stream.readline().strip()

    out("fast-tagger - press h for help")
    for line in session.summary():
        out(line)
    render(session, out)

    armed_generation: int | None = None
    deadline = 0.0
    while True:
        clock = session.clock
        timeout: float | None = None
        if clock.running:
            if armed_generation != clock.generation:
                armed_generation = clock.generation
                deadline = time.monotonic() + clock.delay_ms / 1000
            timeout = deadline - time.monotonic()
        else:
            armed_generation = None

        raw = _wait_for_line(stream, timeout)
        if raw is None:
            armed_generation = None
            pending: list[cmd.Command] = [cmd.Tick()]
        elif raw == "":
            logger.info("console_input_closed")
            pending = [cmd.Quit()]
        else:
            line = raw.rstrip("\r\n")
            click = decode_click(line, session)
            pending = [click] if click is not None else decode_line(line, ask)

        for command in pending:
            response = session.handle(command)
            for text in response.lines:
                out(text)
            if response.finished:
                return
            if response.redraw:
                render(session, out)
