"""Interactive selection of the package to start.

A choice resolves from, in order: an explicit name, a single available
candidate, or a race between one line of terminal input and a countdown that
falls back to the default package.

The race has exactly one winner. With a selectable stdin the line is read with
select() and os.read() against a deadline, so nothing is read once the
countdown has fired. Streams that cannot be selected are read on a daemon
thread that races the countdown for a one-shot result slot: the first writer
wins and the other result is dropped.
"""

from __future__ import annotations

import io
import os
import re
import sys
import time
import select
import threading
from collections.abc import Callable, Sequence
from typing import Protocol, TextIO

import click
import structlog

from devpick.core.errors import InvalidSelectionError, NoCandidatesError

logger = structlog.get_logger(__name__)

_LEADING_INT = re.compile(r"[+-]?\d+")


class InputSource(Protocol):
    """Something that yields one line of user input."""

    def read_line(self, timeout: float | None) -> str | None:
        """Return one line, or None if `timeout` seconds passed first.

        A `timeout` of None blocks until a line (or end of input) arrives.
        """
        ...


class _OneShot:
    """Single-assignment slot; later offers are ignored."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._filled = threading.Event()
        self._value: str | None = None

    def offer(self, value: str | None) -> bool:
        with self._lock:
            if self._filled.is_set():
                return False
            self._value = value
            self._filled.set()
            return True

    def wait(self, timeout: float) -> bool:
        return self._filled.wait(timeout)

    @property
    def value(self) -> str | None:
        return self._value


def race_readline(readline: Callable[[], str], timeout: float) -> str | None:
    """Race `readline` on a daemon thread against a countdown of `timeout` seconds.

    Returns the line if it arrived first, otherwise None. A line that arrives
    after the countdown won is discarded.
    """
    slot = _OneShot()

    def reader() -> None:
        try:
            line = readline()
        except (OSError, ValueError):
            line = ""
        if not slot.offer(line):
            logger.debug("late_input_discarded")

    threading.Thread(target=reader, name="devpick-stdin", daemon=True).start()
    if not slot.wait(timeout):
        # None marks the countdown as the winner unless the reader got there first
        slot.offer(None)
    return slot.value


class TerminalInput:
    """Reads the selection from a terminal stream, stdin by default."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdin

    def _selectable(self) -> bool:
        if os.name == "nt":
            return False
        try:
            self.stream.fileno()
        except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
            return False
        return True

    def _read_line_before(self, deadline: float) -> str | None:
        # Byte-wise reads so a partial line on a pipe cannot block past the deadline.
        # A partial line left when the deadline passes is dropped.
        fd = self.stream.fileno()
        data = bytearray()
        while True:
            remaining = max(deadline - time.monotonic(), 0)
            ready, _, _ = select.select([fd], [], [], remaining)
            if not ready:
                return None
            chunk = os.read(fd, 1)
            data += chunk
            if not chunk or chunk == b"\n":
                encoding = getattr(self.stream, "encoding", None) or "utf-8"
                return data.decode(encoding, errors="replace")

    def read_line(self, timeout: float | None) -> str | None:
        if timeout is None:
            return self.stream.readline()
        if self._selectable():
            return self._read_line_before(time.monotonic() + timeout)
        return race_readline(self.stream.readline, timeout)


def parse_selection(answer: str, count: int) -> int | None:
    """Parse a 1-based menu choice, returning a 0-based index or None if invalid.

    Leading digits are taken as the number, so "2" and "2 please" both pick the
    second entry.
    """
    match = _LEADING_INT.match(answer.strip())
    if not match:
        return None
    number = int(match.group())
    if 1 <= number <= count:
        return number - 1
    return None


def _format_seconds(timeout_ms: int) -> str:
    return f"{timeout_ms / 1000:g}"


def show_menu(candidates: Sequence[str], default_name: str | None) -> None:
    click.echo("Available dev servers:")
    for index, name in enumerate(candidates, 1):
        marker = " (default)" if name == default_name else ""
        click.echo(f"{index}. {name}{marker}")


def resolve_selection(
    candidates: Sequence[str],
    *,
    explicit_choice: str | None = None,
    force_interactive: bool = False,
    default_name: str | None = None,
    timeout_ms: int = 10000,
    input_source: InputSource | None = None,
) -> str:
    """Resolve which package to start.

    Args:
        candidates: Discovered package names, in menu order
        explicit_choice: Name given on the command line, accepted without validation
        force_interactive: Prompt even when explicit_choice is given
        default_name: Fallback for timeout, blank or invalid input; ignored unless in candidates
        timeout_ms: Countdown before the default is picked
        input_source: Where the answer is read from, the terminal by default

    Raises:
        NoCandidatesError: candidates is empty
        InvalidSelectionError: the answer is unusable and there is no default
    """
    if explicit_choice and not force_interactive:
        return explicit_choice

    if not candidates:
        raise NoCandidatesError()

    if len(candidates) == 1:
        click.echo(f"Only one package available. Starting {candidates[0]} automatically...")
        return candidates[0]

    has_default = default_name is not None and default_name in candidates
    fallback = default_name if has_default else None
    show_menu(candidates, fallback)

    count = len(candidates)
    if fallback is not None:
        click.echo(
            f"\nEnter the number of the dev server to start (1-{count}) "
            f"or wait {_format_seconds(timeout_ms)} seconds for default ({fallback}):"
        )
    else:
        click.echo(f"\nEnter the number of the dev server to start (1-{count}):")

    source = input_source if input_source is not None else TerminalInput()
    timeout = timeout_ms / 1000 if fallback is not None else None
    answer = source.read_line(timeout)

    if answer is None and fallback is not None:
        logger.debug("selection_timed_out", timeout_ms=timeout_ms, default=fallback)
        click.echo(f"\nSelection timeout reached. Starting default package: {fallback}")
        return fallback
    answer = answer or ""

    if not answer.strip() and fallback is not None:
        click.echo(f"Starting default package: {fallback}")
        return fallback

    index = parse_selection(answer, count)
    if index is None:
        if fallback is None:
            raise InvalidSelectionError(answer, count)
        click.secho("Invalid selection!", fg="red", err=True)
        click.echo(f"Falling back to default package: {fallback}")
        return fallback

    return candidates[index]
