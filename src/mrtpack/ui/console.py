"""Live step display and build log for mrtpack."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import IO, Iterator, List, Optional

import click

from ..model import BuildStep, StepStatus

VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ANSI: cursor one line up, then wipe that line and return to column 0
_LINE_UP = "\x1b[1A"
_CLEAR_LINE = "\x1b[2K\r"

_PREFIXES = {
    StepStatus.PENDING: (" ", None),
    StepStatus.RUNNING: ("⟳", "yellow"),
    StepStatus.SUCCESS: ("✓", "green"),
    StepStatus.ERROR: ("✗", "red"),
}

_LEVEL_STYLES = {
    logging.ERROR: ("error", "red"),
    logging.WARNING: ("warn", "yellow"),
    logging.INFO: ("info", "green"),
    VERBOSE: ("verbose", "blue"),
}

# step lifecycle records go to the log file only; the step line already shows them
_STEP_EVENT = {"step_event": True}


def _isatty(stream: IO[str]) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


class _TerminalHandler(logging.Handler):
    """Routes log records into the reporter so they never tear the live block."""

    def __init__(self, reporter: TerminalReporter):
        super().__init__(VERBOSE)
        self.reporter = reporter

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.reporter._show_record(record)
        except Exception:
            self.handleError(record)


class TerminalReporter:
    """
    Ordered list of build steps drawn as lines that update in place.

    Every event is also written to a log file that is truncated when the
    reporter is created and closed by close() (or leaving the `with` block).
    On a non-interactive stream nothing is redrawn: each step prints its
    initial line once and the log file carries the rest.

    Module loggers under the package logger feed the open reporter, so only
    one reporter per logger may be open at a time.
    """

    def __init__(
        self,
        log_file: str | Path,
        *,
        verbose: bool = False,
        stream: Optional[IO[str]] = None,
        logger_name: str = "mrtpack",
    ):
        """
        Args:
            log_file: Durable log path, truncated on open
            verbose: Show info/verbose messages on screen (warn/error always show)
            stream: Display stream, defaults to sys.stdout
            logger_name: Logger the file and terminal handlers attach to

        Raises:
            RuntimeError: another open reporter already owns logger_name
        """
        self._log = logging.getLogger(logger_name)
        if any(isinstance(h, _TerminalHandler) for h in self._log.handlers):
            raise RuntimeError(f"a TerminalReporter is already attached to logger {logger_name!r}")

        self.verbose_mode = verbose
        self.stream = stream if stream is not None else sys.stdout
        self.interactive = _isatty(self.stream)

        self._steps: List[BuildStep] = []
        self._current = -1
        self._first_live = 0  # index of the first step in the redrawable block
        self._drawn = 0       # lines of that block currently on screen

        self.log_file = Path(log_file)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self._file_handler = logging.FileHandler(self.log_file, mode="w", encoding="utf-8")
        self._file_handler.setLevel(VERBOSE)
        self._file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        self._terminal_handler = _TerminalHandler(self)

        self._saved_logger_state = (self._log.level, self._log.propagate)
        self._log.setLevel(VERBOSE)
        self._log.propagate = False
        self._log.addHandler(self._file_handler)
        self._log.addHandler(self._terminal_handler)
        self._closed = False

        self._log.log(VERBOSE, "Logger initialized with level: %s", "verbose" if verbose else "quiet")

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @property
    def steps(self) -> List[BuildStep]:
        """Snapshot copies of every step recorded so far."""
        return [replace(s) for s in self._steps]

    @property
    def current(self) -> int:
        return self._current

    def start_step(self, message: str) -> int:
        """Open a new RUNNING step, closing a forgotten previous one as SUCCESS."""
        if self._current >= 0 and self._steps[self._current].status is StepStatus.RUNNING:
            self.complete_step(True)

        self._steps.append(BuildStep(message=message))
        self._current = len(self._steps) - 1
        self._write(f"  {message}\n")
        if self.interactive:
            self._drawn += 1

        self._steps[self._current].status = StepStatus.RUNNING
        self._redraw()
        self._log.info("Started: %s", message, extra=_STEP_EVENT)
        return self._current

    def complete_step(self, success: bool, message: Optional[str] = None) -> None:
        """
        Close the current step as SUCCESS or ERROR.

        Raises:
            RuntimeError: if no step is running
        """
        if self._current < 0 or self._steps[self._current].status is not StepStatus.RUNNING:
            raise RuntimeError("complete_step() called with no running step")

        step = self._steps[self._current]
        step.status = StepStatus.SUCCESS if success else StepStatus.ERROR
        if message:
            step.message = message
        self._redraw()

        if success:
            self._log.info("Completed: %s", step.message, extra=_STEP_EVENT)
        else:
            self._log.error("Failed: %s", step.message, extra=_STEP_EVENT)

    @contextmanager
    def passthrough(self) -> Iterator[None]:
        """
        Hand the console to a child process.

        Lines already on screen are left as they are; the current step is drawn
        again below the child's output on the next update.
        """
        if self.interactive:
            self._first_live = max(self._current, 0)
            self._drawn = 0
        self.stream.flush()
        yield

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def info(self, message: str) -> None:
        self._log.info(message)

    def warn(self, message: str) -> None:
        self._log.warning(message)

    def error(self, message: str, exc: Optional[BaseException] = None) -> None:
        """Log an error; the traceback of exc goes to the log file (and the screen in verbose mode)."""
        self._log.error(message, exc_info=exc)

    def verbose(self, message: str) -> None:
        self._log.log(VERBOSE, message)

    def print_title(self) -> None:
        self._write(click.style("\nCreating an optimized production build ...\n", bold=True) + "\n")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """Print a structured error to stderr (not to the display stream)."""
        click.echo(click.style(f"\nERROR: {title}", fg="red", bold=True), err=True)
        click.echo(message, err=True)
        if details:
            for detail in details:
                click.echo(f"  {detail}", err=True)
        if suggestion:
            click.echo(f"\n{suggestion}", err=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._log.removeHandler(self._terminal_handler)
        self._log.removeHandler(self._file_handler)
        self._file_handler.close()
        level, propagate = self._saved_logger_state
        self._log.setLevel(level)
        self._log.propagate = propagate

    def __enter__(self) -> TerminalReporter:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _show_record(self, record: logging.LogRecord) -> None:
        if getattr(record, "step_event", False):
            return
        if record.levelno < logging.WARNING and not self.verbose_mode:
            return

        label, color = _LEVEL_STYLES.get(record.levelno, (record.levelname.lower(), None))
        lines = [click.style(f"{label}: {record.getMessage()}", fg=color)]
        if record.exc_info and self.verbose_mode:
            trace = logging.Formatter().formatException(record.exc_info)
            lines.append(click.style(trace, fg=color))
        self._print_above("\n".join(lines))

    def _print_above(self, text: str) -> None:
        """Print text above the live block, keeping the block at the bottom."""
        if self.interactive and self._drawn:
            self._erase()
            self._write(text + "\n")
            self._draw()
        else:
            self._write(text + "\n")

    def _redraw(self) -> None:
        if not self.interactive:
            return
        self._erase()
        self._draw()

    def _erase(self) -> None:
        self._write((_LINE_UP + _CLEAR_LINE) * self._drawn)
        self._drawn = 0

    def _draw(self) -> None:
        live = self._steps[self._first_live:]
        for step in live:
            symbol, color = _PREFIXES[step.status]
            prefix = click.style(symbol, fg=color) if color else symbol
            self._write(f"{prefix} {step.message}\n")
        self._drawn = len(live)

    def _write(self, text: str) -> None:
        if text:
            click.echo(text, file=self.stream, nl=False)
