"""Output and logging system with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- primary data only (status tables, diff listings).
* **stderr** -- all diagnostics (progress, status, warnings, errors,
  suggestions). Never contaminates the data stream.
* **TTY detection** -- Rich formatting and spinners when stdout is an
  interactive terminal, plain text when piped to another process.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and the
  ``--no-color`` CLI flag.

The module exposes three layers:

1. :class:`Reporter` -- the logging capability that core functions
   (extractor, generator, fetcher) accept as an explicit argument. Core
   code never reaches for global state; when no reporter is passed it uses
   :class:`NullReporter`, which discards everything.
2. :class:`OutputManager` -- the Rich-backed ``Reporter`` used by the CLI.
   Created once in :func:`~clientforge.app.main_callback` and installed
   via :func:`set_output`.
3. :func:`get_output` and :func:`error`, which reach the global
   ``OutputManager`` from the command layer and the entry point.

Every diagnostic accepts keyword *context* rendered after the message as
``(key=value, ...)``; absolute paths under the working directory are
shortened to relative ones.
"""

from __future__ import annotations

import contextlib
import json
import os
import sys
from enum import Enum
from typing import Any, Iterator, Optional, Protocol

from rich.console import Console
from rich.table import Table


class OutputFormat(str, Enum):
    """Enumeration of supported output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    PLAIN = "plain"
    RICH = "rich"


class Reporter(Protocol):
    """Logging capability injected into core functions.

    Implementations must never raise from a diagnostic call.
    """

    def info(self, message: str, **context: Any) -> None: ...

    def success(self, message: str, **context: Any) -> None: ...

    def warning(self, message: str, **context: Any) -> None: ...

    def error(self, message: str, **context: Any) -> None: ...

    def debug(self, message: str, **context: Any) -> None: ...

    def spin(self, message: str) -> contextlib.AbstractContextManager[None]: ...


class NullReporter:
    """A :class:`Reporter` that discards every message.

    Used as the default by core functions so they can run in tests and
    library code without console side effects.
    """

    def info(self, message: str, **context: Any) -> None:
        pass

    def success(self, message: str, **context: Any) -> None:
        pass

    def warning(self, message: str, **context: Any) -> None:
        pass

    def error(self, message: str, **context: Any) -> None:
        pass

    def debug(self, message: str, **context: Any) -> None:
        pass

    @contextlib.contextmanager
    def spin(self, message: str) -> Iterator[None]:
        yield


class OutputManager:
    """Central manager for all CLI output with stdout/stderr discipline.

    Maintains two Rich :class:`~rich.console.Console` instances -- one for
    stdout (data) and one for stderr (diagnostics) -- and routes every
    output call to the correct stream with appropriate formatting. Satisfies
    the :class:`Reporter` protocol so it can be handed to core functions.

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential informational messages on stderr.
        verbose: Enable debug-level messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        # Resolve format: AUTO picks RICH for interactive TTY, PLAIN otherwise
        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_quiet(self) -> bool:
        """Whether quiet mode is enabled."""
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        """Whether verbose mode is enabled."""
        return self._verbose

    def set_verbose(self, verbose: bool) -> None:
        """Toggle debug output after construction (used by ``watch --debug``)."""
        self._verbose = verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Print raw text to stdout.

        Args:
            text: The string to write.
        """
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich mode** -- styled :class:`~rich.table.Table` with column
          headers.
        * **Plain mode** -- tab-separated values, one row per line.

        Args:
            headers: Column header strings.
            rows: List of rows, where each row is a list of cell strings.
            title: Optional table title (Rich mode only).
        """
        if self._format == OutputFormat.PLAIN:
            if title:
                self.print_data(title)
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for h in headers:
            table.add_column(h)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str, **context: Any) -> None:
        """Print an informational message to stderr. Suppressed by ``--quiet``.

        Args:
            message: The message text.
            **context: Key/value pairs appended as ``(key=value, ...)``.
        """
        if not self._quiet:
            self._emit(message + format_context(context))

    def success(self, message: str, **context: Any) -> None:
        """Print a green success message to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            text = message + format_context(context)
            self._emit(text, markup=f"[green]{_escape(text)}[/green]")

    def warning(self, message: str, **context: Any) -> None:
        """Print a yellow warning to stderr. NOT suppressed by ``--quiet``."""
        text = message + format_context(context)
        self._emit(
            f"Warning: {text}",
            markup=f"[yellow]Warning:[/yellow] {_escape(text)}",
        )

    def error(self, message: str, **context: Any) -> None:
        """Print a bold-red error to stderr. Never suppressed.

        Multi-line messages (such as :func:`~clientforge.exceptions.format_error`
        output) are printed as-is after the first line's prefix.
        """
        text = message + format_context(context)
        if text.startswith("Error"):
            self._emit(text, markup=f"[bold red]{_escape(text)}[/bold red]")
        else:
            self._emit(
                f"Error: {text}",
                markup=f"[bold red]Error:[/bold red] {_escape(text)}",
            )

    def suggest(self, message: str) -> None:
        """Print a dimmed next-step suggestion to stderr. Suppressed by ``--quiet``.

        Args:
            message: The suggestion text (prefixed with an arrow on output).
        """
        if not self._quiet:
            formatted = f"→ {message}"
            self._emit(formatted, markup=f"[dim]{_escape(formatted)}[/dim]")

    def debug(self, message: str, **context: Any) -> None:
        """Print a debug message to stderr. Only shown when ``--verbose`` is active."""
        if self._verbose:
            text = f"[debug] {message}{format_context(context)}"
            self._emit(text, markup=f"[dim]{_escape(text)}[/dim]")

    def separator(self, title: Optional[str] = None) -> None:
        """Print a section rule to stderr. Suppressed by ``--quiet``.

        Args:
            title: Optional heading shown inside the rule.
        """
        if self._quiet:
            return
        if self._no_color:
            line = "─" * 40
            print(f"{line} {title} " if title else line, file=sys.stderr, flush=True)
        else:
            self._stderr.rule(title or "", style="dim")

    @contextlib.contextmanager
    def spin(self, message: str) -> Iterator[None]:
        """Show a spinner on stderr while the block runs.

        Falls back to a single informational line when stdout is not a TTY,
        colour is disabled, or quiet mode is on.

        Example::

            with output.spin("Fetching spec..."):
                fetch_openapi_spec(...)
        """
        if self._quiet or self._no_color or not _is_tty():
            self.info(message)
            yield
            return
        with self._stderr.status(message):
            yield

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _emit(self, plain: str, markup: Optional[str] = None) -> None:
        if self._no_color or markup is None:
            if self._no_color:
                print(plain, file=sys.stderr, flush=True)
            else:
                self._stderr.print(plain, markup=False, highlight=False)
        else:
            self._stderr.print(markup, highlight=False)


# ------------------------------------------------------------------ #
# Formatting helpers
# ------------------------------------------------------------------ #


def _escape(text: str) -> str:
    """Escape Rich markup characters in user-provided text."""
    return text.replace("[", "\\[")


def _shorten_path(value: str) -> str:
    """Shorten an absolute path under the working directory to a relative one."""
    cwd = os.getcwd()
    if value.startswith(cwd):
        return os.path.relpath(value, cwd)
    return value


def _format_value(value: Any) -> str:
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if isinstance(value, str):
        if value.startswith("/"):
            return _shorten_path(value)
        return value
    return json.dumps(value, default=str)


def format_context(context: dict[str, Any]) -> str:
    """Render keyword context as `` (key=value, ...)``.

    ``None`` values are skipped. Returns an empty string when nothing is
    left to show.
    """
    parts = [
        f"{key}={_format_value(value)}"
        for key, value in context.items()
        if value is not None
    ]
    return f" ({', '.join(parts)})" if parts else ""


def format_duration(ms: int) -> str:
    """Format a duration in milliseconds as ``850ms``, ``2.4s`` or ``3m 12s``."""
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms / 1000:.1f}s"
    minutes = ms // 60_000
    seconds = (ms % 60_000) // 1000
    return f"{minutes}m {seconds}s"


def format_time_ago(seconds: float) -> str:
    """Format an age in seconds as ``42s ago``, ``5 min ago``, ``3h ago`` or ``2d ago``."""
    seconds = max(0, int(seconds))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60} min ago"
    if seconds < 86_400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86_400}d ago"


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Check if color should be disabled per clig.dev.

    Returns True when NO_COLOR env var is set (any value) or TERM=dumb.
    """
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager` instance.

    If no instance has been installed via :func:`set_output`, a default
    ``OutputManager`` with ``AUTO`` format is created lazily.
    """
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance.

    Called once during CLI startup from :func:`~clientforge.app.main_callback`.
    """
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


def error(message: str, **context: Any) -> None:
    """Print an error through the global :class:`OutputManager`.

    Used by :func:`~clientforge.app.main`, which runs outside any command
    and has no manager of its own.
    """
    get_output().error(message, **context)
