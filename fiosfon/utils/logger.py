"""
Logging utility with timestamps and timing support.
Provides structured, colourful console output for each stage of a
privacy-label refresh.  Optionally mirrors every line into a
timestamped file under ``.logs/`` when WRITE_TO_FILE is set; debug
lines appear only with LOG_DEBUG=true.

Timers live in a ``contextvars.ContextVar`` so that concurrent
extraction tasks (one per app) keep their own timings.
"""

from __future__ import annotations

import contextvars
import io
import os
import pathlib
import re
import sys
import time
from datetime import UTC, datetime

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")

_timers_var: contextvars.ContextVar[dict[str, tuple[float, str]]] = contextvars.ContextVar("_timers_var")

# One log file per process run; shared by all tasks.
_log_file: io.TextIOWrapper | None = None

_write_to_file = os.environ.get("WRITE_TO_FILE", "").lower() == "true"


def _get_timers() -> dict[str, tuple[float, str]]:
    """Return the per-context timer dict, creating it on first access."""
    try:
        return _timers_var.get()
    except LookupError:
        timers: dict[str, tuple[float, str]] = {}
        _timers_var.set(timers)
        return timers


# ============================================================================
# File Logging
# ============================================================================


def start_log_file(run_label: str) -> str | None:
    """Open ``.logs/<run_label>_<UTC stamp>.log`` when ``WRITE_TO_FILE=true``.

    Returns:
        The log file path, or ``None`` if file logging is off or the
        file could not be opened.
    """
    global _log_file
    if not _write_to_file:
        return None
    end_log_file()

    now = datetime.now(UTC)
    label = re.sub(r"[^A-Za-z0-9.-]", "_", run_label)[:50]
    path = pathlib.Path.cwd() / ".logs" / f"{label}_{now:%Y-%m-%d_%H-%M-%S}.log"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _log_file = open(path, "a", encoding="utf-8")  # noqa: SIM115
    except OSError as exc:
        print(f"[Logger] cannot open log file {path}: {exc}", file=sys.stderr)
        return None

    _log_file.write(f"# fiosfon {run_label} run started {now.isoformat()}\n")
    return str(path)


def end_log_file() -> None:
    global _log_file
    if _log_file is None:
        return
    try:
        _log_file.close()
    except OSError as exc:
        print(f"[Logger] cannot close log file: {exc}", file=sys.stderr)
    _log_file = None


def _emit(line: str) -> None:
    """Write a line to stderr and, without colours, to the log file."""
    print(line, file=sys.stderr)
    if _log_file is not None:
        _log_file.write(_ANSI_RE.sub("", line) + "\n")
        _log_file.flush()


# ============================================================================
# Levels
# ============================================================================

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_GRAY = "\033[90m"
_RULE = "\033[34m"

# level -> (colour, symbol)
_LEVELS = {
    "info": ("\033[36m", "ℹ"),
    "success": ("\033[32m", "✓"),
    "warn": ("\033[33m", "⚠"),
    "error": ("\033[31m", "✗"),
    "debug": (_GRAY, "•"),
    "timing": ("\033[35m", "⏱"),
}

# Per-app cache hits and click skips are noisy on a full chart run.
_show_debug = os.environ.get("LOG_DEBUG", "").lower() == "true"


def _clock() -> str:
    """UTC wall time as HH:MM:SS.mmm."""
    return datetime.now(UTC).isoformat(timespec="milliseconds")[11:23]


def _human_ms(ms: float) -> str:
    if ms < 1000:
        return f"{ms:.0f}ms"
    if ms < 60000:
        return f"{ms / 1000:.2f}s"
    return f"{int(ms // 60000)}m {ms % 60000 / 1000:.1f}s"


def _render(value: object) -> str:
    """Compact coloured rendering of one structured field."""
    if value is None or isinstance(value, bool):
        colour = _DIM if value is None else ("\033[32m" if value else "\033[31m")
        return f"{colour}{value}{_RESET}"
    if isinstance(value, (int, float)):
        return f"\033[33m{value}{_RESET}"
    if isinstance(value, str):
        text = value if len(value) <= 200 else value[:197] + "..."
        return f'\033[32m"{text}"{_RESET}'
    if isinstance(value, (dict, list, tuple, set, frozenset)):
        unit = "keys" if isinstance(value, dict) else "items"
        return f"\033[36m[{len(value)} {unit}]{_RESET}"
    return str(value)


# ============================================================================
# Logger Class
# ============================================================================


class Logger:
    """Structured logger with context prefix and timing support."""

    def __init__(self, context: str = "FiosFon") -> None:
        self._context = context

    def _log(self, level: str, message: str, data: dict[str, object] | None = None) -> None:
        if level == "debug" and not _show_debug:
            return
        colour, symbol = _LEVELS[level]
        parts = [f"{_GRAY}[{_clock()}]{_RESET}", f"{colour}{symbol}{_RESET}", f"{_BOLD}[{self._context}]{_RESET}", message]
        parts.extend(f"{_DIM}{key}={_RESET}{_render(value)}" for key, value in (data or {}).items())
        _emit(" ".join(parts))

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("error", message, data)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        """Only emitted when ``LOG_DEBUG=true``."""
        self._log("debug", message, data)

    def start_timer(self, label: str) -> None:
        """Start a named timer, scoped to this logger's context."""
        _get_timers()[f"{self._context}:{label}"] = (time.monotonic(), _clock())
        self._log("timing", f"Starting: {label}")

    def end_timer(self, label: str, message: str | None = None) -> float:
        """Stop a named timer, log the elapsed time and return it in ms."""
        started = _get_timers().pop(f"{self._context}:{label}", None)
        if started is None:
            self.warn(f'Timer "{label}" was not started')
            return 0.0
        start, start_clock = started
        elapsed = (time.monotonic() - start) * 1000
        self._log(
            "timing",
            f"{message or label} {_DIM}took{_RESET} \033[35m{_human_ms(elapsed)}{_RESET} {_DIM}(since {start_clock}){_RESET}",
        )
        return elapsed

    def section(self, title: str) -> None:
        """Print a divider with *title* between pipeline stages."""
        rule = f"{_RULE}{'─' * 60}{_RESET}"
        _emit(f"\n{rule}\n{_RULE}{_BOLD}  {title}{_RESET}\n{rule}\n")


def create_logger(context: str) -> Logger:
    """Return a logger whose lines are prefixed with ``[context]``."""
    return Logger(context)
