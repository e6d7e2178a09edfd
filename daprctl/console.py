"""Status messages, JSON logging and a terminal spinner for command output."""

from __future__ import annotations

import json
import re
import sys
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, TextIO

_IS_WINDOWS = sys.platform == "win32"
_log_as_json = False

_SPINNER_FRAMES = "←↖↑↗→↘↓↙"
_SPINNER_DELAY = 0.1
_CYAN = "\x1b[36m"
_RESET = "\x1b[0m"
_CLEAR_LINE = "\r\x1b[K"

_VERB = re.compile(r"%[-+ #0]*\d*(?:\.(\d+))?([vsdqtfx%])")


class LogStatus(str, Enum):
    """Kinds of status events."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"
    INFO = "info"
    PENDING = "pending"


class Result(Enum):
    """Outcome passed to a spinner's stop function."""

    SUCCESS = True
    FAILURE = False

    def __bool__(self) -> bool:
        return self.value


_PREFIXES = {
    LogStatus.SUCCESS: "✅  ",
    LogStatus.FAILURE: "❌  ",
    LogStatus.WARNING: "⚠  ",
    LogStatus.PENDING: "⌛  ",
    LogStatus.INFO: "ℹ️  ",
}


def enable_json_format() -> None:
    """Switch all status output to one JSON object per line."""
    global _log_as_json
    _log_as_json = True


def is_json_log_enabled() -> bool:
    return _log_as_json


def _render(value: Any, verb: str, precision: str | None) -> str:
    if verb == "t" or isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if verb == "q":
        return json.dumps(str(value), ensure_ascii=False)
    if verb == "d":
        return str(int(value))
    if verb == "f":
        digits = int(precision) if precision else 6
        return f"{float(value):.{digits}f}"
    if verb == "x":
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).hex()
        if isinstance(value, int):
            return format(value, "x")
        return str(value).encode().hex()
    return str(value)


def _sprintf(fmt: str, args: tuple[Any, ...]) -> str:
    if not args:
        return fmt
    remaining = iter(args)

    def substitute(match: re.Match[str]) -> str:
        precision, verb = match.group(1), match.group(2)
        if verb == "%":
            return "%"
        try:
            value = next(remaining)
        except StopIteration:
            return f"%!{verb}(MISSING)"
        return _render(value, verb, precision)

    return _VERB.sub(substitute, fmt)


def _log_json(stream: TextIO, status: str, message: str) -> None:
    record = {
        "time": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "status": status,
        "msg": message,
    }
    stream.write(json.dumps(record, ensure_ascii=False, separators=(",", ":")) + "\n")


def _is_console(stream: TextIO) -> bool:
    return stream is sys.stdout or stream is sys.stderr


def status_event(stream: TextIO, status: LogStatus | str, fmt: str, *args: Any) -> None:
    """Report an event with the given status."""
    message = _sprintf(fmt, args)
    status_value = status.value if isinstance(status, LogStatus) else str(status)
    if _log_as_json:
        _log_json(stream, status_value, message)
        return
    if not _is_console(stream) or _IS_WINDOWS:
        stream.write(f"{message}\n")
        return
    try:
        prefix = _PREFIXES[LogStatus(status_value)]
    except ValueError:
        prefix = ""
    stream.write(f"{prefix}{message}\n")


def _event(stream: TextIO, status: LogStatus, fmt: str, args: tuple[Any, ...]) -> None:
    message = _sprintf(fmt, args)
    if _log_as_json:
        _log_json(stream, status.value, message)
    elif _IS_WINDOWS:
        stream.write(f"{message}\n")
    else:
        stream.write(f"{_PREFIXES[status]}{message}\n")


def success_status_event(stream: TextIO, fmt: str, *args: Any) -> None:
    """Report a success event."""
    _event(stream, LogStatus.SUCCESS, fmt, args)


def failure_status_event(stream: TextIO, fmt: str, *args: Any) -> None:
    """Report a failure event."""
    _event(stream, LogStatus.FAILURE, fmt, args)


def warning_status_event(stream: TextIO, fmt: str, *args: Any) -> None:
    """Report a warning event."""
    _event(stream, LogStatus.WARNING, fmt, args)


def pending_status_event(stream: TextIO, fmt: str, *args: Any) -> None:
    """Report a pending event."""
    _event(stream, LogStatus.PENDING, fmt, args)


def info_status_event(stream: TextIO, fmt: str, *args: Any) -> None:
    """Report an informational event."""
    _event(stream, LogStatus.INFO, fmt, args)


class _Spinner:
    def __init__(self, stream: TextIO, message: str) -> None:
        self._stream = stream
        self._suffix = f"  {message}"
        self._halt = threading.Event()
        self._thread = threading.Thread(target=self._spin, daemon=True)

    def _spin(self) -> None:
        index = 0
        while not self._halt.is_set():
            frame = _SPINNER_FRAMES[index % len(_SPINNER_FRAMES)]
            self._stream.write(f"\r{_CYAN}{frame}{_RESET}{self._suffix}")
            self._stream.flush()
            index += 1
            self._halt.wait(_SPINNER_DELAY)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._halt.set()
        self._thread.join()
        self._stream.write(_CLEAR_LINE)
        self._stream.flush()


def spinner(stream: TextIO, fmt: str, *args: Any) -> Callable[[Result], None]:
    """Show a spinner and return a function that stops it and reports the result once."""
    message = _sprintf(fmt, args)
    active: _Spinner | None = None

    if _log_as_json:
        _log_json(stream, LogStatus.PENDING.value, message)
    elif _IS_WINDOWS:
        stream.write(f"{message}\n")
        return lambda result: None
    else:
        isatty = getattr(stream, "isatty", None)
        if callable(isatty) and isatty():
            active = _Spinner(stream, message)
            active.start()

    lock = threading.Lock()
    done = False

    def stop(result: Result) -> None:
        nonlocal done
        with lock:
            if done:
                return
            done = True
            if active is not None:
                active.stop()
            if bool(result):
                success_status_event(stream, message)
            else:
                failure_status_event(stream, message)

    return stop