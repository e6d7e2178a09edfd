import io
import json
import sys

import pytest

from daprctl import console
from daprctl.console import LogStatus, Result


@pytest.fixture(autouse=True)
def _plain_unix(monkeypatch):
    monkeypatch.setattr(console, "_log_as_json", False)
    monkeypatch.setattr(console, "_IS_WINDOWS", False)


def test_status_event_to_buffer_is_plain():
    buf = io.StringIO()
    console.status_event(buf, LogStatus.SUCCESS, "hello %s", "world")
    assert buf.getvalue() == "hello world\n"


def test_status_event_to_stdout_is_decorated(capsys):
    console.status_event(sys.stdout, LogStatus.FAILURE, "broke %s", "it")
    assert capsys.readouterr().out == "❌  broke it\n"


def test_status_event_unknown_status_has_no_prefix(capsys):
    console.status_event(sys.stdout, "other", "message")
    assert capsys.readouterr().out == "message\n"


@pytest.mark.parametrize(
    "func,prefix",
    [
        (console.success_status_event, "✅  "),
        (console.failure_status_event, "❌  "),
        (console.warning_status_event, "⚠  "),
        (console.pending_status_event, "⌛  "),
        (console.info_status_event, "ℹ️  "),
    ],
)
def test_typed_events_have_prefix(func, prefix):
    buf = io.StringIO()
    func(buf, "value %v", 3)
    assert buf.getvalue() == f"{prefix}value 3\n"


def test_windows_events_are_plain(monkeypatch):
    monkeypatch.setattr(console, "_IS_WINDOWS", True)
    buf = io.StringIO()
    console.info_status_event(buf, "info")
    assert buf.getvalue() == "info\n"


def test_format_verbs():
    buf = io.StringIO()
    console.status_event(buf, LogStatus.INFO, "%q %v %d%%", "name", True, 7)
    assert buf.getvalue() == '"name" true 7%\n'


def test_json_format(monkeypatch):
    console.enable_json_format()
    assert console.is_json_log_enabled() is True
    buf = io.StringIO()
    console.warning_status_event(buf, "careful %s", "now")
    record = json.loads(buf.getvalue())
    assert record["status"] == LogStatus.WARNING.value
    assert record["msg"] == "careful now"
    assert record["time"].endswith("Z")


def test_spinner_json_reports_once():
    console.enable_json_format()
    buf = io.StringIO()
    stop = console.spinner(buf, "Deploying %s", "app")
    stop(Result.SUCCESS)
    stop(Result.FAILURE)
    lines = [json.loads(line) for line in buf.getvalue().splitlines()]
    assert [line["status"] for line in lines] == ["pending", "success"]
    assert all(line["msg"] == "Deploying app" for line in lines)


def test_spinner_non_terminal_reports_failure():
    buf = io.StringIO()
    stop = console.spinner(buf, "working")
    stop(Result.FAILURE)
    assert buf.getvalue() == "❌  working\n"


def test_spinner_non_terminal_reports_success():
    buf = io.StringIO()
    stop = console.spinner(buf, "working")
    stop(Result.SUCCESS)
    assert buf.getvalue() == "✅  working\n"


def test_spinner_windows_prints_message_only(monkeypatch):
    monkeypatch.setattr(console, "_IS_WINDOWS", True)
    buf = io.StringIO()
    stop = console.spinner(buf, "working")
    stop(Result.SUCCESS)
    assert buf.getvalue() == "working\n"