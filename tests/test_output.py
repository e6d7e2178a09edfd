import io
import json
from datetime import datetime, timedelta, timezone

import pytest
import yaml

from daprctl.output import format_timestamp, get_age, print_detail, write_table

HEADERS = ["Namespace", "Name", "Type", "VERSION", "SCOPES", "CREATED", "AGE"]


def test_write_table_matches_aligned_layout():
    buf = io.StringIO()
    created = "2021-01-01 00:00.00"
    write_table(buf, HEADERS, [["default", "appConfig", "state.redis", "v1", "", created, "0s"]])
    expected = (
        "  NAMESPACE  NAME       TYPE         VERSION  SCOPES  CREATED              AGE  \n"
        "  default    appConfig  state.redis  v1               " + created + "  0s   \n"
    )
    assert buf.getvalue() == expected


def test_write_table_header_only():
    buf = io.StringIO()
    write_table(buf, HEADERS, [])
    assert buf.getvalue() == "  NAMESPACE  NAME  TYPE  VERSION  SCOPES  CREATED  AGE  \n"


def test_write_table_lines_have_equal_length():
    buf = io.StringIO()
    write_table(buf, ["a", "bb"], [["long value", 1], ["x", "yyyyyy"]])
    lines = buf.getvalue().splitlines()
    assert len(lines) == 3
    assert len({len(line) for line in lines}) == 1


def test_write_table_renders_booleans():
    buf = io.StringIO()
    write_table(buf, ["flag", "other"], [[True, False]])
    row = buf.getvalue().splitlines()[1].split()
    assert row == ["true", "false"]


def test_write_table_rejects_short_row():
    with pytest.raises(ValueError):
        write_table(io.StringIO(), ["a", "b"], [["only"]])


def test_format_timestamp():
    assert format_timestamp(datetime(2021, 3, 4, 5, 6, 7)) == "2021-03-04 05:06.07"


def test_get_age_now_is_zero_seconds():
    now = datetime.now(timezone.utc)
    assert get_age(now, now) == "0s"


def test_get_age_twenty_minutes():
    now = datetime.now(timezone.utc)
    assert get_age(now - timedelta(minutes=20), now) == "20m"


def test_get_age_without_timestamp():
    assert get_age(None) == ""


def test_get_age_defaults_to_current_time():
    created = datetime.now(timezone.utc) - timedelta(minutes=20, seconds=5)
    assert get_age(created) == "20m"


def test_print_detail_json_round_trip():
    data = [{"name": "appConfig", "namespace": "", "spec": {"type": "state.redis", "metadata": None}}]
    buf = io.StringIO()
    print_detail(buf, "json", data)
    assert json.loads(buf.getvalue()) == data
    assert buf.getvalue().endswith("]")


def test_print_detail_yaml_round_trip():
    data = [{"name": "a", "namespace": "ns", "spec": {"enabled": True, "items": [1, 2], "empty": []}}]
    buf = io.StringIO()
    print_detail(buf, "yaml", data)
    assert yaml.safe_load(buf.getvalue()) == data


def test_print_detail_yaml_double_quotes_empty_strings():
    buf = io.StringIO()
    print_detail(buf, "yaml", [{"name": "appConfig", "namespace": ""}])
    assert buf.getvalue() == '- name: appConfig\n  namespace: ""\n'


def test_print_detail_rejects_unknown_format():
    with pytest.raises(ValueError):
        print_detail(io.StringIO(), "xml", [])