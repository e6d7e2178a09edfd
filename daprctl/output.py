"""Rendering helpers: resource ages, timestamps, tables and detailed JSON/YAML output."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Any, Iterable, Sequence, TextIO

import yaml

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M.%S"

_CELL_PADDING = "  "
_YAML_WIDTH = 1 << 30


def _human_duration(delta: timedelta) -> str:
    total = delta.total_seconds()
    seconds = int(total)
    if seconds < -1:
        return "<invalid>"
    if seconds < 0:
        return "0s"
    if seconds < 60 * 2:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 10:
        rest = seconds % 60
        return f"{minutes}m" if rest == 0 else f"{minutes}m{rest}s"
    if minutes < 60 * 3:
        return f"{minutes}m"
    hours = seconds // 3600
    if hours < 8:
        rest = minutes % 60
        return f"{hours}h" if rest == 0 else f"{hours}h{rest}m"
    if hours < 48:
        return f"{hours}h"
    if hours < 24 * 8:
        rest = hours % 24
        return f"{hours // 24}d" if rest == 0 else f"{hours // 24}d{rest}h"
    if hours < 24 * 365 * 2:
        return f"{hours // 24}d"
    if hours < 24 * 365 * 8:
        days = (hours // 24) % 365
        years = hours // 24 // 365
        return f"{years}y" if days == 0 else f"{years}y{days}d"
    return f"{hours // 24 // 365}y"


def get_age(created: datetime | None, now: datetime | None = None) -> str:
    """Return a short human-readable age of a resource created at ``created``."""
    if created is None:
        return ""
    if now is None:
        now = datetime.now(created.tzinfo) if created.tzinfo is not None else datetime.now()
    return _human_duration(now - created)


def format_timestamp(timestamp: datetime) -> str:
    """Format a creation timestamp the way list tables show it."""
    return timestamp.strftime(TIMESTAMP_FORMAT)


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def write_table(stream: TextIO, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """Write rows as a borderless, space-aligned table with upper-cased headers."""
    header = [str(h).upper() for h in headers]
    body = []
    for row in rows:
        cells = [_cell(value) for value in row]
        if len(cells) != len(header):
            raise ValueError(f"row has {len(cells)} cells, expected {len(header)}")
        body.append(cells)
    widths = [max(len(cell) for cell in column) for column in zip(header, *body)]
    for line in (header, *body):
        text = "".join(f"{_CELL_PADDING}{cell.ljust(width)}" for cell, width in zip(line, widths))
        stream.write(f"{text}{_CELL_PADDING}\n")


class _YamlDumper(yaml.SafeDumper):
    """Dumper that prefers double quotes where a scalar cannot be plain."""

    def choose_scalar_style(self) -> str:
        style = super().choose_scalar_style()
        return '"' if style == "'" else style


def print_detail(stream: TextIO, output_format: str, data: Any) -> None:
    """Write data as indented JSON or as YAML."""
    if output_format == "json":
        stream.write(json.dumps(data, indent=2, ensure_ascii=False))
    elif output_format == "yaml":
        stream.write(
            yaml.dump(
                data,
                Dumper=_YamlDumper,
                sort_keys=False,
                default_flow_style=False,
                allow_unicode=True,
                width=_YAML_WIDTH,
            )
        )
    else:
        raise ValueError(f"unsupported output format {output_format!r}; use json or yaml")