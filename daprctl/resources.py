"""Listing of Dapr components and configurations held in a cluster."""

from __future__ import annotations

import sys
from dataclasses import astuple, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Iterable, Protocol, TextIO

from daprctl.output import format_timestamp, get_age, print_detail, write_table

SYSTEM_CONFIG_NAME = "daprsystem"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Component:
    """A Dapr component resource."""

    name: str
    namespace: str = ""
    type: str = ""
    version: str = ""
    ignore_errors: bool = False
    metadata: list[dict[str, Any]] | None = None
    init_timeout: str = ""
    scopes: list[str] = field(default_factory=list)
    creation_timestamp: datetime = field(default_factory=_now)

    def spec_dict(self, output_format: str) -> dict[str, Any]:
        """Return the component spec keyed as the given output format names it."""
        if output_format == "json":
            return {
                "type": self.type,
                "version": self.version,
                "ignoreErrors": self.ignore_errors,
                "metadata": self.metadata,
                "initTimeout": self.init_timeout,
            }
        return {
            "type": self.type,
            "version": self.version,
            "ignoreerrors": self.ignore_errors,
            "metadata": list(self.metadata) if self.metadata is not None else [],
            "inittimeout": self.init_timeout,
        }


@dataclass
class Configuration:
    """A Dapr configuration resource; ``spec`` is its specification as a mapping."""

    name: str
    namespace: str = ""
    spec: dict[str, Any] = field(default_factory=dict)
    creation_timestamp: datetime = field(default_factory=_now)

    @property
    def sampling_rate(self) -> str:
        return str((self.spec.get("tracing") or {}).get("samplingRate", ""))

    @property
    def metrics_enabled(self) -> bool:
        return bool((self.spec.get("metric") or {}).get("enabled", False))


@dataclass
class ComponentsOutput:
    """One row of the component list table."""

    HEADERS: ClassVar[tuple[str, ...]] = ("Namespace", "Name", "Type", "VERSION", "SCOPES", "CREATED", "AGE")

    namespace: str
    name: str
    type: str
    version: str
    scopes: str
    created: str
    age: str


@dataclass
class ConfigurationsOutput:
    """One row of the configuration list table."""

    HEADERS: ClassVar[tuple[str, ...]] = (
        "Namespace",
        "Name",
        "TRACING-ENABLED",
        "METRICS-ENABLED",
        "AGE",
        "CREATED",
    )

    namespace: str
    name: str
    tracing_enabled: bool
    metrics_enabled: bool
    age: str
    created: str


class _DaprClient(Protocol):
    def list_components(self, namespace: str) -> Iterable[Component]:
        """Return components in a namespace; raise LookupError if the resource type is absent."""

    def list_configurations(self, namespace: str) -> Iterable[Configuration]:
        """Return configurations in a namespace; raise LookupError if the resource type is absent."""


def tracing_enabled(sampling_rate: str) -> bool:
    """Return whether a sampling rate string parses to a positive number."""
    if not sampling_rate or sampling_rate != sampling_rate.strip() or "_" in sampling_rate:
        return False
    try:
        return float(sampling_rate) > 0
    except ValueError:
        return False


def _by_namespace_desc(items: list[Any], namespace: Callable[[Any], str]) -> list[Any]:
    return sorted(items, key=namespace, reverse=True)


def _select(items: Iterable[Any], name: str) -> list[Any]:
    wanted = name.casefold() if name else ""
    return [
        item
        for item in items
        if item.name != SYSTEM_CONFIG_NAME and (not wanted or item.name.casefold() == wanted)
    ]


def _is_list_format(output_format: str | None) -> bool:
    return not output_format or output_format == "list"


def _write_details(stream: TextIO, output_format: str, details: list[dict[str, Any]]) -> None:
    print_detail(stream, output_format, _by_namespace_desc(details, lambda d: d["namespace"]))


def write_components(
    stream: TextIO,
    fetch: Callable[[], Iterable[Component]],
    name: str,
    output_format: str,
) -> None:
    """Write the components returned by ``fetch`` as a table or as JSON/YAML detail."""
    selected = _select(fetch(), name)
    if _is_list_format(output_format):
        rows = [
            ComponentsOutput(
                namespace=c.namespace,
                name=c.name,
                type=c.type,
                version=c.version,
                scopes=",".join(c.scopes),
                created=format_timestamp(c.creation_timestamp),
                age=get_age(c.creation_timestamp),
            )
            for c in selected
        ]
        rows = _by_namespace_desc(rows, lambda r: r.namespace)
        write_table(stream, ComponentsOutput.HEADERS, [astuple(r) for r in rows])
        return
    details = [{"name": c.name, "namespace": c.namespace, "spec": c.spec_dict(output_format)} for c in selected]
    _write_details(stream, output_format, details)


def write_configurations(
    stream: TextIO,
    fetch: Callable[[], Iterable[Configuration]],
    name: str,
    output_format: str,
) -> None:
    """Write the configurations returned by ``fetch`` as a table or as JSON/YAML detail."""
    selected = _select(fetch(), name)
    if _is_list_format(output_format):
        rows = [
            ConfigurationsOutput(
                namespace=c.namespace,
                name=c.name,
                tracing_enabled=tracing_enabled(c.sampling_rate),
                metrics_enabled=c.metrics_enabled,
                age=get_age(c.creation_timestamp),
                created=format_timestamp(c.creation_timestamp),
            )
            for c in selected
        ]
        rows = _by_namespace_desc(rows, lambda r: r.namespace)
        write_table(stream, ConfigurationsOutput.HEADERS, [astuple(r) for r in rows])
        return
    details = [{"name": c.name, "namespace": c.namespace, "spec": c.spec} for c in selected]
    _write_details(stream, output_format, details)


def print_components(client: _DaprClient, name: str, namespace: str, output_format: str) -> None:
    """Print the Dapr components of a namespace to standard output."""

    def fetch() -> list[Component]:
        try:
            return list(client.list_components(namespace))
        except LookupError:
            return []

    write_components(sys.stdout, fetch, name, output_format)


def print_configurations(client: _DaprClient, name: str, namespace: str, output_format: str) -> None:
    """Print the Dapr configurations of a namespace to standard output."""

    def fetch() -> list[Configuration]:
        try:
            return list(client.list_configurations(namespace))
        except LookupError:
            return []

    write_configurations(sys.stdout, fetch, name, output_format)