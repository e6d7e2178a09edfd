"""Pod model, label selectors and pod queries against a cluster client."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Protocol

NAMESPACE_ALL = ""
POD_RUNNING = "Running"

_LABEL_KEY = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_./]*[A-Za-z0-9])?$")


@dataclass
class ContainerState:
    """State of a container: waiting holds the reason, terminated the exit code."""

    waiting: str | None = None
    running: bool = False
    terminated: int | None = None


@dataclass
class ContainerStatus:
    state: ContainerState = field(default_factory=ContainerState)
    ready: bool = False


@dataclass
class Container:
    name: str = ""
    image: str = ""
    args: list[str] = field(default_factory=list)


@dataclass
class Pod:
    name: str
    namespace: str = "default"
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    creation_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    phase: str = ""
    containers: list[Container] = field(default_factory=list)
    container_statuses: list[ContainerStatus] = field(default_factory=list)


class KubeClient(Protocol):
    """What the package needs from a Kubernetes API client."""

    def list_pods(self, namespace: str, label_selector: str | None) -> list[Pod]:
        """Return pods in a namespace ("" for all) that match a label selector."""


def format_labels(labels: Mapping[str, str]) -> str:
    """Render labels as a selector string, keys sorted; "<none>" when empty."""
    if not labels:
        return "<none>"
    return ",".join(f"{key}={labels[key]}" for key in sorted(labels))


def _parse_selector(selector: str) -> list[tuple[str, str, str]]:
    requirements = []
    for raw in selector.split(","):
        term = raw.strip()
        if not term:
            continue
        if "!=" in term:
            key, value = term.split("!=", 1)
            op = "!="
        elif "==" in term:
            key, value = term.split("==", 1)
            op = "="
        elif "=" in term:
            key, value = term.split("=", 1)
            op = "="
        elif term.startswith("!"):
            key, value, op = term[1:], "", "!exists"
        else:
            key, value, op = term, "", "exists"
        key = key.strip()
        if not _LABEL_KEY.match(key):
            raise ValueError(f"unable to parse requirement: {term!r}")
        requirements.append((key, op, value.strip()))
    return requirements


def _matches(labels: Mapping[str, str], requirements: list[tuple[str, str, str]]) -> bool:
    for key, op, value in requirements:
        if op == "=" and labels.get(key) != value:
            return False
        if op == "!=" and labels.get(key) == value:
            return False
        if op == "exists" and key not in labels:
            return False
        if op == "!exists" and key in labels:
            return False
    return True


class InMemoryCluster:
    """A cluster held in memory, answering pod queries like the API server."""

    def __init__(self, *pods: Pod) -> None:
        self.pods: list[Pod] = list(pods)

    def add(self, pod: Pod) -> None:
        self.pods.append(pod)

    def list_pods(self, namespace: str, label_selector: str | None) -> list[Pod]:
        requirements = _parse_selector(label_selector) if label_selector else []
        return [
            pod
            for pod in self.pods
            if (namespace == NAMESPACE_ALL or pod.namespace == namespace) and _matches(pod.labels, requirements)
        ]


def _selector(label_selector: Mapping[str, str] | None) -> str | None:
    return format_labels(label_selector) if label_selector is not None else None


def list_pods_interface(client: KubeClient, label_selector: Mapping[str, str] | None) -> list[Pod]:
    """List matching pods across all namespaces."""
    return client.list_pods(NAMESPACE_ALL, _selector(label_selector))


def list_pods(client: KubeClient, namespace: str, label_selector: Mapping[str, str] | None) -> list[Pod]:
    """List matching pods in one namespace."""
    return client.list_pods(namespace, _selector(label_selector))


def check_pod_exists(
    client: KubeClient,
    namespace: str,
    label_selector: Mapping[str, str] | None,
    deploy_name: str,
) -> tuple[bool, str]:
    """Return whether a running pod of the deployment exists, and its namespace."""
    try:
        pods = client.list_pods(namespace, _selector(label_selector))
    except Exception:  # any failure to query means the pod cannot be confirmed
        return False, ""
    for pod in pods:
        if pod.phase == POD_RUNNING and pod.name.startswith(deploy_name):
            return True, pod.namespace
    return False, ""