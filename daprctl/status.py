"""Health and version status of the Dapr control plane running in a cluster."""

from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import ClassVar

from daprctl.console import warning_status_event
from daprctl.output import format_timestamp, get_age
from daprctl.pods import KubeClient, list_pods_interface

OPERATOR_NAME = "dapr-operator"

CONTROL_PLANE_LABELS: tuple[str, ...] = (
    "dapr-operator",
    "dapr-sentry",
    "dapr-placement",  # kept for clusters running releases older than 1.0
    "dapr-placement-server",
    "dapr-sidecar-injector",
    "dapr-dashboard",
)


@dataclass
class StatusOutput:
    """Status of one named control-plane service."""

    HEADERS: ClassVar[tuple[str, ...]] = (
        "NAME",
        "NAMESPACE",
        "HEALTHY",
        "STATUS",
        "REPLICAS",
        "VERSION",
        "AGE",
        "CREATED",
    )

    name: str = ""
    namespace: str = ""
    healthy: str = ""
    status: str = ""
    replicas: int = 0
    version: str = ""
    age: str = ""
    created: str = ""


def _label_status(client: KubeClient, label: str) -> StatusOutput | None:
    try:
        pods = list_pods_interface(client, {"app": label})
    except Exception as exc:  # a failing query only hides this one service
        warning_status_event(sys.stdout, "Failed to get status for %s: %s", label, str(exc))
        return None
    if not pods:
        return None

    first = pods[0]
    image = first.containers[0].image if first.containers else ""
    # The version is the image tag: <image>:<version> or <image>:<version>-<variant>.
    version = image[image.rfind(":") + 1 :]

    status = ""
    healthy = "False"
    running = True
    first_terminated = bool(first.container_statuses) and first.container_statuses[0].state.terminated is not None
    for pod in pods:
        statuses = pod.container_statuses
        if not statuses:
            status = pod.phase
        elif statuses[0].state.waiting is not None:
            status = f"Waiting ({statuses[0].state.waiting})"
        elif first_terminated:
            status = "Terminated"

        if not statuses or not statuses[0].state.running:
            running = False
            break
        if statuses[0].ready:
            healthy = "True"

    if running:
        status = "Running"

    return StatusOutput(
        name=label,
        namespace=first.namespace,
        healthy=healthy,
        status=status,
        replicas=len(pods),
        version=version,
        age=get_age(first.creation_timestamp),
        created=format_timestamp(first.creation_timestamp),
    )


class StatusClient:
    """Collects the status of the Dapr control-plane services."""

    def __init__(self, client: KubeClient | None = None) -> None:
        self.client = client

    def status(self) -> list[StatusOutput]:
        """Return the status of every control-plane service that has pods."""
        client = self.client
        if client is None:
            raise RuntimeError("kubernetes client not initialized")
        with ThreadPoolExecutor(max_workers=len(CONTROL_PLANE_LABELS)) as pool:
            results = list(pool.map(lambda label: _label_status(client, label), CONTROL_PLANE_LABELS))
        return [result for result in results if result is not None]


def get_dapr_resources_status(client: KubeClient) -> list[StatusOutput]:
    """Return control-plane status, raising if Dapr is not installed."""
    status = StatusClient(client).status()
    if not status:
        raise RuntimeError("dapr is not installed in your cluster")
    return status


def get_dapr_version(status: list[StatusOutput]) -> str:
    """Return the version reported by the operator service, or an empty string."""
    version = ""
    for entry in status:
        if entry.name == OPERATOR_NAME:
            version = entry.version
    return version


def get_dapr_namespace(client: KubeClient) -> str:
    """Return the namespace Dapr is installed in."""
    return get_dapr_resources_status(client)[0].namespace