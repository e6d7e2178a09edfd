"""Listing of Dapr-enabled applications and retrieval of their sidecar logs."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import ClassVar, Iterable, Protocol, TextIO

from daprctl.output import format_timestamp, get_age
from daprctl.pods import KubeClient, Pod, list_pods

DAPRD_CONTAINER_NAME = "daprd"
APP_ID_ARG = "--app-id"
APP_PORT_ARG = "--app-port"
DEFAULT_NAMESPACE = "default"


@dataclass
class ListOutput:
    """One Dapr-enabled application found in the cluster."""

    HEADERS: ClassVar[tuple[str, ...]] = ("NAMESPACE", "APP ID", "APP PORT", "AGE", "CREATED")

    namespace: str = ""
    app_id: str = ""
    app_port: str = ""
    age: str = ""
    created: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "namespace": self.namespace,
            "appId": self.app_id,
            "appPort": self.app_port,
            "age": self.age,
            "created": self.created,
        }


class _LogClient(KubeClient, Protocol):
    def pod_logs(self, namespace: str, pod_name: str, container: str) -> Iterable[str]:
        """Return the log text of one container of a pod, in chunks."""


def _arg_pairs(args: list[str]) -> Iterable[tuple[str, str]]:
    return zip(args, args[1:])


def list_apps(client: KubeClient, namespace: str) -> list[ListOutput]:
    """Return every app with a Dapr sidecar, sorted by namespace descending."""
    apps = []
    for pod in list_pods(client, namespace, None):
        for container in pod.containers:
            if container.name != DAPRD_CONTAINER_NAME:
                continue
            entry = ListOutput()
            for arg, value in _arg_pairs(container.args):
                if arg == APP_PORT_ARG:
                    entry.app_port = value
                elif arg == APP_ID_ARG:
                    entry.app_id = value
            entry.namespace = pod.namespace
            entry.created = format_timestamp(pod.creation_timestamp)
            entry.age = get_age(pod.creation_timestamp)
            apps.append(entry)
    return sorted(apps, key=lambda app: app.namespace, reverse=True)


def _find_in(pods: Iterable[Pod], app_id: str) -> str | None:
    for pod in pods:
        for container in pod.containers:
            if container.name != DAPRD_CONTAINER_NAME:
                continue
            for arg, value in _arg_pairs(container.args):
                if arg == APP_ID_ARG and value == app_id:
                    return pod.name
    return None


def _not_found(app_id: str, namespace: str) -> LookupError:
    return LookupError(f"could not get logs. Please check app-id ({app_id}) and namespace ({namespace})")


def find_app_pod(client: KubeClient, app_id: str, namespace: str) -> str:
    """Return the name of the first pod whose sidecar runs the given app id."""
    namespace = namespace or DEFAULT_NAMESPACE
    name = _find_in(list_pods(client, namespace, None), app_id)
    if name is None:
        raise _not_found(app_id, namespace)
    return name


def logs(
    client: _LogClient,
    app_id: str,
    pod_name: str,
    namespace: str,
    stream: TextIO | None = None,
) -> None:
    """Copy the sidecar logs of an app (or of a named pod) to a stream."""
    out = stream if stream is not None else sys.stdout
    namespace = namespace or DEFAULT_NAMESPACE
    try:
        pods = list_pods(client, namespace, None)
    except Exception as exc:
        raise RuntimeError(f"could not get logs {exc}") from exc

    if not pod_name:
        found = _find_in(pods, app_id)
        if found is None:
            raise _not_found(app_id, namespace)
        pod_name = found

    try:
        chunks = client.pod_logs(namespace, pod_name, DAPRD_CONTAINER_NAME)
    except Exception as exc:
        raise RuntimeError(f"could not get logs. Please check pod-name ({pod_name}). Error - {exc}") from exc
    try:
        for chunk in chunks:
            out.write(chunk)
    except OSError as exc:
        raise RuntimeError(f"could not get logs {exc}") from exc