"""Reading and writing a sidecar's metadata over its HTTP API."""

from __future__ import annotations

import http.client
import json
import os
import socket as _sock
import stat
import time
from typing import Any
from urllib.parse import urlsplit

RUNTIME_API_VERSION = "1.0"

_RETRY_MAX = 4
_RETRY_WAIT_MIN = 1.0
_RETRY_WAIT_MAX = 30.0


class _UnixHTTPConnection(http.client.HTTPConnection):
    """HTTP connection over a Unix domain socket."""

    def __init__(self, path: str, timeout: float | None = None) -> None:
        super().__init__("unix", timeout=timeout)
        self._path = path

    def connect(self) -> None:
        conn = _sock.socket(_sock.AF_UNIX, _sock.SOCK_STREAM)
        if self.timeout is not None:
            conn.settimeout(self.timeout)
        conn.connect(self._path)
        self.sock = conn


def _socket_path(directory: str, app_id: str, protocol: str) -> str:
    return os.path.join(directory, f"dapr-{app_id}-{protocol}.socket")


def _send(method: str, url: str, socket_path: str | None, body: bytes | None = None) -> tuple[int, bytes]:
    parts = urlsplit(url)
    if socket_path:
        conn: http.client.HTTPConnection = _UnixHTTPConnection(socket_path)
    else:
        conn = http.client.HTTPConnection(parts.hostname or "", parts.port)
    try:
        conn.request(method, parts.path or "/", body=body)
        response = conn.getresponse()
        return response.status, response.read()
    finally:
        conn.close()


def make_metadata_get_endpoint(http_port: int) -> str:
    if http_port == 0:
        return f"http://unix/v{RUNTIME_API_VERSION}/metadata"
    return f"http://127.0.0.1:{http_port}/v{RUNTIME_API_VERSION}/metadata"


def make_metadata_put_endpoint(http_port: int, key: str) -> str:
    if http_port == 0:
        return f"http://unix/v{RUNTIME_API_VERSION}/metadata/{key}"
    return f"http://127.0.0.1:{http_port}/v{RUNTIME_API_VERSION}/metadata/{key}"


def get(http_port: int, app_id: str, socket: str) -> Any:
    """Fetch the metadata of an app's sidecar as decoded JSON."""
    url = make_metadata_get_endpoint(http_port)
    socket_path = None
    if socket:
        info = os.stat(socket)
        socket_path = _socket_path(socket, app_id, "http") if stat.S_ISDIR(info.st_mode) else socket
    _, body = _send("GET", url, socket_path)
    return json.loads(body)


def _should_retry(status: int) -> bool:
    return status == 429 or (status >= 500 and status != 501)


def put(http_port: int, key: str, value: str, app_id: str, socket: str) -> None:
    """Set one metadata attribute on an app's sidecar, retrying transient failures."""
    url = make_metadata_put_endpoint(http_port, key)
    socket_path = _socket_path(socket, app_id, "http") if socket else None
    body = value.encode("utf-8")
    last_error: Exception | None = None
    attempts = _RETRY_MAX + 1
    for attempt in range(attempts):
        try:
            status, _ = _send("PUT", url, socket_path, body)
        except (OSError, http.client.HTTPException) as exc:
            last_error = exc
        else:
            if not _should_retry(status):
                return
            last_error = None
        if attempt < _RETRY_MAX:
            time.sleep(min(_RETRY_WAIT_MAX, _RETRY_WAIT_MIN * 2**attempt))
    raise ConnectionError(f"PUT {url} giving up after {attempts} attempt(s)") from last_error