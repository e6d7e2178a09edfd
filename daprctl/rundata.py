"""Removal of the deprecated local run-data state file."""

from __future__ import annotations

import os
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime

from filelock import FileLock, Timeout

RUN_DATA_FILE = "dapr-run-data.ldj"
RUN_DATA_LOCK_FILE = "dapr-run-data.lock"

_LOCK_ATTEMPTS = 10
_LOCK_RETRY_DELAY = 0.05


@dataclass
class RunData:
    """A record once kept for each locally running app."""

    dapr_run_id: str
    dapr_http_port: int
    dapr_grpc_port: int
    app_id: str
    app_port: int
    command: str
    created: datetime
    pid: int


def _acquire_lock() -> FileLock:
    lock = FileLock(os.path.join(tempfile.gettempdir(), RUN_DATA_LOCK_FILE))
    last_error: Timeout | None = None
    for _ in range(_LOCK_ATTEMPTS):
        try:
            lock.acquire(timeout=0)
            return lock
        except Timeout as exc:
            last_error = exc
            time.sleep(_LOCK_RETRY_DELAY)
    assert last_error is not None
    raise last_error


def delete_run_data_file() -> None:
    """Delete the deprecated run-data file from the temp directory, under its lock."""
    lock = _acquire_lock()
    try:
        os.remove(os.path.join(tempfile.gettempdir(), RUN_DATA_FILE))
    finally:
        lock.release()