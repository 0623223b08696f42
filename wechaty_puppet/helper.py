"""Small utilities: a bounded task runner, base64 sizing, file checks and HTTP fetches."""

from __future__ import annotations

import os
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

DEFAULT_WORKER_NUM = (os.cpu_count() or 1) * 2
"""Default number of worker threads: twice the number of processors."""

HTTP_TIMEOUT = 5.0
"""Seconds an HTTP request may take before it fails."""

Task = Callable[[], Any]


@dataclass
class AsyncResult:
    """Outcome of one task: its return value, or the exception it raised."""

    value: Any = None
    error: BaseException | None = None


class Async:
    """Runs queued tasks on a bounded pool of threads."""

    def __init__(self, max_workers: int = DEFAULT_WORKER_NUM) -> None:
        self.max_workers = max_workers if max_workers > 0 else DEFAULT_WORKER_NUM
        self._tasks: list[Task] = []

    def add_task(self, task: Task) -> None:
        """Queue a callable taking no arguments."""
        self._tasks.append(task)

    def results(self) -> list[AsyncResult]:
        """Run every queued task and return their results in the order queued.

        Exceptions raised by tasks are captured in the results. The queue is
        emptied afterwards.
        """
        tasks, self._tasks = self._tasks, []
        if not tasks:
            return []
        workers = min(len(tasks), self.max_workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(_run_task, tasks))


def _run_task(task: Task) -> AsyncResult:
    try:
        return AsyncResult(value=task())
    except Exception as exc:  # noqa: BLE001 - captured for the caller
        return AsyncResult(error=exc)


def base64_orig_length(data: str) -> int:
    """Return the number of bytes that a base64 string decodes to."""
    length = len(data)
    padding = 0
    if length >= 2:
        if data[-1] == "=":
            padding += 1
        if data[-2] == "=":
            padding += 1
        length -= padding
    return (length * 3 - padding) // 4


def file_exists(path: str | os.PathLike[str]) -> bool:
    """True unless the path is known not to exist."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True


def http_get(
    url: str,
    headers: Mapping[str, str | Sequence[str]] | None = None,
) -> bytes:
    """Fetch a URL with GET and return the response body, whatever the status."""
    request = urllib.request.Request(url, method="GET")
    for name, value in (headers or {}).items():
        if isinstance(value, str):
            request.add_header(name, value)
        else:
            request.add_header(name, ", ".join(value))
    try:
        with urllib.request.urlopen(request, timeout=HTTP_TIMEOUT) as response:
            return response.read()
    except urllib.error.HTTPError as exc:
        with exc:
            return exc.read()