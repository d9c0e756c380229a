from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any, Callable

import pytest


def _markexpr_allows(config: pytest.Config, marker_name: str) -> bool:
    """
    Return True if the user's `-m` expression *mentions* marker_name.
    """
    expr = getattr(config.option, "markexpr", "") or ""
    return marker_name in expr


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Skip concurrency tests unless explicitly selected with `-m concurrency`.
    """
    if _markexpr_allows(config, "concurrency"):
        return

    skip_concurrency = pytest.mark.skip(
        reason="Skipped: run with `pytest -m concurrency` to execute concurrency invariant tests."
    )
    for item in items:
        if item.get_closest_marker("concurrency") is not None:
            item.add_marker(skip_concurrency)


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return int(raw)


@pytest.fixture
def threads() -> int:
    return env_int("SMIDGEN_CONCURRENCY_THREADS", 8)


@pytest.fixture
def ops_per_thread() -> int:
    return env_int("SMIDGEN_CONCURRENCY_OPS", 25)


@dataclass(frozen=True)
class WorkerError:
    worker_id: int
    exc_type: str
    message: str


def _run_threads(count: int, fn: Callable[..., Any], **fn_kwargs: Any) -> list[Any]:
    """
    Start ``count`` threads behind one barrier, each calling
    ``fn(worker_id=..., **fn_kwargs)``. Fails the test with every worker's
    error if any of them raised; otherwise returns their results in worker order.
    """
    barrier = threading.Barrier(count)
    results: list[Any] = [None] * count
    errors: list[WorkerError] = []
    errors_lock = threading.Lock()

    def _entrypoint(worker_id: int) -> None:
        try:
            barrier.wait()
            results[worker_id] = fn(worker_id=worker_id, **fn_kwargs)
        except BaseException as exc:  # noqa: BLE001 - reported below
            with errors_lock:
                errors.append(WorkerError(worker_id, type(exc).__name__, str(exc)))

    workers = [
        threading.Thread(target=_entrypoint, args=(wid,), name=f"worker-{wid}")
        for wid in range(count)
    ]
    for t in workers:
        t.start()
    for t in workers:
        t.join(timeout=120)

    hung = [t.name for t in workers if t.is_alive()]
    if errors or hung:
        details = [f"worker {e.worker_id}: {e.exc_type}: {e.message}" for e in errors]
        details += [f"{name} did not finish" for name in hung]
        pytest.fail("Worker failures:\n" + "\n".join(details), pytrace=False)
    return results


@pytest.fixture
def run_threads() -> Callable[..., list[Any]]:
    return _run_threads
