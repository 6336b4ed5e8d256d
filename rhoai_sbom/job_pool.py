from __future__ import annotations

import enum
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Iterable

from .config import DEFAULT_POLL_INTERVAL
from .errors import ConfigError

log = logging.getLogger(__name__)


class JobState(enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({JobState.COMPLETED, JobState.FAILED})


class JobHandle:
    """One admitted scan job.

    The pool owns the handle while it runs; ``BoundedJobPool.join_all``
    hands it back once the job has reached a terminal state.
    """

    def __init__(self, job_fn: Callable[[], Any], *, target: str = "", destination: Path | None = None) -> None:
        self.target = target
        self.destination = destination
        self.state = JobState.PENDING
        self.result: Any = None
        self.error: BaseException | None = None
        self._fn = job_fn
        self._thread = threading.Thread(target=self._run, name=f"scan-{target or 'job'}", daemon=True)

    def __repr__(self) -> str:
        return f"JobHandle(target={self.target!r}, state={self.state.value})"

    def _run(self) -> None:
        try:
            self.result = self._fn()
        except Exception as e:  # recorded on the handle, the pool only tracks liveness
            log.debug("job %s failed: %s", self.target, e)
            self.error = e
            self.state = JobState.FAILED
        except BaseException as e:
            # SystemExit and friends end only this worker thread
            self.error = e
        else:
            self.state = JobState.COMPLETED
        finally:
            # a thread that is gone must never count as running
            if self.state is JobState.RUNNING:
                self.state = JobState.FAILED

    def _start(self) -> None:
        self.state = JobState.RUNNING
        self._thread.start()

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def failed(self) -> bool:
        return self.state is JobState.FAILED

    def wait(self) -> JobHandle:
        if self.state is not JobState.PENDING:
            self._thread.join()
        return self


class BoundedJobPool:
    """Run at most ``size`` jobs at once on background threads.

    Admission is poll based: ``admit`` re-checks the number of running jobs
    every ``poll_interval`` seconds until there is room. Worst-case admission
    latency is therefore one poll interval.
    """

    def __init__(self, size: int, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        if isinstance(size, bool) or not isinstance(size, int) or size < 1:
            raise ConfigError(f"job pool size must be >= 1, got {size!r}")
        if poll_interval <= 0:
            raise ConfigError(f"poll interval must be positive, got {poll_interval!r}")
        self.size = size
        self.poll_interval = poll_interval
        self._lock = threading.Lock()
        self._jobs: list[JobHandle] = []

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for h in self._jobs if h.state is JobState.RUNNING)

    def admit(self, job_fn: Callable[[], Any], *, target: str = "", destination: Path | None = None) -> JobHandle:
        """Block until there is capacity, then start ``job_fn`` and return its handle."""
        while self.active_count() >= self.size:
            time.sleep(self.poll_interval)
        handle = JobHandle(job_fn, target=target, destination=destination)
        with self._lock:
            # counted as running before the thread exists so the next poll sees it
            handle._start()
            self._jobs.append(handle)
        log.debug("admitted %s (%d/%d running)", target, self.active_count(), self.size)
        return handle

    def join_all(self, handles: Iterable[JobHandle], on_join: Callable[[JobHandle], None] | None = None) -> list[JobHandle]:
        joined: list[JobHandle] = []
        for handle in handles:
            handle.wait()
            if on_join is not None:
                on_join(handle)
            joined.append(handle)
        with self._lock:
            self._jobs = [h for h in self._jobs if h not in joined]
        return joined

    def tracked(self) -> int:
        """Jobs admitted but not yet reclaimed by ``join_all``."""
        with self._lock:
            return len(self._jobs)
