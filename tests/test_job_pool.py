from __future__ import annotations

import threading
import time

import pytest

from rhoai_sbom.errors import ConfigError
from rhoai_sbom.job_pool import BoundedJobPool, JobState


class _Probe:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.active = 0
        self.peak = 0
        self.started: list[int] = []

    def job(self, i: int, delay: float = 0.02):
        def _fn() -> int:
            with self.lock:
                self.started.append(i)
                self.active += 1
                self.peak = max(self.peak, self.active)
            time.sleep(delay)
            with self.lock:
                self.active -= 1
            return i

        return _fn


@pytest.mark.parametrize("size,count", [(1, 0), (1, 4), (2, 5), (3, 10), (5, 3)])
def test_never_exceeds_pool_size(size: int, count: int) -> None:
    pool = BoundedJobPool(size, poll_interval=0.001)
    probe = _Probe()
    handles = [pool.admit(probe.job(i), target=f"img{i}") for i in range(count)]
    joined = pool.join_all(handles)

    assert probe.peak <= size
    assert len(joined) == count
    assert all(h.state is JobState.COMPLETED for h in joined)
    assert sorted(h.result for h in joined) == list(range(count))


def test_pool_of_one_launches_in_admission_order() -> None:
    pool = BoundedJobPool(1, poll_interval=0.001)
    probe = _Probe()
    handles = [pool.admit(probe.job(i, delay=0.005)) for i in range(4)]
    pool.join_all(handles)
    assert probe.started == [0, 1, 2, 3]


def test_admit_returns_without_waiting_for_the_job() -> None:
    pool = BoundedJobPool(2, poll_interval=0.001)
    release = threading.Event()
    handle = pool.admit(release.wait)
    assert handle.state is JobState.RUNNING
    assert pool.active_count() == 1
    release.set()
    pool.join_all([handle])
    assert handle.done


@pytest.mark.parametrize("size", [0, -1])
def test_non_positive_size_is_a_config_error(size: int) -> None:
    with pytest.raises(ConfigError):
        BoundedJobPool(size)


def test_failed_job_is_recorded_not_raised() -> None:
    pool = BoundedJobPool(2, poll_interval=0.001)

    def _boom() -> None:
        raise RuntimeError("scanner crashed")

    bad = pool.admit(_boom, target="bad")
    good = pool.admit(lambda: "ok", target="good")
    pool.join_all([bad, good])

    assert bad.failed
    assert isinstance(bad.error, RuntimeError)
    assert good.state is JobState.COMPLETED
    assert good.result == "ok"


def test_join_all_reclaims_handles() -> None:
    pool = BoundedJobPool(2, poll_interval=0.001)
    handles = [pool.admit(lambda: None) for _ in range(3)]
    assert pool.tracked() == 3
    seen = []
    pool.join_all(handles, on_join=seen.append)
    assert pool.tracked() == 0
    assert pool.active_count() == 0
    assert seen == handles


def test_job_raising_system_exit_frees_its_slot() -> None:
    pool = BoundedJobPool(1, poll_interval=0.001)

    def _exit() -> None:
        raise SystemExit(3)

    bad = pool.admit(_exit, target="bad")
    bad.wait()
    assert bad.failed
    assert isinstance(bad.error, SystemExit)
    assert pool.active_count() == 0

    good = pool.admit(lambda: "ok", target="good")
    pool.join_all([bad, good])
    assert good.result == "ok"
