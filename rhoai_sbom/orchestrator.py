from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Sequence

from sbom_tools.base import Scanner
from sbom_tools.utils import sbom_file_name

from .errors import ErrorLog, InvalidTargetError, TargetListError
from .job_pool import BoundedJobPool, JobHandle
from .targets import drop_blank

log = logging.getLogger(__name__)

TargetSource = Callable[[str], Sequence[str]]


class ScanResultStore:
    """Scan documents on disk, one directory per release tag.

    A tag whose directory exists is considered done and is never scanned again.
    """

    def __init__(self, root: Path, errors: ErrorLog) -> None:
        self.root = root
        self.errors = errors
        self._claimed: set[Path] = set()

    def scan_dir(self, tag: str) -> Path:
        return self.root / tag

    def prepare(self, tag: str) -> Path | None:
        out_dir = self.scan_dir(tag)
        if out_dir.is_dir():
            self.errors.add("rhoai_sbom_generation", f"SBOM located in {out_dir} already exists")
            return None
        if out_dir.exists():
            self.errors.add("rhoai_sbom_generation", f"{out_dir} exists and is not a directory")
            return None
        out_dir.mkdir(parents=True, exist_ok=True)
        return out_dir

    def discard(self, tag: str) -> None:
        # only an untouched directory is removed; anything written stays
        out_dir = self.scan_dir(tag)
        if out_dir.is_dir() and not any(out_dir.iterdir()):
            out_dir.rmdir()

    @staticmethod
    def destination_for(scan_dir: Path, target: str) -> Path:
        return scan_dir / sbom_file_name(target)

    def claim(self, destination: Path) -> bool:
        if destination in self._claimed:
            self.errors.add("rhoai_sbom_generation", f"{destination.name} already scheduled in this run, skipping duplicate")
            return False
        self._claimed.add(destination)
        return True


class ScanOrchestrator:
    def __init__(
        self,
        pool: BoundedJobPool,
        store: ScanResultStore,
        scanner: Scanner,
        errors: ErrorLog,
        target_source: TargetSource | None = None,
    ) -> None:
        self.pool = pool
        self.store = store
        self.scanner = scanner
        self.errors = errors
        self.target_source = target_source

    def launch(self, target: str, destination: Path) -> JobHandle:
        if not target or not target.strip():
            raise InvalidTargetError("refusing to scan an empty target")

        def _job() -> Path:
            return self.scanner.scan(target, destination)

        handle = self.pool.admit(_job, target=target, destination=destination)
        print(f"Scanning {target}...")
        return handle

    def run(self, version: str, targets: Sequence[str] | None = None) -> list[JobHandle]:
        """Launch one scan per target for ``rhoai-<version>``.

        Returns the handles without waiting on them; the caller joins them
        once every scan of the run has been issued. When ``targets`` is None
        the list comes from ``target_source``.
        """
        tag = f"rhoai-{version}"
        out_dir = self.store.prepare(tag)
        if out_dir is None:
            return []

        if targets is None:
            if self.target_source is None:
                raise InvalidTargetError("no targets given and no target source configured")
            try:
                targets = self.target_source(version)
            except TargetListError as e:
                self.errors.add("rhoai_sbom_generation", str(e))
                self.store.discard(tag)
                return []

        images = drop_blank(targets)
        log.debug("IMAGE_LIST: %s", images)

        handles: list[JobHandle] = []
        for image in images:
            destination = self.store.destination_for(out_dir, image)
            if not self.store.claim(destination):
                continue
            handles.append(self.launch(image, destination))
        return handles


def wait_for_scans(pool: BoundedJobPool, handles: Sequence[JobHandle], errors: ErrorLog) -> list[JobHandle]:
    """Join every launched scan and record the ones that failed."""
    if not handles:
        return []
    print("Waiting for syft scan jobs...", end="", flush=True)

    def _progress(handle: JobHandle) -> None:
        log.debug("joined %r", handle)
        print(".", end="", flush=True)

    joined = pool.join_all(handles, on_join=_progress)
    print(" Done!")
    for handle in joined:
        if handle.failed:
            errors.add("wait_syft_scan_jobs", f"scan of {handle.target} failed: {handle.error}")
    return joined
