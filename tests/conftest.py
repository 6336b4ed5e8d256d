"""Shared fixtures: an error log, canned syft documents and a fake scanner."""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any

import pytest

from rhoai_sbom.errors import ErrorLog, ScanFailedError


def syft_document(image: str, version: str | None, artifacts: list[dict[str, Any]]) -> dict[str, Any]:
    source: dict[str, Any] = {"name": image}
    if version is not None:
        source["version"] = version
    return {"source": source, "artifacts": artifacts}


def artifact(name: str, version: str = "1.0", type_: str = "python", metadata_type: str = "", purl: str | None = None) -> dict[str, Any]:
    return {
        "name": name,
        "version": version,
        "type": type_,
        "metadataType": metadata_type,
        "purl": purl if purl is not None else f"pkg:pypi/{name}@{version}",
    }


class FakeScanner:
    """Writes a canned document per target and records concurrency."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None, delay: float = 0.0, fail: set[str] | None = None) -> None:
        self.documents = documents or {}
        self.delay = delay
        self.fail = fail or set()
        self.calls: list[str] = []
        self.running = 0
        self.max_running = 0
        self._lock = threading.Lock()

    def scan(self, target: str, output_file: Path) -> Path:
        with self._lock:
            self.calls.append(target)
            self.running += 1
            self.max_running = max(self.max_running, self.running)
        try:
            if self.delay:
                time.sleep(self.delay)
            if target in self.fail:
                output_file.write_text("", encoding="utf-8")
                raise ScanFailedError(target, 1, "manifest unknown")
            doc = self.documents.get(target, syft_document(target, "1", []))
            output_file.write_text(json.dumps(doc), encoding="utf-8")
            return output_file
        finally:
            with self._lock:
                self.running -= 1


@pytest.fixture
def errors() -> ErrorLog:
    return ErrorLog()
