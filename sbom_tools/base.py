from __future__ import annotations

from dataclasses import astuple, dataclass
from pathlib import Path
from typing import Protocol


class DocumentParseError(ValueError):
    pass


@dataclass(frozen=True)
class Artifact:
    name: str
    version: str = ""
    type: str = ""
    metadata_type: str = ""
    purl: str = ""


@dataclass(frozen=True)
class ScanDocument:
    source_name: str
    source_version: str
    artifacts: tuple[Artifact, ...] = ()


@dataclass(frozen=True)
class ReportRow:
    image: str
    image_version: str
    package_name: str
    package_version: str
    package_type: str
    metadata: str
    source: str

    def as_tuple(self) -> tuple[str, ...]:
        return astuple(self)


class Scanner(Protocol):
    """Anything that writes a scan document for ``target`` to ``output_file``."""

    def scan(self, target: str, output_file: Path) -> Path: ...
