from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Sequence

from .base import Artifact, DocumentParseError, ReportRow, ScanDocument
from .utils import as_text

if TYPE_CHECKING:
    from rhoai_sbom.errors import ErrorLog

log = logging.getLogger(__name__)


def _parse_artifact(item: Any) -> Artifact | None:
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    if not isinstance(name, str) or not name:
        return None
    return Artifact(
        name=name,
        version=as_text(item.get("version")),
        type=as_text(item.get("type")),
        metadata_type=as_text(item.get("metadataType")),
        purl=as_text(item.get("purl")),
    )


def parse_document(payload: Any) -> ScanDocument:
    """Normalise a syft JSON document.

    ``source.name`` / ``source.version`` may be missing and become empty
    strings. Artifact entries without a usable name cannot match any filter
    and are dropped.
    """
    if not isinstance(payload, dict):
        raise DocumentParseError("scan document is not a JSON object")
    artifacts = payload.get("artifacts")
    if artifacts is None:
        artifacts = []
    if not isinstance(artifacts, list):
        raise DocumentParseError("'artifacts' is not a list")

    source = payload.get("source")
    if not isinstance(source, dict):
        source = {}

    parsed: list[Artifact] = []
    for item in artifacts:
        art = _parse_artifact(item)
        if art is not None:
            parsed.append(art)
    return ScanDocument(
        source_name=as_text(source.get("name")),
        source_version=as_text(source.get("version")),
        artifacts=tuple(parsed),
    )


def load_document(path: Path) -> ScanDocument:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DocumentParseError(f"cannot read {path.name}: {e}") from e
    return parse_document(payload)


def match_artifacts(document: ScanDocument, package_filters: Sequence[str]) -> Iterator[ReportRow]:
    # filter-major order: an artifact matching two filters shows up twice
    for pkg in package_filters:
        for art in document.artifacts:
            if pkg not in art.name:
                continue
            yield ReportRow(
                image=document.source_name,
                image_version=document.source_version,
                package_name=art.name,
                package_version=art.version,
                package_type=art.type,
                metadata=art.metadata_type,
                source=art.purl,
            )


def generate(scan_dir: Path, package_filters: Sequence[str], errors: ErrorLog) -> Iterator[ReportRow]:
    """Yield report rows for every stored scan document under ``scan_dir``.

    Files are visited in name order. A file that does not parse is logged to
    ``errors`` and skipped; the remaining files are still processed.
    """
    if not scan_dir.is_dir():
        log.debug("scan directory %s does not exist", scan_dir)
        return
    for path in sorted(p for p in scan_dir.iterdir() if p.is_file()):
        try:
            document = load_document(path)
        except DocumentParseError as e:
            errors.add("generate_report", f"skipping {path}: {e}")
            continue
        log.debug("image %s: %d artifacts", document.source_name, len(document.artifacts))
        yield from match_artifacts(document, package_filters)
