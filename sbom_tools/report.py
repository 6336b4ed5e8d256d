from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from .base import ReportRow

if TYPE_CHECKING:
    from rhoai_sbom.errors import ErrorLog

log = logging.getLogger(__name__)

REPORT_HEADER: tuple[str, ...] = (
    "Image",
    "Image Version",
    "Package Name",
    "Package Version",
    "Package Type",
    "Metadata",
    "Source",
)


def write_report(path: Path, rows: Iterable[ReportRow]) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8", newline="") as fh:
        # minimal quoting keeps plain values identical to a bare comma join
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerow(REPORT_HEADER)
        for row in rows:
            writer.writerow(row.as_tuple())
            count += 1
    return count


def ensure_report(path: Path, rows: Iterable[ReportRow], errors: ErrorLog) -> int | None:
    """Write the CSV report unless one is already there.

    Returns the number of data rows written, or None when an existing report
    was left untouched. ``rows`` is not consumed in that case.
    """
    if path.exists():
        errors.add("generate_report", f"Report located in {path} already exists")
        return None
    print("Generating report for RHOAI SBOM from image manifests...", end="", flush=True)
    count = write_report(path, rows)
    print(" Done!")
    log.debug("wrote %d rows to %s", count, path)
    return count
