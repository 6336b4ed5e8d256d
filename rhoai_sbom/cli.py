from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from sbom_tools.base import Scanner
from sbom_tools.extraction import generate
from sbom_tools.report import ensure_report
from sbom_tools.utils import write_json

from .config import (
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_PACKAGE_FILTERS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POOL_SIZE,
    DEFAULT_RHOAI_VERSION,
    RunConfig,
    default_syft_bin,
    default_tmp_dir,
)
from .errors import ConfigError, ErrorLog, MissingToolError
from .job_pool import BoundedJobPool, JobHandle
from .orchestrator import ScanOrchestrator, ScanResultStore, TargetSource, wait_for_scans
from .preflight import validate_required_binaries
from .runners.syft_runner import SyftScanner
from .targets import RemoteImageList

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunSummary:
    launched: int
    failed: int
    report_rows: int | None


def _resolve_input_path(p: str) -> Path:
    return Path(p).expanduser().resolve()


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {n}")
    return n


def _positive_float(value: str) -> float:
    try:
        n = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {value}")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="rhoai-sbom-report",
        description="Generate report for RHOAI SBOM from image manifests.",
    )
    p.add_argument(
        "-p",
        "--pool-size",
        type=_positive_int,
        default=DEFAULT_POOL_SIZE,
        help=f"Pool size for background jobs (Default: {DEFAULT_POOL_SIZE})",
    )
    p.add_argument(
        "-v",
        "--version",
        dest="rhoai_version",
        default=DEFAULT_RHOAI_VERSION,
        help=f"Version of RHOAI to generate SBOM for (Default: {DEFAULT_RHOAI_VERSION})",
    )
    p.add_argument(
        "-t",
        "--tmp-dir",
        default=None,
        help=f"Temporary directory to store OCI layers during SBOM scan (Default: {default_tmp_dir()})",
    )
    p.add_argument(
        "-o",
        "--output-dir",
        default=DEFAULT_OUTPUT_ROOT,
        help=f"Directory for SBOMs and report.csv (Default: {DEFAULT_OUTPUT_ROOT}/)",
    )
    p.add_argument(
        "--package",
        dest="packages",
        action="append",
        default=None,
        help=f"Package name substring to report on, repeatable (Default: {', '.join(DEFAULT_PACKAGE_FILTERS)})",
    )
    p.add_argument(
        "--poll-interval",
        type=_positive_float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Seconds between job pool capacity checks (Default: {DEFAULT_POLL_INTERVAL:g})",
    )
    p.add_argument("--debug", action="store_true", help="Print debug output to stderr")
    return p


def config_from_args(args: argparse.Namespace) -> RunConfig:
    return RunConfig(
        pool_size=args.pool_size,
        rhoai_version=args.rhoai_version.strip(),
        output_root=_resolve_input_path(args.output_dir),
        tmp_dir=_resolve_input_path(args.tmp_dir) if args.tmp_dir else None,
        poll_interval=args.poll_interval,
        package_filters=tuple(args.packages) if args.packages else DEFAULT_PACKAGE_FILTERS,
        syft_bin=default_syft_bin(),
    )


def _write_scan_details(config: RunConfig, handles: list[JobHandle]) -> None:
    details = {
        "rhoaiVersion": config.rhoai_version,
        "scanDir": str(config.scan_dir),
        "poolSize": config.pool_size,
        "launched": len(handles),
        "completed": sum(1 for h in handles if not h.failed),
        "failed": [{"target": h.target, "error": str(h.error)} for h in handles if h.failed],
    }
    write_json(config.output_root / f"{config.tag}_scan_details.json", details)


def run(
    config: RunConfig,
    errors: ErrorLog,
    *,
    scanner: Scanner | None = None,
    target_source: TargetSource | None = None,
) -> RunSummary:
    """Scan every image of the release, wait for all of them, then build the report."""
    log.debug("_BACKGROUND_JOB_POOL: %s", config.pool_size)
    print("Starting to generate report...")

    pool = BoundedJobPool(config.pool_size, poll_interval=config.poll_interval)
    store = ScanResultStore(config.output_root, errors)
    orchestrator = ScanOrchestrator(
        pool,
        store,
        scanner or SyftScanner(config.syft_bin, tmp_dir=config.tmp_dir),
        errors,
        target_source=target_source or RemoteImageList(config.image_list_url),
    )

    handles: list[JobHandle] = []
    handles.extend(orchestrator.run(config.rhoai_version))

    joined = wait_for_scans(pool, handles, errors)
    if joined:
        _write_scan_details(config, joined)

    written: int | None = None
    if config.scan_dir.is_dir():
        rows = generate(config.scan_dir, config.package_filters, errors)
        written = ensure_report(config.report_path, rows, errors)
    else:
        # no SBOMs for this release yet; an empty report would block the next run
        errors.add("generate_report", f"no SBOMs in {config.scan_dir}, report not generated")
    return RunSummary(
        launched=len(joined),
        failed=sum(1 for h in joined if h.failed),
        report_rows=written,
    )


def _configure_logging(debug: bool) -> None:
    if debug or os.environ.get("RHOAI_SBOM_DEBUG"):
        logging.basicConfig(level=logging.DEBUG, format="DEBUG::%(name)s: %(message)s", stream=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(list(argv))
    _configure_logging(bool(args.debug))

    errors = ErrorLog()
    try:
        config = config_from_args(args)
    except ConfigError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        validate_required_binaries(errors, (config.syft_bin,))
    except MissingToolError:
        errors.print_errors()
        return 1

    try:
        run(config, errors)
    finally:
        # always show every collected warning, even if the run blew up
        errors.print_errors()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
