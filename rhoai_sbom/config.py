from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

DEFAULT_POOL_SIZE = 2
DEFAULT_RHOAI_VERSION = "2.14"
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_OUTPUT_ROOT = "output"
DEFAULT_PACKAGE_FILTERS: tuple[str, ...] = ("torch", "cuda", "vllm", "rocm")

IMAGE_LIST_URL = (
    "https://raw.githubusercontent.com/red-hat-data-services/"
    "rhoai-disconnected-install-helper/main/rhoai-{version}.md"
)

REPORT_FILE_NAME = "report.csv"


def default_syft_bin() -> str:
    # deployments without syft on PATH can point at a specific binary
    return os.environ.get("SYFT_BIN") or "syft"


def default_tmp_dir() -> Path:
    return Path(tempfile.gettempdir())


@dataclass(frozen=True)
class RunConfig:
    pool_size: int = DEFAULT_POOL_SIZE
    rhoai_version: str = DEFAULT_RHOAI_VERSION
    output_root: Path = Path(DEFAULT_OUTPUT_ROOT)
    tmp_dir: Path | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    package_filters: tuple[str, ...] = DEFAULT_PACKAGE_FILTERS
    syft_bin: str = "syft"
    image_list_url: str = IMAGE_LIST_URL

    def __post_init__(self) -> None:
        if isinstance(self.pool_size, bool) or not isinstance(self.pool_size, int) or self.pool_size < 1:
            raise ConfigError(f"pool size must be a positive integer, got {self.pool_size!r}")
        if not self.rhoai_version or not self.rhoai_version.strip():
            raise ConfigError("RHOAI version must not be empty")
        if self.rhoai_version != self.rhoai_version.strip():
            raise ConfigError(f"RHOAI version has surrounding whitespace: {self.rhoai_version!r}")
        if self.poll_interval <= 0:
            raise ConfigError(f"poll interval must be positive, got {self.poll_interval!r}")
        if not self.package_filters or any(not p for p in self.package_filters):
            raise ConfigError("package filters must be non-empty strings")

    @property
    def tag(self) -> str:
        return f"rhoai-{self.rhoai_version}"

    @property
    def scan_dir(self) -> Path:
        return self.output_root / self.tag

    @property
    def report_path(self) -> Path:
        return self.output_root / REPORT_FILE_NAME
