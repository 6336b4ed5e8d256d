from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from ..errors import ScanFailedError

log = logging.getLogger(__name__)

STDERR_TAIL = 2000


class SyftScanner:
    """Run ``syft scan <image> -q -o json`` with stdout redirected to a file."""

    def __init__(self, syft_bin: str = "syft", tmp_dir: Path | None = None) -> None:
        self.syft_bin = syft_bin
        self.tmp_dir = tmp_dir

    def command(self, target: str) -> list[str]:
        return [self.syft_bin, "scan", target, "-q", "-o", "json"]

    def _env(self) -> dict[str, str]:
        env = os.environ.copy()
        if self.tmp_dir is not None:
            # syft unpacks image layers under TMPDIR
            env["TMPDIR"] = str(self.tmp_dir)
        return env

    def scan(self, target: str, output_file: Path) -> Path:
        cmd = self.command(target)
        log.debug("COMMAND: %s > %s", " ".join(cmd), output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w", encoding="utf-8") as out:
            proc = subprocess.run(
                cmd,
                stdout=out,
                stderr=subprocess.PIPE,
                text=True,
                env=self._env(),
            )
        if proc.returncode != 0:
            raise ScanFailedError(target, proc.returncode, (proc.stderr or "").strip()[-STDERR_TAIL:])
        return output_file
