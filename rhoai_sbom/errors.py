from __future__ import annotations

import sys
from typing import Iterator, TextIO


class SbomReportError(Exception):
    """Base class for every error raised by the report tooling."""


class ConfigError(SbomReportError, ValueError):
    pass


class InvalidTargetError(ConfigError):
    pass


class MissingToolError(SbomReportError):
    def __init__(self, missing: tuple[str, ...]) -> None:
        super().__init__(f"required tools not installed: {', '.join(missing)}")
        self.missing = missing


class TargetListError(SbomReportError):
    pass


class ScanFailedError(SbomReportError):
    def __init__(self, target: str, returncode: int, stderr: str = "") -> None:
        msg = f"syft exited with status {returncode} for {target}"
        if stderr:
            msg += f": {stderr}"
        super().__init__(msg)
        self.target = target
        self.returncode = returncode
        self.stderr = stderr


class ErrorLog:
    """Append-only collection of non-fatal warnings for one run.

    Components append as they go; the driver prints everything once at the end
    so the warnings are not interleaved with progress output.
    """

    def __init__(self) -> None:
        self._messages: list[str] = []

    def add(self, where: str, message: str) -> None:
        self._messages.append(f"{where}: {message}")

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._messages))

    def print_errors(self, stream: TextIO | None = None) -> None:
        # printing does not drain; a second call prints the same list
        if not self._messages:
            return
        out = stream if stream is not None else sys.stderr
        out.write("\n\nERRORS:\n")
        for msg in self._messages:
            out.write(f"{msg}\n")
        out.flush()
