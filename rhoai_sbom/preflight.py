from __future__ import annotations

import shutil
from typing import Iterable

from .errors import ErrorLog, MissingToolError

# The image list is fetched in-process, so only the scanner binary is external.
REQUIRED_BINARIES: tuple[str, ...] = ("syft",)


def validate_required_binaries(errors: ErrorLog, binaries: Iterable[str] = REQUIRED_BINARIES) -> None:
    """Fail before any work starts if a required executable is not on PATH."""
    missing: list[str] = []
    for binary in binaries:
        if shutil.which(binary) is None:
            errors.add("validate_required_binaries", f"{binary} is required but not installed")
            missing.append(binary)
    if missing:
        raise MissingToolError(tuple(missing))
