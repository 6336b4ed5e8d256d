from __future__ import annotations

import json
from pathlib import Path
from typing import Any

SBOM_SUFFIX = "_syft_sbom.json"


def sanitize_target(target: str) -> str:
    return target.replace("/", "_")


def sbom_file_name(target: str) -> str:
    return f"{sanitize_target(target)}{SBOM_SUFFIX}"


def as_text(value: Any) -> str:
    # null / missing fields render as empty cells
    if value is None:
        return ""
    return str(value)


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
