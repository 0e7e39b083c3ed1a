"""Filesystem helpers for CLI runs and record storage."""

from __future__ import annotations

import re
from pathlib import Path

TEXT_SUFFIXES = (".txt", ".md")
RECORD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def is_valid_record_id(record_id: str) -> bool:
    return bool(RECORD_ID_PATTERN.match(record_id))


def discover_text_paths(input_path: Path, max_files: int | None = None) -> list[Path]:
    if input_path.is_file():
        paths = [input_path] if input_path.suffix.lower() in TEXT_SUFFIXES else []
    else:
        paths = sorted(
            path
            for path in input_path.rglob("*")
            if path.is_file() and path.suffix.lower() in TEXT_SUFFIXES
        )

    if max_files is not None:
        return paths[:max_files]
    return paths


def build_record_path(
    output_root: Path,
    category: str,
    record_id: str,
    new_suffix: str,
) -> Path:
    if not is_valid_record_id(record_id):
        raise ValueError(f"Invalid record id: {record_id!r}")
    return output_root / category / f"{record_id}{new_suffix}"
