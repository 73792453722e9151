"""Per-item result records returned by the batch helpers."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union


class Status(str, Enum):
    PREVIEW = "preview"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class RenameResult:
    """Outcome of renaming (or previewing the rename of) one file.

    ``warnings`` lists rule steps that were skipped as no-ops, such as an
    invalid regular expression.
    """

    old_path: Path
    new_path: Path
    old_name: str
    new_name: str
    status: Status = Status.SUCCESS
    error: str = ""
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "oldPath": str(self.old_path),
            "newPath": str(self.new_path),
            "oldName": self.old_name,
            "newName": self.new_name,
            "status": self.status.value,
            "error": self.error,
            "warnings": list(self.warnings),
        }


@dataclass
class ResizeResult:
    """Outcome of resizing one file."""

    old_path: Path
    old_name: str
    new_path: Optional[Path] = None
    new_name: str = ""
    status: Status = Status.SUCCESS
    error: str = ""
    original_width: int = 0
    original_height: int = 0
    output_width: int = 0
    output_height: int = 0
    original_size: int = 0
    output_size: int = 0

    def to_dict(self) -> dict:
        return {
            "oldPath": str(self.old_path),
            "newPath": str(self.new_path) if self.new_path else "",
            "oldName": self.old_name,
            "newName": self.new_name,
            "status": self.status.value,
            "error": self.error,
            "originalW": self.original_width,
            "originalH": self.original_height,
            "outputW": self.output_width,
            "outputH": self.output_height,
            "originalSize": self.original_size,
            "outputSize": self.output_size,
        }


BatchResult = Union[RenameResult, ResizeResult]


def summarize(results: Iterable[BatchResult]) -> Dict[str, int]:
    """Count results per status, e.g. ``{"success": 3, "error": 1, "preview": 0}``."""

    counts = Counter(r.status.value for r in results)
    return {s.value: counts.get(s.value, 0) for s in Status}
