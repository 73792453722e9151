"""Global configuration for the renovo batch rename and resize toolkit.

This module centralizes defaults and user-tunable settings for:
- recognizing image files and encoding resized outputs
- where presets and the operation history are stored
- default resize behavior and logging

All values can be overridden via CLI flags or direct imports.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


# Supported file extensions for images
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp", ".tiff", ".tif"}

# Quality used for JPEG output when the resize config leaves it unset
DEFAULT_JPEG_QUALITY = 85

# Appended to the output stem unless the resize overwrites its source
RESIZED_SUFFIX = "_resized"

RESAMPLE_METHOD = "lanczos"  # one of {nearest, bilinear, bicubic, lanczos}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _default_data_dir() -> Path:
    override = os.environ.get("RENOVO_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".renovo"


@dataclass
class Paths:
    """Storage locations.

    Attributes
    ----------
    data_dir
        Directory holding the preset/history database. Honors ``RENOVO_HOME``.
    db_name
        File name of the SQLite database inside ``data_dir``.
    """

    data_dir: Path = field(default_factory=_default_data_dir)
    db_name: str = "renovo.db"

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


@dataclass
class Behavior:
    """Processing behavior defaults.

    Attributes
    ----------
    resize_mode
        Default resize mode. One of: 'fit', 'fill', 'exact'.
    output_format
        Default output format, or 'same' to keep the source format.
    resample
        Resampling method for resizing operations. One of: 'nearest',
        'bilinear', 'bicubic', 'lanczos'.
    keep_metadata
        If True, carry EXIF metadata over to resized outputs where possible.
    log_level
        Logging level used by the CLI when ``--verbose`` is not given.
    """

    resize_mode: str = "fit"
    output_format: str = "same"
    resample: str = RESAMPLE_METHOD
    keep_metadata: bool = True
    log_level: str = "WARNING"


@dataclass
class ProjectConfig:
    """Top-level configuration container.

    Attributes
    ----------
    paths
        Storage locations.
    behavior
        Execution-time defaults.
    """

    paths: Paths = field(default_factory=Paths)
    behavior: Behavior = field(default_factory=Behavior)


# Default singleton-style config instance used by CLI unless overridden
CONFIG = ProjectConfig()
