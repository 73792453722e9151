"""I/O utilities and helpers for renaming and image processing.

This module provides helpers to decompose and move paths, enumerate and
describe directory contents, open and save images with optional EXIF
preservation, and map resampling method names to Pillow constants.
"""

from __future__ import annotations

import errno
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Generator, Iterable, List, Optional, Tuple

from PIL import Image

from config import IMAGE_EXTENSIONS
from .rename import split_extension

logger = logging.getLogger(__name__)


@dataclass
class DirEntry:
    """One visible entry of a directory listing."""

    name: str
    path: Path
    is_dir: bool
    ext: str = ""
    size: int = 0


@dataclass
class FileInfo:
    """Stat-based metadata for a file."""

    path: Path
    name: str
    ext: str
    size_bytes: int
    size_label: str


def split_name(path: Path) -> Tuple[Path, str, str]:
    """Decompose a path into directory, base name and extension.

    Parameters
    ----------
    path
        File path.

    Returns
    -------
    tuple
        ``(directory, stem, extension)``; the extension keeps its leading
        dot and is empty when the name has none.
    """

    path = Path(path)
    stem, ext = split_extension(path.name)
    return path.parent, stem, ext


def is_image_path(path: Path) -> bool:
    return split_extension(Path(path).name)[1].lower() in IMAGE_EXTENSIONS


def iter_image_paths(input_path: Path) -> Generator[Path, None, None]:
    """Yield image file paths from a file or directory.

    Parameters
    ----------
    input_path
        A path to a single image or a directory containing images.

    Yields
    ------
    Path
        Individual image file paths.
    """

    path = Path(input_path)
    if path.is_file():
        if is_image_path(path):
            yield path
        return
    if path.is_dir():
        for p in sorted(path.iterdir()):
            if p.is_file() and is_image_path(p) and not p.name.startswith("."):
                yield p


def ensure_dir(path: Path) -> None:
    """Create a directory if it does not exist.

    Parameters
    ----------
    path
        Directory path to create.
    """

    Path(path).mkdir(parents=True, exist_ok=True)


def move_file(src: Path, dst: Path) -> None:
    """Atomically rename ``src`` to ``dst`` without replacing another file.

    A destination that is the same file as the source (e.g. a case-only
    rename on a case-insensitive filesystem) is allowed.

    Raises
    ------
    OSError
        The OS error for the failed move, or ``FileExistsError`` when ``dst``
        already holds a different file.
    """

    src, dst = Path(src), Path(dst)
    if os.path.lexists(dst) and not (dst.exists() and os.path.samefile(src, dst)):
        raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(dst))
    os.rename(src, dst)


def list_directory(path: Path) -> List[DirEntry]:
    """List a directory: visible sub-directories first, then visible files.

    Parameters
    ----------
    path
        Directory to list.

    Returns
    -------
    list
        Entries sorted by name within each group. Hidden (dot) entries are
        excluded.
    """

    dirs: List[DirEntry] = []
    files: List[DirEntry] = []
    with os.scandir(path) as it:
        for entry in it:
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                dirs.append(DirEntry(entry.name, Path(entry.path), is_dir=True))
                continue
            try:
                size = entry.stat().st_size
            except OSError:
                size = 0
            files.append(
                DirEntry(
                    entry.name,
                    Path(entry.path),
                    is_dir=False,
                    ext=split_extension(entry.name)[1].lower(),
                    size=size,
                )
            )
    dirs.sort(key=lambda e: e.name.lower())
    files.sort(key=lambda e: e.name.lower())
    return dirs + files


def get_file_infos(paths: Iterable[Path]) -> List[FileInfo]:
    """Stat each path; paths that cannot be stat'ed are skipped."""

    infos: List[FileInfo] = []
    for p in paths:
        p = Path(p)
        try:
            size = p.stat().st_size
        except OSError as exc:
            logger.debug("Skipping %s: %s", p, exc)
            continue
        infos.append(
            FileInfo(
                path=p,
                name=p.name,
                ext=split_extension(p.name)[1].lower(),
                size_bytes=size,
                size_label=format_bytes(size),
            )
        )
    return infos


def format_bytes(size: int) -> str:
    """Format a byte count with 1024-based units and no decimals.

    Examples
    --------
    >>> format_bytes(512)
    '512 B'
    >>> format_bytes(1536)
    '2 KB'
    """

    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.0f} {'KMGTPE'[exp]}B"


def load_image_with_exif(image_path: Path) -> Tuple[Image.Image, Optional[bytes]]:
    """Load an image fully into memory and return it with raw EXIF bytes.

    Parameters
    ----------
    image_path
        Path to the image file.

    Returns
    -------
    tuple
        A tuple of (PIL.Image, exif_bytes or None). The source file is closed
        before returning.
    """

    with Image.open(image_path) as img:
        img.load()
        exif_bytes = img.info.get("exif") or None
        return img.copy(), exif_bytes


# Pillow format names for the extensions we can write
_SAVE_FORMATS: Dict[str, str] = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".gif": "GIF",
    ".bmp": "BMP",
    ".tif": "TIFF",
    ".tiff": "TIFF",
    ".webp": "WEBP",
}

_EXIF_FORMATS = {"JPEG", "PNG", "TIFF", "WEBP"}


def save_format_for(dest_path: Path) -> Optional[str]:
    return _SAVE_FORMATS.get(split_extension(Path(dest_path).name)[1].lower())


def save_image(
    image: Image.Image,
    dest_path: Path,
    exif: Optional[bytes] = None,
    quality: Optional[int] = None,
) -> None:
    """Save an image to disk, optionally embedding EXIF metadata.

    Parameters
    ----------
    image
        PIL image to save.
    dest_path
        Destination path; its extension selects the encoder.
    exif
        EXIF bytes to embed, for formats that support them.
    quality
        JPEG quality. Other formats are written with encoder defaults.
    """

    dest_path = Path(dest_path)
    fmt = save_format_for(dest_path)

    params = {}
    if exif and fmt in _EXIF_FORMATS:
        params["exif"] = exif

    if fmt == "JPEG":
        if image.mode not in ("RGB", "L", "CMYK"):
            image = image.convert("RGB")
        if quality:
            params["quality"] = quality

    image.save(dest_path, format=fmt, **params)


def map_resample(name: str) -> int:
    """Map a resample name to a Pillow constant.

    Parameters
    ----------
    name
        One of 'nearest', 'bilinear', 'bicubic', 'lanczos'.

    Returns
    -------
    int
        Pillow resampling constant.
    """

    name_lower = (name or "").lower()
    if name_lower == "nearest":
        return Image.NEAREST
    if name_lower == "bilinear":
        return Image.BILINEAR
    if name_lower == "bicubic":
        return Image.BICUBIC
    return Image.LANCZOS
