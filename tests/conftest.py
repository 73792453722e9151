"""Shared pytest fixtures: sample images written to ``tmp_path``."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import piexif
import pytest
from PIL import Image


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a solid-color image and returning its path."""

    def _make(
        name: str = "sample.png",
        size: tuple = (400, 200),
        mode: str = "RGB",
        directory: Optional[Path] = None,
        exif: Optional[bytes] = None,
    ) -> Path:
        path = (directory or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        color = (200, 40, 40, 255)[: len(mode)] if mode in ("RGB", "RGBA") else 128
        img = Image.new(mode, size, color)
        params = {"exif": exif} if exif else {}
        img.save(path, **params)
        return path

    return _make


@pytest.fixture
def exif_bytes() -> bytes:
    data = {
        "0th": {piexif.ImageIFD.Make: b"Renovo", piexif.ImageIFD.Model: b"Test"},
        "Exif": {
            piexif.ExifIFD.PixelXDimension: 400,
            piexif.ExifIFD.PixelYDimension: 200,
        },
    }
    return piexif.dump(data)


@pytest.fixture
def make_files(tmp_path: Path) -> Callable[..., list]:
    """Factory creating empty text files and returning their paths in order."""

    def _make(*names: str) -> list:
        paths = []
        for name in names:
            p = tmp_path / name
            p.write_text(name, encoding="utf-8")
            paths.append(p)
        return paths

    return _make
