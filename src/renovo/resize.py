"""Image resize engine.

Decodes one source image, resamples it according to a :class:`ResizeConfig`,
and writes the encoded result. The geometric helpers (fit, single-dimension
scale, center-crop fill, exact stretch) are also usable on their own.

Derived dimensions are rounded half-up and never drop below one pixel.
"""

from __future__ import annotations

import logging
import os
import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

import piexif
from PIL import Image, UnidentifiedImageError

from config import DEFAULT_JPEG_QUALITY, RESAMPLE_METHOD, RESIZED_SUFFIX
from .errors import ItemIOError, ValidationError
from .io_utils import (
    ensure_dir,
    load_image_with_exif,
    map_resample,
    save_format_for,
    save_image,
    split_name,
)
from .results import ResizeResult

logger = logging.getLogger(__name__)

# Pillow plugins report malformed or truncated data with any of these
_DECODE_ERRORS = (
    OSError,
    UnidentifiedImageError,
    Image.DecompressionBombError,
    ValueError,
    SyntaxError,
    EOFError,
    IndexError,
    struct.error,
    MemoryError,
)


class ResizeMode(Enum):
    FIT = "fit"  # Fit within bounds, maintain aspect ratio
    FILL = "fill"  # Center-crop to fill exact bounds
    EXACT = "exact"  # Stretch to exact size

    @classmethod
    def parse(cls, value: Union[str, "ResizeMode", None]) -> "ResizeMode":
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "fit").strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValidationError(
                f"Unknown resize mode '{value}'. Choose from: {choices}"
            ) from None


class OutputFormat(Enum):
    SAME = "same"
    JPG = "jpg"
    PNG = "png"
    GIF = "gif"
    BMP = "bmp"
    TIFF = "tiff"
    WEBP = "webp"

    @classmethod
    def parse(cls, value: Union[str, "OutputFormat", None]) -> "OutputFormat":
        """Normalize a user-supplied format name.

        Empty values mean "keep the source format"; ``jpeg`` and ``tif`` are
        accepted as aliases.
        """

        if isinstance(value, cls):
            return value
        name = (value or "").strip().lower().lstrip(".")
        name = {"": "same", "jpeg": "jpg", "tif": "tiff"}.get(name, name)
        try:
            return cls(name)
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValidationError(
                f"Unknown output format '{value}'. Choose from: {choices}"
            ) from None

    @property
    def extension(self) -> str:
        return "" if self is OutputFormat.SAME else f".{self.value}"


@dataclass
class ResizeConfig:
    """Resize settings applied uniformly to every file of a batch.

    Attributes
    ----------
    width, height
        Target dimensions. Zero (or negative) means unset; at least one must
        be positive.
    keep_aspect
        Informational only; ``mode`` decides the actual geometry.
    quality
        JPEG quality. Zero means the default (85).
    output_format
        Output encoding, or ``SAME`` to keep the source format.
    mode
        Fit within bounds, fill (center crop) or exact stretch.
    output_dir
        Destination directory. None writes beside the source.
    overwrite
        Replace the source in place (or drop the ``_resized`` suffix when the
        format changes).
    resample
        Resampling method name.
    keep_metadata
        Carry the source EXIF block over to the output.
    """

    width: int = 0
    height: int = 0
    keep_aspect: bool = True
    quality: int = 0
    output_format: OutputFormat = OutputFormat.SAME
    mode: ResizeMode = ResizeMode.FIT
    output_dir: Optional[Path] = None
    overwrite: bool = False
    resample: str = RESAMPLE_METHOD
    keep_metadata: bool = True

    def __post_init__(self) -> None:
        self.output_format = OutputFormat.parse(self.output_format)
        self.mode = ResizeMode.parse(self.mode)
        if self.output_dir is not None and str(self.output_dir) != "":
            self.output_dir = Path(self.output_dir)
        else:
            self.output_dir = None

    def validate(self) -> None:
        if self.width <= 0 and self.height <= 0:
            raise ValidationError("width and height cannot both be 0")


def _round(value: float) -> int:
    return max(1, int(value + 0.5))


def center_crop_to_aspect(image: Image.Image, target_aspect: float) -> Image.Image:
    """Center-crop an image to a target aspect ratio.

    Parameters
    ----------
    image
        Source image.
    target_aspect
        Desired aspect ratio expressed as width / height.

    Returns
    -------
    Image.Image
        Cropped image with the requested aspect ratio.
    """

    width, height = image.size
    current_aspect = width / height

    if abs(current_aspect - target_aspect) < 1e-6:
        return image

    if current_aspect > target_aspect:
        # Too wide: crop width
        new_width = _round(height * target_aspect)
        x0 = (width - new_width) // 2
        box = (x0, 0, x0 + new_width, height)
    else:
        # Too tall: crop height
        new_height = _round(width / target_aspect)
        y0 = (height - new_height) // 2
        box = (0, y0, width, y0 + new_height)

    return image.crop(box)


def resize_to_exact(
    image: Image.Image, size: Tuple[int, int], resample: str = RESAMPLE_METHOD
) -> Image.Image:
    """Resize image to an exact size using the provided resample method.

    Parameters
    ----------
    image
        Source image.
    size
        Target size (width, height).
    resample
        Resampling method name.

    Returns
    -------
    Image.Image
        Resized image.
    """

    if image.size == tuple(size):
        return image.copy()
    return image.resize(size, map_resample(resample))


def scaled_size(
    source: Tuple[int, int], width: int = 0, height: int = 0
) -> Tuple[int, int]:
    """Aspect-preserving size matching a single target dimension.

    ``width`` wins when both are positive.
    """

    src_w, src_h = source
    if width > 0:
        return width, _round(src_h * width / src_w)
    return _round(src_w * height / src_h), height


def fit_size(source: Tuple[int, int], max_w: int, max_h: int) -> Tuple[int, int]:
    """Largest aspect-preserving size inside ``max_w`` x ``max_h``.

    A source that already fits inside the box keeps its size.
    """

    src_w, src_h = source
    if src_w <= max_w and src_h <= max_h:
        return src_w, src_h
    if src_w / src_h > max_w / max_h:
        return max_w, _round(max_w * src_h / src_w)
    return _round(max_h * src_w / src_h), max_h


def scale_to_dimension(
    image: Image.Image, width: int = 0, height: int = 0, resample: str = RESAMPLE_METHOD
) -> Image.Image:
    return resize_to_exact(image, scaled_size(image.size, width, height), resample)


def fit_within(
    image: Image.Image, width: int, height: int, resample: str = RESAMPLE_METHOD
) -> Image.Image:
    """Resize to fit a bounding box, or match one dimension if the other is unset.

    Parameters
    ----------
    image
        Source image.
    width, height
        Bounding box. A non-positive value leaves that dimension free.
    resample
        Resampling method name.

    Returns
    -------
    Image.Image
        Resized image with the source aspect ratio.
    """

    if width > 0 and height > 0:
        return resize_to_exact(image, fit_size(image.size, width, height), resample)
    return scale_to_dimension(image, width, height, resample)


def fill_to_size(
    image: Image.Image, width: int, height: int, resample: str = RESAMPLE_METHOD
) -> Image.Image:
    """Center-crop to the target aspect then resize to exactly ``width`` x ``height``.

    If one dimension is unset it mirrors the other, producing a square.
    """

    if width <= 0:
        width = height
    if height <= 0:
        height = width
    cropped = center_crop_to_aspect(image, width / height)
    return resize_to_exact(cropped, (width, height), resample)


def stretch_to_size(
    image: Image.Image, width: int, height: int, resample: str = RESAMPLE_METHOD
) -> Image.Image:
    """Stretch to exactly ``width`` x ``height``; one unset dimension keeps aspect."""

    if width > 0 and height > 0:
        return resize_to_exact(image, (width, height), resample)
    return scale_to_dimension(image, width, height, resample)


def apply_mode(image: Image.Image, config: ResizeConfig) -> Image.Image:
    """Resample an image according to the config's mode and target size."""

    w, h = config.width, config.height
    if config.mode is ResizeMode.FILL:
        return fill_to_size(image, w, h, config.resample)
    if config.mode is ResizeMode.EXACT:
        return stretch_to_size(image, w, h, config.resample)
    return fit_within(image, w, h, config.resample)


def compute_output_path(source: Path, config: ResizeConfig) -> Path:
    """Derive where the resized version of ``source`` is written.

    Parameters
    ----------
    source
        Source image path.
    config
        Resize settings; ``overwrite``, ``output_format`` and ``output_dir``
        take part.

    Returns
    -------
    Path
        The source path itself when overwriting without a format change,
        otherwise ``<dir>/<stem>[_resized]<ext>``.
    """

    source = Path(source)
    if config.overwrite and config.output_format is OutputFormat.SAME:
        return source

    directory, stem, ext = split_name(source)
    out_ext = config.output_format.extension or ext.lower()
    suffix = "" if config.overwrite else RESIZED_SUFFIX
    return (config.output_dir or directory) / f"{stem}{suffix}{out_ext}"


def update_exif_dimensions(exif: bytes, size: Tuple[int, int]) -> bytes:
    """Rewrite the pixel dimension tags of an EXIF block.

    Falls back to the unchanged block when piexif cannot parse it.
    """

    try:
        data = piexif.load(exif)
        data.setdefault("Exif", {})
        data["Exif"][piexif.ExifIFD.PixelXDimension] = size[0]
        data["Exif"][piexif.ExifIFD.PixelYDimension] = size[1]
        # Thumbnails of the old pixels no longer match
        data["thumbnail"] = None
        data.pop("1st", None)
        return piexif.dump(data)
    except (ValueError, KeyError, TypeError, struct.error) as exc:
        logger.debug("Keeping EXIF unchanged: %s", exc)
        return exif


def resize_image(path: Path, config: ResizeConfig) -> ResizeResult:
    """Resize one image and write the result.

    Parameters
    ----------
    path
        Source image path.
    config
        Resize settings.

    Returns
    -------
    ResizeResult
        Populated record with ``status == "success"``.

    Raises
    ------
    ItemIOError
        Decoding, creating the destination directory or saving failed.
    ValidationError
        Both target dimensions are unset. Nothing is written.
    """

    path = Path(path)
    result = ResizeResult(old_path=path, old_name=path.name)

    try:
        image, exif = load_image_with_exif(path)
        result.original_size = os.path.getsize(path)
    except _DECODE_ERRORS as exc:
        raise ItemIOError(f"open/decode failed: {exc}", result) from exc
    result.original_width, result.original_height = image.size

    try:
        config.validate()
    except ValidationError as exc:
        exc.result = result
        raise

    out_path = compute_output_path(path, config)
    result.new_path = out_path
    result.new_name = out_path.name

    try:
        output = apply_mode(image, config)
    except _DECODE_ERRORS as exc:
        raise ItemIOError(f"resample failed: {exc}", result) from exc
    result.output_width, result.output_height = output.size
    logger.debug(
        "%s: %dx%d -> %dx%d (%s)",
        path.name,
        result.original_width,
        result.original_height,
        result.output_width,
        result.output_height,
        config.mode.value,
    )

    try:
        ensure_dir(out_path.parent)
    except OSError as exc:
        raise ItemIOError(f"mkdir failed: {exc}", result) from exc

    quality = None
    if save_format_for(out_path) == "JPEG":
        quality = config.quality if config.quality > 0 else DEFAULT_JPEG_QUALITY

    # Some encoders fall back to image.info["exif"]; only embed what we pass
    output.info.pop("exif", None)
    out_exif = None
    if config.keep_metadata and exif:
        out_exif = update_exif_dimensions(exif, output.size)

    try:
        save_image(output, out_path, exif=out_exif, quality=quality)
        result.output_size = os.path.getsize(out_path)
    except (OSError, ValueError, KeyError) as exc:
        raise ItemIOError(f"save failed: {exc}", result) from exc

    return result
