from pathlib import Path

import piexif
import pytest
from PIL import Image

from src.renovo.errors import ItemIOError, ValidationError
from src.renovo.resize import (
    OutputFormat,
    ResizeConfig,
    ResizeMode,
    compute_output_path,
    fit_size,
    resize_image,
    scaled_size,
)


def _size(path: Path) -> tuple:
    with Image.open(path) as img:
        return img.size


def test_fit_single_width(make_image):
    src = make_image(size=(400, 200))
    result = resize_image(src, ResizeConfig(width=100, height=0, mode=ResizeMode.FIT))

    assert (result.output_width, result.output_height) == (100, 50)
    assert result.new_path == src.parent / "sample_resized.png"
    assert _size(result.new_path) == (100, 50)
    assert (result.original_width, result.original_height) == (400, 200)
    assert result.original_size == src.stat().st_size
    assert result.output_size == result.new_path.stat().st_size


def test_fit_single_height(make_image):
    src = make_image(size=(400, 200))
    result = resize_image(src, ResizeConfig(height=50))
    assert (result.output_width, result.output_height) == (100, 50)


def test_fit_box_preserves_aspect(make_image):
    src = make_image(size=(400, 200))
    result = resize_image(src, ResizeConfig(width=100, height=100))
    assert (result.output_width, result.output_height) == (100, 50)


def test_fit_box_does_not_enlarge(make_image):
    src = make_image(size=(40, 20))
    result = resize_image(src, ResizeConfig(width=100, height=100))
    assert (result.output_width, result.output_height) == (40, 20)


@pytest.mark.parametrize("source", [(400, 200), (200, 400), (73, 91), (50, 50)])
def test_fill_gives_exact_size(make_image, source):
    src = make_image(size=source)
    result = resize_image(src, ResizeConfig(width=50, height=50, mode=ResizeMode.FILL))
    assert _size(result.new_path) == (50, 50)


def test_fill_mirrors_missing_dimension(make_image):
    src = make_image(size=(400, 200))
    result = resize_image(src, ResizeConfig(width=60, mode=ResizeMode.FILL))
    assert (result.output_width, result.output_height) == (60, 60)


def test_exact_stretches(make_image):
    src = make_image(size=(400, 200))
    result = resize_image(src, ResizeConfig(width=30, height=90, mode=ResizeMode.EXACT))
    assert _size(result.new_path) == (30, 90)


def test_exact_with_one_dimension_keeps_aspect(make_image):
    src = make_image(size=(400, 200))
    result = resize_image(src, ResizeConfig(width=100, mode=ResizeMode.EXACT))
    assert (result.output_width, result.output_height) == (100, 50)


def test_rounding_is_half_up():
    assert scaled_size((333, 100), width=100) == (100, 30)
    assert scaled_size((200, 101), width=100) == (100, 51)
    assert fit_size((1000, 1), 10, 10) == (10, 1)


def test_both_dimensions_unset_is_validation_error(make_image, tmp_path):
    src = make_image(size=(400, 200))
    before = src.read_bytes()

    with pytest.raises(ValidationError) as excinfo:
        resize_image(src, ResizeConfig(width=0, height=0))

    assert excinfo.value.result.original_width == 400
    assert sorted(p.name for p in tmp_path.iterdir()) == ["sample.png"]
    assert src.read_bytes() == before


def test_undecodable_file_is_io_error(tmp_path):
    bogus = tmp_path / "broken.jpg"
    bogus.write_bytes(b"definitely not an image")
    with pytest.raises(ItemIOError, match="open/decode failed"):
        resize_image(bogus, ResizeConfig(width=10))


def test_missing_file_is_io_error(tmp_path):
    with pytest.raises(ItemIOError, match="open/decode failed"):
        resize_image(tmp_path / "nope.png", ResizeConfig(width=10))


def test_source_without_extension_is_save_error(tmp_path):
    src = tmp_path / "noext"
    Image.new("RGB", (40, 20), (10, 20, 30)).save(src, format="PNG")
    with pytest.raises(ItemIOError, match="save failed") as info:
        resize_image(src, ResizeConfig(width=10))
    assert info.value.result.new_name == "noext_resized"
    assert not (tmp_path / "noext_resized").exists()


def test_destination_directory_in_the_way_is_save_error(make_image, tmp_path):
    src = make_image(name="pic.png", size=(40, 20))
    (tmp_path / "pic_resized.png").mkdir()
    with pytest.raises(ItemIOError, match="save failed"):
        resize_image(src, ResizeConfig(width=10))


def test_output_dir_is_created(make_image, tmp_path):
    src = make_image()
    out_dir = tmp_path / "out" / "nested"
    result = resize_image(src, ResizeConfig(width=10, output_dir=out_dir))
    assert result.new_path == out_dir / "sample_resized.png"
    assert result.new_path.exists()


def test_output_dir_blocked_by_file_is_mkdir_error(make_image, tmp_path):
    src = make_image()
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(ItemIOError, match="mkdir failed"):
        resize_image(src, ResizeConfig(width=10, output_dir=blocker / "sub"))


def test_overwrite_in_place(make_image):
    src = make_image(size=(400, 200))
    result = resize_image(src, ResizeConfig(width=100, overwrite=True))
    assert result.new_path == src
    assert _size(src) == (100, 50)


def test_overwrite_with_format_change_drops_suffix(make_image):
    src = make_image(size=(400, 200))
    result = resize_image(
        src, ResizeConfig(width=100, overwrite=True, output_format=OutputFormat.JPG)
    )
    assert result.new_path == src.with_suffix(".jpg")
    assert src.exists()
    with Image.open(result.new_path) as img:
        assert img.format == "JPEG"


def test_jpeg_alias_and_rgba_source(make_image):
    src = make_image(name="alpha.png", size=(64, 64), mode="RGBA")
    result = resize_image(src, ResizeConfig(width=32, output_format="jpeg"))
    assert result.new_name == "alpha_resized.jpg"
    with Image.open(result.new_path) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"


def test_quality_affects_jpeg_size(make_image, tmp_path):
    noisy = tmp_path / "noisy.png"
    Image.effect_noise((200, 200), 80).convert("RGB").save(noisy)

    low = resize_image(
        noisy, ResizeConfig(width=200, output_format="jpg", quality=10, output_dir=tmp_path / "low")
    )
    high = resize_image(
        noisy, ResizeConfig(width=200, output_format="jpg", quality=95, output_dir=tmp_path / "high")
    )
    assert low.output_size < high.output_size


def test_source_extension_is_lowercased(make_image):
    src = make_image(name="UPPER.PNG", size=(40, 20))
    result = resize_image(src, ResizeConfig(width=20))
    assert result.new_name == "UPPER_resized.png"


def test_exif_dimensions_are_updated(make_image, exif_bytes):
    src = make_image(name="cam.jpg", size=(400, 200), exif=exif_bytes)
    result = resize_image(src, ResizeConfig(width=100))
    exif = piexif.load(str(result.new_path))
    assert exif["0th"][piexif.ImageIFD.Make] == b"Renovo"
    assert exif["Exif"][piexif.ExifIFD.PixelXDimension] == 100
    assert exif["Exif"][piexif.ExifIFD.PixelYDimension] == 50


def test_exif_dropped_without_keep_metadata(make_image, exif_bytes):
    src = make_image(name="cam.jpg", size=(400, 200), exif=exif_bytes)
    result = resize_image(src, ResizeConfig(width=100, keep_metadata=False))
    with Image.open(result.new_path) as img:
        assert "exif" not in img.info


def test_compute_output_path_variants(tmp_path):
    src = tmp_path / "pic.webp"
    assert compute_output_path(src, ResizeConfig(width=1)) == tmp_path / "pic_resized.webp"
    assert compute_output_path(src, ResizeConfig(width=1, overwrite=True)) == src
    assert (
        compute_output_path(src, ResizeConfig(width=1, output_format="same", overwrite=True))
        == src
    )
    assert (
        compute_output_path(src, ResizeConfig(width=1, output_format="png", output_dir=tmp_path / "o"))
        == tmp_path / "o" / "pic_resized.png"
    )


def test_unknown_format_and_mode_are_rejected():
    with pytest.raises(ValidationError):
        ResizeConfig(width=1, output_format="svg")
    with pytest.raises(ValidationError):
        ResizeConfig(width=1, mode="zoom")


def test_format_aliases():
    assert OutputFormat.parse("JPEG") is OutputFormat.JPG
    assert OutputFormat.parse(".tif") is OutputFormat.TIFF
    assert OutputFormat.parse(None) is OutputFormat.SAME
    assert OutputFormat.parse("") is OutputFormat.SAME
