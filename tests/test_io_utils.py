import pytest

from src.renovo.io_utils import (
    format_bytes,
    get_file_infos,
    iter_image_paths,
    list_directory,
    move_file,
    split_name,
)


def test_split_name(tmp_path):
    assert split_name(tmp_path / "photo.final.JPG") == (tmp_path, "photo.final", ".JPG")
    assert split_name(tmp_path / "Makefile") == (tmp_path, "Makefile", "")


@pytest.mark.parametrize(
    "size, label",
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1 KB"),
        (10 * 1024, "10 KB"),
        (5 * 1024 ** 2, "5 MB"),
        (3 * 1024 ** 3, "3 GB"),
    ],
)
def test_format_bytes(size, label):
    assert format_bytes(size) == label


def test_list_directory_orders_dirs_first_and_hides_dotfiles(tmp_path):
    (tmp_path / "zdir").mkdir()
    (tmp_path / "Adir").mkdir()
    (tmp_path / ".hidden").mkdir()
    (tmp_path / "b.PNG").write_bytes(b"12345")
    (tmp_path / "a.txt").write_text("x")
    (tmp_path / ".secret").write_text("x")

    entries = list_directory(tmp_path)

    assert [e.name for e in entries] == ["Adir", "zdir", "a.txt", "b.PNG"]
    assert [e.is_dir for e in entries] == [True, True, False, False]
    assert entries[3].ext == ".png"
    assert entries[3].size == 5


def test_list_directory_missing_raises(tmp_path):
    with pytest.raises(OSError):
        list_directory(tmp_path / "missing")


def test_get_file_infos_skips_missing(tmp_path):
    f = tmp_path / "data.BIN"
    f.write_bytes(b"\0" * 2048)
    infos = get_file_infos([f, tmp_path / "missing.bin"])
    assert len(infos) == 1
    assert infos[0].ext == ".bin"
    assert infos[0].size_label == "2 KB"


def test_move_file_refuses_to_clobber(tmp_path):
    src = tmp_path / "a.txt"
    dst = tmp_path / "b.txt"
    src.write_text("a")
    dst.write_text("b")
    with pytest.raises(FileExistsError):
        move_file(src, dst)
    assert dst.read_text() == "b"


def test_move_file(tmp_path):
    src = tmp_path / "a.txt"
    src.write_text("a")
    move_file(src, tmp_path / "c.txt")
    assert not src.exists()
    assert (tmp_path / "c.txt").read_text() == "a"


def test_iter_image_paths_filters_extensions(tmp_path):
    (tmp_path / "b.jpg").write_bytes(b"")
    (tmp_path / "a.PNG").write_bytes(b"")
    (tmp_path / "notes.txt").write_text("x")
    assert [p.name for p in iter_image_paths(tmp_path)] == ["a.PNG", "b.jpg"]
