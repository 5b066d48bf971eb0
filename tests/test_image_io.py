"""Unit tests for the :mod:`image_beautifier.data.image_io` helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

np = pytest.importorskip("numpy")
PIL_Image = pytest.importorskip(
    "PIL.Image", reason="Pillow is required for image tests"
)

from image_beautifier.core.errors import LoadError
from image_beautifier.data import image_io


def test_load_image_record_converts_to_rgba(tmp_path: Path) -> None:
    path = tmp_path / "photo.png"
    PIL_Image.new("RGB", (5, 4), (10, 20, 30)).save(path)

    record = image_io.load_image_record(path)

    assert isinstance(record, image_io.ImageRecord)
    assert record.image.mode == "RGBA"
    assert record.image.getpixel((0, 0)) == (10, 20, 30, 255)
    assert record.metadata["format"] == "PNG"
    assert record.metadata["mode"] == "RGB"
    assert record.metadata["size"] == (5, 4)
    assert record.path == path


def test_load_image_returns_pixels(tmp_path: Path) -> None:
    path = tmp_path / "pixels.bmp"
    PIL_Image.new("RGB", (2, 2), (1, 1, 1)).save(path)

    image = image_io.load_image(path)

    assert image.size == (2, 2)
    assert image.mode == "RGBA"


@pytest.mark.parametrize(
    "name, reason",
    [
        ("missing.png", "does not exist"),
        ("notes.txt", "unsupported image format"),
    ],
)
def test_load_errors_name_the_path(tmp_path: Path, name: str, reason: str) -> None:
    path = tmp_path / name
    if name.endswith(".txt"):
        path.write_text("hello", encoding="utf-8")

    with pytest.raises(LoadError) as info:
        image_io.load_image_record(path)

    assert reason in str(info.value)
    assert info.value.path == path


def test_directory_is_rejected(tmp_path: Path) -> None:
    folder = tmp_path / "folder.png"
    folder.mkdir()

    with pytest.raises(LoadError, match="not a file"):
        image_io.load_image_record(folder)


def test_corrupt_image_raises_load_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.png"
    path.write_bytes(b"definitely not a png")

    with pytest.raises(LoadError) as info:
        image_io.load_image_record(path)

    assert info.value.reason


def test_save_png_keeps_transparency(tmp_path: Path) -> None:
    image = PIL_Image.new("RGBA", (3, 3), (0, 0, 0, 0))
    image.putpixel((1, 1), (255, 0, 0, 255))

    written = image_io.save_image(image, tmp_path / "nested" / "out.png")

    assert written.exists()
    with PIL_Image.open(written) as reloaded:
        assert reloaded.mode == "RGBA"
        assert reloaded.getpixel((0, 0))[3] == 0
        assert reloaded.getpixel((1, 1)) == (255, 0, 0, 255)


def test_save_jpeg_flattens_onto_white(tmp_path: Path) -> None:
    image = PIL_Image.new("RGBA", (8, 8), (0, 0, 0, 0))

    written = image_io.save_image(image, tmp_path / "out.jpg")

    with PIL_Image.open(written) as reloaded:
        assert reloaded.format == "JPEG"
        assert reloaded.mode == "RGB"
        assert all(channel > 245 for channel in reloaded.getpixel((4, 4)))


def test_explicit_format_overrides_suffix(tmp_path: Path) -> None:
    written = image_io.save_image(PIL_Image.new("RGBA", (2, 2)), tmp_path / "out.img", "png")

    with PIL_Image.open(written) as reloaded:
        assert reloaded.format == "PNG"


def test_unsupported_save_format_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        image_io.save_image(PIL_Image.new("RGBA", (2, 2)), tmp_path / "out.xyz")


def test_save_reapplies_loaded_dpi(tmp_path: Path) -> None:
    source = tmp_path / "dpi.png"
    PIL_Image.new("RGB", (4, 4)).save(source, dpi=(300, 300))
    record = image_io.load_image_record(source)

    target = image_io.save_image(record.image, tmp_path / "copy.png", metadata=record.metadata)

    with PIL_Image.open(target) as reloaded:
        dpi = reloaded.info.get("dpi")
    assert dpi is not None
    assert round(dpi[0]) == 300


def test_record_close_releases_pixels(tmp_path: Path) -> None:
    path = tmp_path / "closing.png"
    PIL_Image.new("RGB", (2, 2)).save(path)
    record = image_io.load_image_record(path)

    record.close()

    with pytest.raises(ValueError):
        record.image.load()


def test_oversized_image_raises_load_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "huge.png"
    PIL_Image.new("RGB", (100, 100)).save(path)
    monkeypatch.setattr(PIL_Image, "MAX_IMAGE_PIXELS", 10)

    with pytest.raises(LoadError, match="too large"):
        image_io.load_image(path)


@pytest.mark.parametrize("error", [ValueError("bad header"), SyntaxError("not a PNG file")])
def test_decoder_errors_raise_load_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, error: Exception) -> None:
    path = tmp_path / "odd.png"
    PIL_Image.new("RGB", (2, 2)).save(path)

    def _fail(*args, **kwargs):
        raise error

    monkeypatch.setattr(PIL_Image, "open", _fail)

    with pytest.raises(LoadError) as info:
        image_io.load_image_record(path)

    assert info.value.reason == str(error)
