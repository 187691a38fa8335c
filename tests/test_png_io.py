import numpy as np
import pytest
from PIL import Image

from gamebase.png_io import OriginLocation, PngError, load_png, save_png


def _sample_pixels(width=3, height=2):
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)


def test_round_trip_upper_left(tmp_path):
    path = tmp_path / "img.png"
    pixels = _sample_pixels()
    save_png(path, (3, 2), pixels, OriginLocation.UPPER_LEFT)
    size, loaded = load_png(path, OriginLocation.UPPER_LEFT)
    assert size == (3, 2)
    assert np.array_equal(loaded, pixels)


def test_round_trip_lower_left(tmp_path):
    path = tmp_path / "img.png"
    pixels = _sample_pixels(4, 5)
    save_png(path, (4, 5), pixels.reshape(-1, 4), OriginLocation.LOWER_LEFT)
    size, loaded = load_png(path, OriginLocation.LOWER_LEFT)
    assert size == (4, 5)
    assert np.array_equal(loaded, pixels)


def test_lower_left_flips_rows_in_file(tmp_path):
    path = tmp_path / "img.png"
    pixels = _sample_pixels(2, 3)
    save_png(path, (2, 3), pixels, OriginLocation.LOWER_LEFT)
    with Image.open(path) as img:
        top_left = img.getpixel((0, 0))
    assert top_left == tuple(int(v) for v in pixels[2, 0])
    _, as_upper = load_png(path, OriginLocation.UPPER_LEFT)
    assert np.array_equal(as_upper, pixels[::-1])


def test_rgb_gets_opaque_alpha(tmp_path):
    path = tmp_path / "rgb.png"
    Image.new("RGB", (2, 2), (10, 20, 30)).save(path)
    size, loaded = load_png(path, OriginLocation.UPPER_LEFT)
    assert size == (2, 2)
    assert np.all(loaded[..., :3] == [10, 20, 30])
    assert np.all(loaded[..., 3] == 0xFF)


def test_gray_expands_to_rgb(tmp_path):
    path = tmp_path / "gray.png"
    Image.new("L", (1, 1), 77).save(path)
    _, loaded = load_png(path, OriginLocation.UPPER_LEFT)
    assert tuple(loaded[0, 0]) == (77, 77, 77, 0xFF)


def test_palette_expands(tmp_path):
    path = tmp_path / "pal.png"
    img = Image.new("P", (2, 1))
    img.putpalette([200, 100, 50] + [0, 0, 0] * 255)
    img.putpixel((0, 0), 0)
    img.putpixel((1, 0), 1)
    img.save(path)
    _, loaded = load_png(path, OriginLocation.UPPER_LEFT)
    assert tuple(loaded[0, 0][:3]) == (200, 100, 50)
    assert tuple(loaded[0, 1][:3]) == (0, 0, 0)


def test_sixteen_bit_gray_keeps_high_byte(tmp_path):
    path = tmp_path / "g16.png"
    Image.fromarray(np.full((1, 1), 0x1234, dtype=np.uint16)).save(path)
    _, loaded = load_png(path, OriginLocation.UPPER_LEFT)
    assert tuple(loaded[0, 0]) == (0x12, 0x12, 0x12, 0xFF)


def test_missing_file(tmp_path):
    with pytest.raises(PngError, match="Failed to open PNG image file"):
        load_png(tmp_path / "nope.png", OriginLocation.UPPER_LEFT)


def test_not_a_png(tmp_path):
    path = tmp_path / "junk.png"
    path.write_bytes(b"definitely not an image")
    with pytest.raises(PngError, match="Failed to read PNG image"):
        load_png(path, OriginLocation.UPPER_LEFT)


def test_save_rejects_wrong_pixel_count(tmp_path):
    with pytest.raises(ValueError):
        save_png(tmp_path / "x.png", (2, 2), np.zeros((3, 4)), OriginLocation.UPPER_LEFT)


def test_save_rejects_empty_image(tmp_path):
    with pytest.raises(PngError):
        save_png(tmp_path / "x.png", (0, 2), [], OriginLocation.UPPER_LEFT)