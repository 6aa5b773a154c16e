import io

import pytest
from PIL import Image

from core.exceptions import InvalidImageError
from modules.image_prep import decode_image, render_print_sheet, sheet_pixels


def _encode(image, fmt="PNG"):
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def test_sheet_pixels_for_standard_and_strip_sizes(catalog):
    assert sheet_pixels(catalog.resolve("4x6"), 300) == (1200, 1800)
    assert sheet_pixels(catalog.resolve("2x6"), 300) == (1200, 1800)
    assert sheet_pixels(catalog.resolve("5x7"), 100) == (500, 700)


def test_render_standard_size(catalog, jpeg_bytes):
    data = render_print_sheet(jpeg_bytes, catalog.resolve("4x6"), dpi=50)

    sheet = Image.open(io.BytesIO(data))
    assert sheet.format == "JPEG"
    assert sheet.size == (200, 300)


def test_strip_is_repeated_side_by_side(catalog):
    photo = Image.new("RGB", (100, 300), (0, 0, 255))

    data = render_print_sheet(_encode(photo), catalog.resolve("2x6"), dpi=50)

    sheet = Image.open(io.BytesIO(data)).convert("RGB")
    assert sheet.size == (200, 300)
    left = sheet.getpixel((50, 150))
    right = sheet.getpixel((150, 150))
    # JPEG is lossy; both halves should be clearly blue
    for pixel in (left, right):
        assert pixel[2] > 200
        assert pixel[0] < 60


def test_landscape_photo_is_padded_not_cropped(catalog, jpeg_bytes):
    data = render_print_sheet(jpeg_bytes, catalog.resolve("4x6"), dpi=50)

    sheet = Image.open(io.BytesIO(data)).convert("RGB")
    top = sheet.getpixel((100, 5))
    middle = sheet.getpixel((100, 150))
    assert min(top) > 230
    assert middle[0] > 150 and middle[1] < 90


def test_transparent_png_is_flattened_on_white():
    image = Image.new("RGBA", (10, 10), (255, 0, 0, 0))

    decoded = decode_image(_encode(image))

    assert decoded.mode == "RGB"
    assert decoded.getpixel((5, 5)) == (255, 255, 255)


def test_grayscale_is_converted_to_rgb():
    decoded = decode_image(_encode(Image.new("L", (4, 4), 128)))
    assert decoded.mode == "RGB"


@pytest.mark.parametrize("payload", [b"", b"definitely not an image"])
def test_invalid_payload_rejected(payload):
    with pytest.raises(InvalidImageError):
        decode_image(payload)
