from __future__ import annotations

import io
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from core.exceptions import InvalidImageError
from core.paper_sizes import PaperSize

BACKGROUND_COLOR = (255, 255, 255)


def _pixels(inches: float, dpi: int) -> int:
    return max(1, int(round(inches * dpi)))


def decode_image(image_bytes: bytes) -> Image.Image:
    """Open an uploaded image and flatten it to RGB on a white background."""
    if not image_bytes:
        raise InvalidImageError("No image data received")

    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(
            "Failed to read the image. The file may be corrupted or unsupported.",
            {"reason": str(e)},
        )

    image = ImageOps.exif_transpose(image)

    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        flattened = Image.new("RGB", rgba.size, BACKGROUND_COLOR)
        flattened.paste(rgba, mask=rgba.split()[3])
        return flattened

    if image.mode != "RGB":
        image = image.convert("RGB")
    return image


def sheet_pixels(paper_size: PaperSize, dpi: int) -> Tuple[int, int]:
    """Pixel (width, height) of the physical sheet at ``dpi``."""
    sheet_w, sheet_h = paper_size.sheet_size
    return (_pixels(sheet_w, dpi), _pixels(sheet_h, dpi))


def render_print_sheet(
        image_bytes: bytes,
        paper_size: PaperSize,
        dpi: int = 300,
        quality: int = 95,
) -> bytes:
    """
    Build the JPEG that goes into the hot folder for one physical sheet.

    The photo is fitted inside the logical print size ("contain", white
    bars). Folding sizes repeat the fitted photo ``fold_factor`` times side by
    side, so the cutter turns one sheet into that many strips.
    """
    photo = decode_image(image_bytes)

    tile_size = (_pixels(paper_size.width, dpi), _pixels(paper_size.height, dpi))
    tile = ImageOps.pad(photo, tile_size, method=Image.Resampling.LANCZOS, color=BACKGROUND_COLOR)

    sheet = Image.new("RGB", sheet_pixels(paper_size, dpi), BACKGROUND_COLOR)
    for slot in range(paper_size.fold_factor):
        sheet.paste(tile, (slot * tile_size[0], 0))

    out = io.BytesIO()
    sheet.save(out, format="JPEG", quality=quality, dpi=(dpi, dpi))
    return out.getvalue()
