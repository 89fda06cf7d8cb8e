"""Deterministic local pixel filters.

Item ``i`` of a batch is produced by:
1. Resize to a fixed square
2. Saturation x (1 + (i % 5) * 0.06)
3. Brightness x (1 + (i % 3) * 0.03)
4. Hue rotation of (i % 6) * 20 degrees
5. Gaussian blur of radius 0.3 when i % 4 == 0

The parameter tuple repeats only every 60 items, so every batch of up to
50 images is visually distinct and reproducible without any network call.
"""

from dataclasses import dataclass
from io import BytesIO

import numpy as np
from PIL import Image, ImageEnhance, ImageFilter

DEFAULT_SIZE = 1024
BLUR_RADIUS = 0.3


@dataclass(frozen=True)
class FilterParams:
    """Pixel transform parameters for one item."""
    saturation: float
    brightness: float
    hue_degrees: int
    blur_radius: float


def params_for(index: int) -> FilterParams:
    """Compute the transform parameters for item ``index``."""
    return FilterParams(
        saturation=1 + (index % 5) * 0.06,
        brightness=1 + (index % 3) * 0.03,
        hue_degrees=(index % 6) * 20,
        blur_radius=BLUR_RADIUS if index % 4 == 0 else 0.0,
    )


def load_image(data: bytes) -> Image.Image:
    """Decode image bytes into an RGB PIL image (raises PIL errors on bad data)."""
    with Image.open(BytesIO(data)) as img:
        img.load()
        return img.convert("RGB")


def encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def shift_hue(image: Image.Image, degrees: int) -> Image.Image:
    """Rotate the hue of an RGB image by ``degrees``."""
    if degrees % 360 == 0:
        return image
    hsv = np.array(image.convert("HSV"), dtype=np.uint16)
    # PIL stores hue in 0..255
    offset = int(round(degrees / 360 * 256))
    hsv[..., 0] = (hsv[..., 0] + offset) % 256
    channels = [Image.fromarray(hsv[..., c].astype(np.uint8)) for c in range(3)]
    return Image.merge("HSV", channels).convert("RGB")


def square_resize(image: Image.Image, size: int) -> Image.Image:
    """Center-crop to a square and resize to ``size`` x ``size``."""
    width, height = image.size
    side = min(width, height)
    left = (width - side) // 2
    top = (height - side) // 2
    cropped = image.crop((left, top, left + side, top + side))
    return cropped.resize((size, size), Image.LANCZOS)


def apply_filters(image: Image.Image, index: int, size: int = DEFAULT_SIZE) -> Image.Image:
    """Apply the item ``index`` transform to an RGB image."""
    params = params_for(index)

    result = square_resize(image, size)
    result = ImageEnhance.Color(result).enhance(params.saturation)
    result = ImageEnhance.Brightness(result).enhance(params.brightness)
    result = shift_hue(result, params.hue_degrees)
    if params.blur_radius:
        result = result.filter(ImageFilter.GaussianBlur(params.blur_radius))
    return result


def filter_variation(base_image: bytes, index: int, size: int = DEFAULT_SIZE) -> bytes:
    """Produce PNG bytes for item ``index`` from encoded base photo bytes."""
    return encode_png(apply_filters(load_image(base_image), index, size))
