"""Background replacement variations.

Extract the subject from the base photo and composite it onto one of ten
professional gradient backgrounds (item ``i`` uses palette ``i % 10``).

Subject extraction uses the external ``rembg`` command when enabled and
available, otherwise treats near-white pixels as background and feathers
the resulting mask.
"""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Tuple

import numpy as np
from PIL import Image, ImageFilter

from pfp_rotator.variations.filters import encode_png, load_image

logger = logging.getLogger(__name__)

PALETTES = [
    ("#0E5E9C", "#0B4170"),  # deep blue
    ("#0077B5", "#004E75"),  # brand blues
    ("#1F2937", "#111827"),  # neutral dark
    ("#4B5563", "#1F2937"),  # gray
    ("#2563EB", "#1D4ED8"),  # blue
    ("#64748B", "#334155"),  # slate
    ("#10B981", "#047857"),  # teal/green
    ("#6D28D9", "#4C1D95"),  # purple
    ("#F59E0B", "#D97706"),  # amber
    ("#0EA5E9", "#0369A1"),  # cyan
]

WHITE_THRESHOLD = 245
FEATHER_RADIUS = 1.5
GRAIN_OPACITY = 0.06
REMBG_TIMEOUT = 60.0


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    color = color.lstrip("#")
    return int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)


def gradient_background(index: int, width: int, height: int) -> Image.Image:
    """
    Render the diagonal gradient for item ``index`` with a faint grain.

    The grain is seeded by the palette index so output is reproducible.
    """
    start, end = (np.array(hex_to_rgb(c), dtype=np.float32) for c in PALETTES[index % len(PALETTES)])

    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    # Top-left -> bottom-right
    t = (xs / max(width - 1, 1) + ys / max(height - 1, 1)) / 2
    pixels = start + (end - start) * t[..., None]

    rng = np.random.default_rng(index % len(PALETTES))
    grain = rng.random((height, width), dtype=np.float32)
    pixels *= 1 - GRAIN_OPACITY * grain[..., None]

    return Image.fromarray(np.clip(pixels, 0, 255).astype(np.uint8)).convert("RGBA")


def threshold_subject(image: Image.Image) -> Image.Image:
    """Cut out the subject by treating near-white pixels as background."""
    rgb = image.convert("RGB")
    gray = np.array(rgb.convert("L"))
    alpha = np.where(gray >= WHITE_THRESHOLD, 0, 255).astype(np.uint8)
    mask = Image.fromarray(alpha).filter(ImageFilter.GaussianBlur(FEATHER_RADIUS))
    subject = rgb.convert("RGBA")
    subject.putalpha(mask)
    return subject


async def rembg_subject(base_image: bytes, timeout: float = REMBG_TIMEOUT) -> Image.Image:
    """
    Run ``rembg i <in> <out>`` and load the cut-out.

    Raises:
        FileNotFoundError: rembg is not installed
        RuntimeError: rembg exited non-zero
        asyncio.TimeoutError: rembg took longer than ``timeout``
    """
    executable = shutil.which("rembg")
    if executable is None:
        raise FileNotFoundError("rembg executable not found on PATH")

    with tempfile.TemporaryDirectory(prefix="pfp_rembg_") as tmp:
        in_path = Path(tmp) / "in.png"
        out_path = Path(tmp) / "out.png"
        in_path.write_bytes(base_image)

        proc = await asyncio.create_subprocess_exec(
            executable, "i", str(in_path), str(out_path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise

        if proc.returncode != 0:
            raise RuntimeError(f"rembg failed ({proc.returncode}): {stderr.decode(errors='replace')[:200]}")

        with Image.open(out_path) as cutout:
            cutout.load()
            return cutout.convert("RGBA")


async def extract_subject(base_image: bytes, use_rembg: bool = False) -> Image.Image:
    """Return the subject as an RGBA image with a transparent background."""
    if use_rembg:
        try:
            return await rembg_subject(base_image)
        except (OSError, RuntimeError, asyncio.TimeoutError) as e:
            logger.warning(f"rembg failed or not available, falling back to white-threshold method: {e}")
    return threshold_subject(load_image(base_image))


def composite_on_background(subject: Image.Image, index: int, size: int) -> bytes:
    """Center ``subject`` (scaled to fit) on the item ``index`` gradient; return PNG bytes."""
    background = gradient_background(index, size, size)

    fitted = subject.copy()
    fitted.thumbnail((size, size), Image.LANCZOS)
    offset = ((size - fitted.width) // 2, (size - fitted.height) // 2)
    background.alpha_composite(fitted, dest=offset)

    return encode_png(background.convert("RGB"))
