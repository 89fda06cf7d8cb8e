"""Tests for deterministic local pixel filters."""

import hashlib
from io import BytesIO

import pytest
from PIL import Image

from pfp_rotator.variations.filters import (
    BLUR_RADIUS,
    filter_variation,
    params_for,
    shift_hue,
    square_resize,
)


@pytest.mark.unit
class TestFilterParams:
    """Per-item parameter schedule."""

    def test_first_item(self):
        """Item 0 keeps color and brightness but is blurred."""
        params = params_for(0)
        assert params.saturation == 1
        assert params.brightness == 1
        assert params.hue_degrees == 0
        assert params.blur_radius == BLUR_RADIUS

    def test_schedule_values(self):
        """Item 7: saturation step 2, brightness step 1, hue step 1, no blur."""
        params = params_for(7)
        assert params.saturation == pytest.approx(1.12)
        assert params.brightness == pytest.approx(1.03)
        assert params.hue_degrees == 20
        assert params.blur_radius == 0.0

    def test_parameters_distinct_for_full_batch(self):
        """No two items of a 50-image batch share a parameter tuple."""
        tuples = {params_for(i) for i in range(50)}
        assert len(tuples) == 50


@pytest.mark.unit
class TestFilterVariation:
    """Rendered output."""

    def test_output_is_square_png(self, photo_bytes):
        """Output is a PNG of the requested square size."""
        data = filter_variation(photo_bytes, 3, size=48)

        with Image.open(BytesIO(data)) as img:
            assert img.format == "PNG"
            assert img.size == (48, 48)

    def test_deterministic(self, photo_bytes):
        """Same input and index give identical bytes."""
        assert filter_variation(photo_bytes, 5, size=32) == filter_variation(photo_bytes, 5, size=32)

    def test_batch_items_pairwise_distinct(self, photo_bytes):
        """Every item of a 12-image batch has a distinct pixel hash."""
        hashes = set()
        for i in range(12):
            with Image.open(BytesIO(filter_variation(photo_bytes, i, size=32))) as img:
                hashes.add(hashlib.sha256(img.tobytes()).hexdigest())
        assert len(hashes) == 12

    def test_square_resize_center_crops(self):
        """A wide image is cropped to its centered square before resizing."""
        wide = Image.new("RGB", (300, 100), (255, 0, 0))
        wide.paste((0, 0, 255), (100, 0, 200, 100))

        result = square_resize(wide, 10)

        assert result.size == (10, 10)
        assert result.getpixel((5, 5)) == (0, 0, 255)

    def test_zero_hue_shift_is_identity(self):
        """A 0 degree shift returns the image unchanged."""
        img = Image.new("RGB", (4, 4), (10, 200, 30))
        assert shift_hue(img, 0) is img

    def test_hue_shift_changes_color(self):
        """A 120 degree shift moves red toward green."""
        red = Image.new("RGB", (4, 4), (255, 0, 0))
        r, g, b = shift_hue(red, 120).getpixel((0, 0))
        assert g > r
