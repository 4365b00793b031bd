"""Tests for image_utils.py utility functions."""

import io

import pytest
from PIL import Image

from resize_pipeline.core.exceptions import ItemProcessingError
from resize_pipeline.core.image_utils import (
    apply_background,
    apply_watermark,
    calculate_dimensions,
    encode_image,
    has_background,
    parse_color,
    resize_image_bytes,
)
from resize_pipeline.core.models import ProcessingOptions, WatermarkOptions
from resize_pipeline.testing import create_test_image


class TestCalculateDimensions:
    """Tests for calculate_dimensions function."""

    @pytest.mark.parametrize(
        "target,expected",
        [
            ((200, None), (200, 150)),
            ((None, 150), (200, 150)),
            ((100, 100), (100, 75)),
            ((1000, 60), (80, 60)),
            ((None, None), (400, 300)),
        ],
    )
    def test_keeps_aspect_ratio(self, target, expected):
        assert calculate_dimensions(400, 300, *target) == expected

    def test_without_aspect_ratio(self):
        assert calculate_dimensions(400, 300, 100, None, maintain_aspect_ratio=False) == (100, 300)
        assert calculate_dimensions(400, 300, 100, 50, maintain_aspect_ratio=False) == (100, 50)

    def test_never_below_one_pixel(self):
        assert calculate_dimensions(1000, 1, 10, None) == (10, 1)


class TestColors:
    """Tests for parse_color and has_background."""

    @pytest.mark.parametrize(
        "color,rgb",
        [("#fff", (255, 255, 255)), ("#000000", (0, 0, 0)), ("red", (255, 0, 0)), ("rgb(1,2,3)", (1, 2, 3))],
    )
    def test_parse_color(self, color, rgb):
        assert parse_color(color) == rgb

    def test_parse_color_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_color("not-a-color")

    @pytest.mark.parametrize("color,expected", [(None, False), ("", False), ("transparent", False), ("#fff", True)])
    def test_has_background(self, color, expected):
        assert has_background(color) is expected


class TestApplyBackground:
    """Tests for apply_background."""

    def _transparent(self):
        return Image.new("RGBA", (10, 10), (0, 0, 0, 0))

    def test_png_without_background_untouched(self):
        img = self._transparent()
        assert apply_background(img, "png", None) is img

    def test_jpeg_flattened_on_white(self):
        result = apply_background(self._transparent(), "jpeg", None)

        assert result.mode == "RGB"
        assert result.getpixel((5, 5)) == (255, 255, 255)

    def test_png_with_background_color(self):
        result = apply_background(self._transparent(), "png", "#00ff00")

        assert result.mode == "RGB"
        assert result.getpixel((0, 0)) == (0, 255, 0)


class TestApplyWatermark:
    """Tests for apply_watermark."""

    def test_draws_text_and_keeps_size(self):
        img = Image.new("RGB", (200, 100), "black")
        watermark = WatermarkOptions(text="SAMPLE", opacity=1.0, font_size=20)

        result = apply_watermark(img, watermark)

        assert result.size == (200, 100)
        assert result.mode == "RGB"
        assert result.tobytes() != img.tobytes()
        # The default anchor is bottom-right, so the top-left corner stays untouched.
        assert result.getpixel((0, 0)) == (0, 0, 0)

    def test_keeps_alpha_for_rgba_input(self):
        img = Image.new("RGBA", (100, 50), (0, 0, 0, 255))

        result = apply_watermark(img, WatermarkOptions(text="x", position="center"))

        assert result.mode == "RGBA"


class TestEncodeImage:
    """Tests for encode_image."""

    @pytest.mark.parametrize("fmt,pil_format", [("jpeg", "JPEG"), ("png", "PNG"), ("webp", "WEBP")])
    def test_encodes_requested_format(self, fmt, pil_format):
        img = Image.new("RGB", (20, 20), "blue")

        encoded = encode_image(img, ProcessingOptions(width=20, output_format=fmt))

        with Image.open(io.BytesIO(encoded)) as decoded:
            assert decoded.format == pil_format

    def test_jpeg_drops_alpha(self):
        img = Image.new("RGBA", (20, 20), (10, 20, 30, 128))

        encoded = encode_image(img, ProcessingOptions(width=20, output_format="jpeg"))

        with Image.open(io.BytesIO(encoded)) as decoded:
            assert decoded.mode == "RGB"


class TestResizeImageBytes:
    """Tests for resize_image_bytes."""

    def test_resizes_and_reports_dimensions(self):
        payload = create_test_image(400, 300)

        resized = resize_image_bytes(payload, len(payload), ProcessingOptions(width=200, output_format="png"))

        assert resized.original_dimensions.width == 400
        assert resized.original_dimensions.height == 300
        assert (resized.new_dimensions.width, resized.new_dimensions.height) == (200, 150)
        assert resized.media_type == "image/png"
        assert resized.original_size == len(payload)
        assert resized.new_size == len(resized.encoded_payload)
        with Image.open(io.BytesIO(resized.encoded_payload)) as decoded:
            assert decoded.size == (200, 150)

    def test_transparent_png_to_jpeg(self):
        payload = create_test_image(50, 50, fmt="PNG", mode="RGBA")

        resized = resize_image_bytes(payload, len(payload), ProcessingOptions(width=25))

        with Image.open(io.BytesIO(resized.encoded_payload)) as decoded:
            assert decoded.format == "JPEG"
            assert decoded.size == (25, 25)

    def test_with_watermark(self):
        payload = create_test_image(200, 200)
        options = ProcessingOptions(width=100, watermark={"text": "(c) 2024", "font_size": 12})

        resized = resize_image_bytes(payload, len(payload), options)

        assert resized.new_dimensions.width == 100

    def test_corrupt_payload(self):
        with pytest.raises(ItemProcessingError, match="Image resize failed"):
            resize_image_bytes(b"definitely not an image", 23, ProcessingOptions(width=10))
