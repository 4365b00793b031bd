"""Tests for batch validation and filename helpers."""

import pytest

from resize_pipeline.core.exceptions import ConfigurationError
from resize_pipeline.core.models import MAX_FILE_SIZE, MAX_FILES, ProcessingOptions, WorkItem
from resize_pipeline.core.validation import (
    format_file_size,
    generate_output_filename,
    load_options,
    sanitize_filename,
    validate_batch,
    validate_item,
)

OPTIONS = ProcessingOptions(width=100)


def _item(name="a.jpg", size=10, media_type="image/jpeg"):
    return WorkItem(name=name, payload=b"x" * min(size, 16), size=size, media_type=media_type)


class TestFormatFileSize:
    """Tests for format_file_size."""

    @pytest.mark.parametrize(
        "num_bytes,text",
        [
            (0, "0 Bytes"),
            (-10, "0 Bytes"),
            (None, "0 Bytes"),
            (500, "500 Bytes"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (6000, "5.86 KB"),
            (5 * 1024 * 1024, "5 MB"),
            (3 * 1024 ** 3, "3 GB"),
            (2048 * 1024 ** 3, "2048 GB"),
        ],
    )
    def test_values(self, num_bytes, text):
        assert format_file_size(num_bytes) == text


class TestLoadOptions:
    """Tests for load_options."""

    def test_valid(self):
        options = load_options({"width": 300, "quality": 80, "output_format": "webp"})

        assert options.quality == pytest.approx(0.8)
        assert options.output_format == "webp"

    def test_invalid_becomes_configuration_error(self):
        with pytest.raises(ConfigurationError, match="At least one dimension"):
            load_options({"quality": 80})


class TestValidateBatch:
    """Tests for validate_item and validate_batch."""

    def test_valid_item(self):
        assert validate_item(_item()) == []

    def test_item_problems(self):
        assert validate_item(_item(media_type="image/tiff")) == ["Unsupported format: image/tiff"]
        assert validate_item(_item(size=0)) == ["File is empty"]
        assert validate_item(_item(size=MAX_FILE_SIZE + 1)) == ["File too large: 50 MB (max: 50 MB)"]

    def test_valid_batch(self):
        validate_batch([_item(), _item("b.png", media_type="image/png")], OPTIONS)

    def test_empty_batch_is_valid(self):
        validate_batch([], OPTIONS)

    def test_lists_every_problem(self):
        items = [_item("notes.txt", media_type="text/plain"), _item("empty.jpg", size=0)]

        with pytest.raises(ConfigurationError) as excinfo:
            validate_batch(items, OPTIONS)

        message = str(excinfo.value)
        assert "notes.txt: Unsupported format: text/plain" in message
        assert "empty.jpg: File is empty" in message

    def test_too_many_files(self):
        items = [_item(f"{i}.jpg") for i in range(MAX_FILES + 1)]

        with pytest.raises(ConfigurationError, match="Too many files: 101"):
            validate_batch(items, OPTIONS)

    def test_invalid_background_color(self):
        options = ProcessingOptions(width=10, background_color="not-a-color")

        with pytest.raises(ConfigurationError, match="Invalid background color"):
            validate_batch([_item()], options)

    def test_invalid_watermark_color(self):
        options = ProcessingOptions(width=10, watermark={"text": "x", "color": "nope"})

        with pytest.raises(ConfigurationError, match="Invalid watermark color"):
            validate_batch([_item()], options)

    def test_transparent_background_allowed(self):
        validate_batch([_item()], ProcessingOptions(width=10, background_color="transparent"))

    def test_missing_options(self):
        with pytest.raises(ConfigurationError, match="Processing options are required"):
            validate_batch([_item()], None)


class TestFilenames:
    """Tests for sanitize_filename and generate_output_filename."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("photo.jpg", "photo.jpg"),
            ("my photo.jpg", "my_photo.jpg"),
            ('a<b>c:"d|e?.png', "a_b_c_d_e_.png"),
            ("__x__", "x"),
        ],
    )
    def test_sanitize(self, name, expected):
        assert sanitize_filename(name) == expected

    def test_sanitize_truncates(self):
        assert len(sanitize_filename("a" * 300)) == 255

    @pytest.mark.parametrize(
        "args,expected",
        [
            (("photo.png",), "photo_resized.png"),
            (("photo.png", "_resized", "jpeg"), "photo_resized.jpeg"),
            (("archive.tar.gz", "_small"), "archive.tar_small.gz"),
            (("README",), "README_resized"),
            (("my pic.jpg", "", "webp"), "my_pic.webp"),
        ],
    )
    def test_generate_output_filename(self, args, expected):
        assert generate_output_filename(*args) == expected
