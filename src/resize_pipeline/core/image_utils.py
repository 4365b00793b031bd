"""Image resizing utilities: the local resize capability, built on Pillow."""

import io
from typing import Dict, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .exceptions import ItemProcessingError
from .models import (
    Dimensions,
    ProcessingOptions,
    ResizedImage,
    WatermarkOptions,
    WatermarkPosition,
)

RESAMPLING_FILTERS: Dict[str, "Image.Resampling"] = {
    "lanczos": Image.Resampling.LANCZOS,
    "bicubic": Image.Resampling.BICUBIC,
    "bilinear": Image.Resampling.BILINEAR,
    "nearest": Image.Resampling.NEAREST,
}

PIL_FORMATS = {"jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}

WATERMARK_MARGIN = 10


def calculate_dimensions(
    original_width: int,
    original_height: int,
    target_width: Optional[int],
    target_height: Optional[int],
    maintain_aspect_ratio: bool = True,
) -> Tuple[int, int]:
    """
    Compute output dimensions for a resize.

    With the aspect ratio kept and both targets given, the image is fitted
    inside the target box. A single target scales the other side. Without
    the aspect ratio, missing targets fall back to the original size.

    Returns:
        (width, height), each at least 1 pixel
    """
    if not maintain_aspect_ratio:
        width = target_width or original_width
        height = target_height or original_height
    elif target_width and target_height:
        ratio = min(target_width / original_width, target_height / original_height)
        width = round(original_width * ratio)
        height = round(original_height * ratio)
    elif target_width:
        width = target_width
        height = round(target_width * original_height / original_width)
    elif target_height:
        width = round(target_height * original_width / original_height)
        height = target_height
    else:
        width, height = original_width, original_height

    return max(1, int(width)), max(1, int(height))


def parse_color(color: str) -> Tuple[int, int, int]:
    """Parse a CSS-style color ("#fff", "white", "rgb(1,2,3)")."""
    rgb = ImageColor.getrgb(color)
    return rgb[0], rgb[1], rgb[2]


def has_background(color: Optional[str]) -> bool:
    return bool(color) and color != "transparent"


def apply_background(
    img: "Image.Image", output_format: str, background_color: Optional[str]
) -> "Image.Image":
    """
    Flatten transparency onto a solid color.

    JPEG has no alpha channel, so it is always flattened (white unless a
    background color is given).
    """
    if output_format != "jpeg" and not has_background(background_color):
        return img

    color = parse_color(background_color) if has_background(background_color) else (255, 255, 255)
    canvas = Image.new("RGBA", img.size, color + (255,))
    canvas.alpha_composite(img.convert("RGBA"))
    return canvas.convert("RGB")


def _watermark_origin(
    position: WatermarkPosition,
    image_size: Tuple[int, int],
    text_size: Tuple[int, int],
) -> Tuple[int, int]:
    img_w, img_h = image_size
    text_w, text_h = text_size
    vertical, _, horizontal = position.value.partition("-")
    if position is WatermarkPosition.CENTER:
        vertical, horizontal = "center", "center"

    x = {
        "left": WATERMARK_MARGIN,
        "center": (img_w - text_w) // 2,
        "right": img_w - text_w - WATERMARK_MARGIN,
    }[horizontal]
    y = {
        "top": WATERMARK_MARGIN,
        "center": (img_h - text_h) // 2,
        "bottom": img_h - text_h - WATERMARK_MARGIN,
    }[vertical]
    return max(0, x), max(0, y)


def apply_watermark(img: "Image.Image", watermark: WatermarkOptions) -> "Image.Image":
    """Draw semi-transparent watermark text onto a copy of ``img``."""
    base = img.convert("RGBA")
    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    font = ImageFont.load_default(size=watermark.font_size)

    left, top, right, bottom = draw.textbbox((0, 0), watermark.text, font=font)
    origin = _watermark_origin(
        watermark.position, base.size, (right - left, bottom - top)
    )
    fill = parse_color(watermark.color) + (int(round(255 * watermark.opacity)),)
    draw.text(origin, watermark.text, font=font, fill=fill)

    composed = Image.alpha_composite(base, overlay)
    return composed if img.mode == "RGBA" else composed.convert("RGB")


def encode_image(img: "Image.Image", options: ProcessingOptions) -> bytes:
    """Encode ``img`` in the requested output format and quality."""
    output = io.BytesIO()
    quality = options.quality_percent
    pil_format = PIL_FORMATS[options.output_format]

    if pil_format == "JPEG":
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        img.save(output, format=pil_format, quality=quality)
    elif pil_format == "PNG":
        compress_level = max(0, min(9, 9 - round(quality / 11)))
        img.save(output, format=pil_format, compress_level=compress_level)
    else:
        img.save(output, format=pil_format, quality=quality)

    return output.getvalue()


def _working_copy(img: "Image.Image") -> "Image.Image":
    if img.mode in ("RGB", "RGBA"):
        return img
    if img.mode in ("P", "LA", "PA") or "transparency" in img.info:
        return img.convert("RGBA")
    return img.convert("RGB")


def resize_image_bytes(
    payload: bytes, original_size: int, options: ProcessingOptions
) -> ResizedImage:
    """
    Decode, resize, decorate and re-encode one image.

    All Pillow objects are scoped to this call and closed on every exit path.

    Raises:
        ItemProcessingError: if the payload cannot be decoded or encoded
    """
    try:
        with Image.open(io.BytesIO(payload)) as source:
            source.load()
            original = Dimensions(width=source.width, height=source.height)
            width, height = calculate_dimensions(
                source.width,
                source.height,
                options.width,
                options.height,
                options.maintain_aspect_ratio,
            )

            working = _working_copy(source)
            resized = working.resize(
                (width, height), resample=RESAMPLING_FILTERS[options.algorithm]
            )
            resized = apply_background(
                resized, options.output_format, options.background_color
            )
            if options.watermark_enabled:
                resized = apply_watermark(resized, options.watermark)

            encoded = encode_image(resized, options)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ItemProcessingError(f"Image resize failed: {exc}") from exc

    return ResizedImage(
        original_size=original_size,
        new_size=len(encoded),
        original_dimensions=original,
        new_dimensions=Dimensions(width=width, height=height),
        encoded_payload=encoded,
        media_type=options.media_type,
    )
