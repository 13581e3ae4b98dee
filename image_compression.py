"""
Image compression before upload.

Shrinks user-supplied images to fit the configured bounds and re-encodes them,
preferring WebP and falling back to JPEG when this environment cannot handle
WebP. Defaults: max 800×800 px, 85% quality, WebP.

Compression failures are raised as CompressionError subclasses; upload flows
should go through compress_or_original(), which returns the untouched source
file instead.
"""
import asyncio
import logging
import math
import re
import time
from dataclasses import dataclass
from typing import Literal

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, PositiveInt

import format_support
from errors import CompressionError, DecodeFailure, EncodeFailure, UnsupportedEnvironment
from image_processor import decode_image, encode_image, mime_type
from preprocessors import resize

logger = logging.getLogger(__name__)

FALLBACK_FORMAT = "jpeg"

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


class CompressionOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_width:     PositiveInt = 800
    max_height:    PositiveInt = 800
    quality:       float = Field(default=0.85, ge=0.0, le=1.0)
    target_format: Literal["webp", "jpeg", "png"] = "webp"


@dataclass(frozen=True)
class ImageFile:
    """An in-memory file as received from, or sent to, the browser/storage."""

    data:         bytes
    filename:     str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CompressedImage(ImageFile):
    width:  int = 0
    height: int = 0
    format: str = ""


def resolve_format(target_format: str) -> str:
    """Return the format actually used for a requested target format.

    Only WebP is negotiated: when the runtime cannot handle it, JPEG is used.
    JPEG and PNG requests pass through unchanged.
    """
    if target_format == "webp" and not format_support.supports_webp():
        return FALLBACK_FORMAT
    return target_format


def generate_file_name(original_name: str, fmt: str) -> str:
    """Replace the extension with `fmt` and add a millisecond timestamp."""
    name_without_ext = _EXTENSION_RE.sub("", original_name)
    timestamp = time.time_ns() // 1_000_000
    return f"{name_without_ext}_{timestamp}.{fmt}"


def is_image_file(content_type: str | None) -> bool:
    """Check the declared MIME type. Does not guarantee the bytes decode."""
    return bool(content_type) and content_type.startswith("image/")


def format_file_size(size: int) -> str:
    """Human-readable file size: 0 → "0 Bytes", 1536 → "1.5 KB"."""
    if size < 0:
        raise ValueError(f"File size cannot be negative: {size}")
    if size == 0:
        return "0 Bytes"

    k = 1024
    i = 0
    while i < len(_SIZE_UNITS) - 1 and size >= k ** (i + 1):
        i += 1

    # round half up to two decimals
    value = math.floor(size / k ** i * 100 + 0.5) / 100
    text = str(int(value)) if value.is_integer() else str(value)
    return f"{text} {_SIZE_UNITS[i]}"


def _log_result(source: ImageFile, result: CompressedImage) -> None:
    saved = (source.size - result.size) / source.size * 100 if source.size else 0.0
    logger.info(
        "Image compressed: original=%.2f KB compressed=%.2f KB saved=%.1f%% dimensions=%dx%d format=%s",
        source.size / 1024,
        result.size / 1024,
        saved,
        result.width,
        result.height,
        result.format,
    )


def compress_image(source: ImageFile, options: CompressionOptions | None = None) -> CompressedImage:
    """
    Resize and re-encode an image file.

    Args:
        source:  The uploaded file. It is only read, never modified.
        options: Bounds, quality and preferred format (defaults if omitted).

    Returns:
        A new CompressedImage with the effective format's MIME type and a
        fresh filename.

    Raises:
        DecodeFailure:          source bytes are not a readable image.
        UnsupportedEnvironment: Pillow has no encoder for the effective format.
        EncodeFailure:          resampling or encoding failed.
    """
    opts = options or CompressionOptions()
    fmt = resolve_format(opts.target_format)

    if not format_support.encoder_available(fmt):
        raise UnsupportedEnvironment(f"No encoder available for {fmt}")

    try:
        image = decode_image(source.data)
    except (Image.DecompressionBombError, MemoryError) as e:
        raise DecodeFailure(f"Image too large to decode: {e}") from e
    except Exception as e:
        raise DecodeFailure(f"Failed to load image: {e}") from e

    try:
        image = resize.process(image, opts.max_width, opts.max_height)
        data = encode_image(image, fmt, opts.quality)
    except Exception as e:
        raise EncodeFailure(f"Failed to compress image: {e}") from e

    if not data:
        raise EncodeFailure("Encoder produced no data")

    width, height = image.size
    result = CompressedImage(
        data=data,
        filename=generate_file_name(source.filename, fmt),
        content_type=mime_type(fmt),
        width=width,
        height=height,
        format=fmt,
    )
    _log_result(source, result)
    return result


async def compress_image_async(
    source: ImageFile,
    options: CompressionOptions | None = None,
) -> CompressedImage:
    """Run compress_image on a worker thread and await the result."""
    return await asyncio.to_thread(compress_image, source, options)


def compress_or_original(source: ImageFile, options: CompressionOptions | None = None) -> ImageFile:
    """Compress an image, or return the original file if compression fails."""
    try:
        return compress_image(source, options)
    except CompressionError as e:
        logger.warning("Compression failed for %s, using original: %s", source.filename, e)
        return source
