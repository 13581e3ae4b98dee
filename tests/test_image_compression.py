"""Tests for the image compression pipeline and its caller-level fallback."""

from __future__ import annotations

import re

import pytest
from pydantic import ValidationError

import format_support
import image_compression
from conftest import make_file, open_result
from errors import CompressionError, DecodeFailure, EncodeFailure, UnsupportedEnvironment
from image_compression import (
    CompressedImage,
    CompressionOptions,
    ImageFile,
    compress_image,
    compress_image_async,
    compress_or_original,
    generate_file_name,
    is_image_file,
    resolve_format,
)


# ── Options ──────────────────────────────────────────────────────────────────

def test_options_defaults() -> None:
    opts = CompressionOptions()

    assert (opts.max_width, opts.max_height) == (800, 800)
    assert opts.quality == 0.85
    assert opts.target_format == "webp"


def test_options_are_immutable() -> None:
    opts = CompressionOptions(max_width=400)

    with pytest.raises(ValidationError):
        opts.max_width = 100


@pytest.mark.parametrize(
    "kwargs",
    [{"quality": 1.5}, {"quality": -0.1}, {"max_width": 0}, {"target_format": "gif"}],
)
def test_options_reject_invalid_values(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        CompressionOptions(**kwargs)


# ── End-to-end scenarios ─────────────────────────────────────────────────────

def test_large_jpeg_becomes_smaller_webp(webp_supported, jpeg_2000x1000: ImageFile) -> None:
    result = compress_image(jpeg_2000x1000)

    assert isinstance(result, CompressedImage)
    assert (result.width, result.height) == (800, 400)
    assert result.content_type == "image/webp"
    assert result.size < jpeg_2000x1000.size

    decoded = open_result(result.data)
    assert decoded.format == "WEBP"
    assert decoded.size == (800, 400)


def test_small_png_is_reencoded_without_resizing(webp_supported, png_300x300: ImageFile) -> None:
    result = compress_image(png_300x300)

    assert (result.width, result.height) == (300, 300)
    assert result.content_type == "image/webp"
    assert open_result(result.data).size == (300, 300)


def test_normalizing_twice_keeps_dimensions(webp_supported, jpeg_2000x1000: ImageFile) -> None:
    first = compress_image(jpeg_2000x1000)
    second = compress_image(first)

    assert (second.width, second.height) == (first.width, first.height)


def test_logo_preset_bounds(webp_supported, jpeg_2000x1000: ImageFile) -> None:
    opts = CompressionOptions(max_width=400, max_height=400, quality=0.9)

    result = compress_image(jpeg_2000x1000, opts)

    assert (result.width, result.height) == (400, 200)


def test_source_is_not_modified(webp_supported, jpeg_2000x1000: ImageFile) -> None:
    before = jpeg_2000x1000.data

    compress_image(jpeg_2000x1000)

    assert jpeg_2000x1000.data == before
    assert jpeg_2000x1000.filename == "latte.jpg"


# ── Format negotiation ───────────────────────────────────────────────────────

def test_webp_falls_back_to_jpeg_when_unsupported(webp_unsupported, jpeg_2000x1000: ImageFile) -> None:
    results = [compress_image(jpeg_2000x1000) for _ in range(3)]

    for result in results:
        assert result.content_type == "image/jpeg"
        assert result.format == "jpeg"
        assert result.filename.endswith(".jpeg")
        assert open_result(result.data).format == "JPEG"


@pytest.mark.parametrize("target", ["jpeg", "png"])
def test_non_webp_targets_pass_through(webp_unsupported, target: str) -> None:
    assert resolve_format(target) == target


def test_webp_target_kept_when_supported(webp_supported) -> None:
    assert resolve_format("webp") == "webp"


def test_png_target_keeps_transparency(webp_unsupported) -> None:
    source = make_file((500, 500), "PNG", "logo.png", "image/png", mode="RGBA")

    result = compress_image(source, CompressionOptions(target_format="png"))

    assert result.content_type == "image/png"
    assert open_result(result.data).mode == "RGBA"


def test_transparent_image_can_be_encoded_as_jpeg(webp_unsupported) -> None:
    source = make_file((500, 500), "PNG", "logo.png", "image/png", mode="RGBA")

    result = compress_image(source)

    assert result.content_type == "image/jpeg"
    assert open_result(result.data).mode == "RGB"


def test_quality_is_ignored_for_png(webp_unsupported, png_300x300: ImageFile) -> None:
    low = compress_image(png_300x300, CompressionOptions(target_format="png", quality=0.1))
    high = compress_image(png_300x300, CompressionOptions(target_format="png", quality=1.0))

    assert low.data == high.data


def test_quality_affects_lossy_output(webp_unsupported, jpeg_2000x1000: ImageFile) -> None:
    low = compress_image(jpeg_2000x1000, CompressionOptions(quality=0.2))
    high = compress_image(jpeg_2000x1000, CompressionOptions(quality=0.95))

    assert low.size < high.size


# ── Failures and fallback ────────────────────────────────────────────────────

def test_corrupt_source_raises_decode_failure(webp_unsupported) -> None:
    source = ImageFile(data=b"definitely not an image", filename="x.png", content_type="image/png")

    with pytest.raises(DecodeFailure):
        compress_image(source)


def test_injected_decode_failure_falls_back_to_identical_source(
    monkeypatch, webp_unsupported, jpeg_2000x1000: ImageFile
) -> None:
    def broken_decode(data: bytes):
        raise OSError("decoder exploded")

    monkeypatch.setattr(image_compression, "decode_image", broken_decode)

    with pytest.raises(DecodeFailure):
        compress_image(jpeg_2000x1000)

    result = compress_or_original(jpeg_2000x1000)
    assert result is jpeg_2000x1000
    assert (result.data, result.filename, result.content_type) == (
        jpeg_2000x1000.data,
        "latte.jpg",
        "image/jpeg",
    )


def test_encoder_failure_raises_encode_failure(
    monkeypatch, webp_unsupported, jpeg_2000x1000: ImageFile
) -> None:
    def broken_encode(image, fmt, quality):
        raise OSError("encoder exploded")

    monkeypatch.setattr(image_compression, "encode_image", broken_encode)

    with pytest.raises(EncodeFailure):
        compress_image(jpeg_2000x1000)


def test_empty_encoder_output_is_a_failure(
    monkeypatch, webp_unsupported, jpeg_2000x1000: ImageFile
) -> None:
    monkeypatch.setattr(image_compression, "encode_image", lambda image, fmt, quality: b"")

    with pytest.raises(EncodeFailure):
        compress_image(jpeg_2000x1000)


def test_missing_encoder_raises_unsupported_environment(
    monkeypatch, webp_unsupported, jpeg_2000x1000: ImageFile
) -> None:
    monkeypatch.setattr(format_support, "encoder_available", lambda fmt: False)

    with pytest.raises(UnsupportedEnvironment):
        compress_image(jpeg_2000x1000)
    assert compress_or_original(jpeg_2000x1000) is jpeg_2000x1000


def test_failures_share_a_base_class() -> None:
    for exc in (DecodeFailure, EncodeFailure, UnsupportedEnvironment):
        assert issubclass(exc, CompressionError)


# ── Async entry point ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_compress_image_async(webp_unsupported, jpeg_2000x1000: ImageFile) -> None:
    result = await compress_image_async(jpeg_2000x1000)

    assert (result.width, result.height) == (800, 400)
    assert result.content_type == "image/jpeg"


@pytest.mark.asyncio
async def test_compress_image_async_propagates_failure(webp_unsupported) -> None:
    source = ImageFile(data=b"\x00" * 10, filename="x.jpg", content_type="image/jpeg")

    with pytest.raises(DecodeFailure):
        await compress_image_async(source)


# ── Helpers ──────────────────────────────────────────────────────────────────

def test_generate_file_name_replaces_extension() -> None:
    name = generate_file_name("latte.photo.jpg", "webp")

    assert re.fullmatch(r"latte\.photo_\d+\.webp", name)


def test_generate_file_name_without_extension() -> None:
    assert re.fullmatch(r"espresso_\d+\.jpeg", generate_file_name("espresso", "jpeg"))


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("image/jpeg", True),
        ("image/webp", True),
        ("image/svg+xml", True),
        ("application/pdf", False),
        ("text/plain", False),
        ("", False),
        (None, False),
    ],
)
def test_is_image_file(content_type: str | None, expected: bool) -> None:
    assert is_image_file(content_type) is expected


def test_resize_goes_through_preprocessor(
    monkeypatch, webp_unsupported, jpeg_2000x1000: ImageFile
) -> None:
    from preprocessors import resize

    calls = []
    original_process = resize.process

    def spy(image, max_width, max_height):
        calls.append((image.size, max_width, max_height))
        return original_process(image, max_width, max_height)

    monkeypatch.setattr(resize, "process", spy)

    result = compress_image(jpeg_2000x1000, CompressionOptions(max_width=500, max_height=500))

    assert calls == [((2000, 1000), 500, 500)]
    assert (result.width, result.height) == (500, 250)


def test_resize_failure_raises_encode_failure(
    monkeypatch, webp_unsupported, jpeg_2000x1000: ImageFile
) -> None:
    from preprocessors import resize

    def broken_resize(image, max_width, max_height):
        raise MemoryError("no room for the resampled image")

    monkeypatch.setattr(resize, "process", broken_resize)

    with pytest.raises(EncodeFailure):
        compress_image(jpeg_2000x1000)
