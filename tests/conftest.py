"""Shared fixtures: generated test images and WebP capability control."""

from __future__ import annotations

import io

import pytest
from PIL import Image, features

import format_support
from image_compression import ImageFile


def make_photo(size: tuple[int, int], mode: str = "RGB") -> Image.Image:
    """Noisy gradient, so it compresses like a photo rather than a flat fill."""
    noise = Image.effect_noise(size, 48)
    gradient_x = Image.linear_gradient("L").resize(size)
    gradient_y = Image.linear_gradient("L").rotate(90).resize(size)
    image = Image.merge("RGB", (noise, gradient_x, gradient_y))
    if mode == "RGBA":
        image = image.convert("RGBA")
        image.putalpha(Image.linear_gradient("L").resize(size))
    return image


def encode(image: Image.Image, pil_format: str, **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **params)
    return buffer.getvalue()


def make_file(
    size: tuple[int, int],
    pil_format: str = "JPEG",
    filename: str = "latte.jpg",
    content_type: str = "image/jpeg",
    mode: str = "RGB",
) -> ImageFile:
    params = {"quality": 95} if pil_format == "JPEG" else {}
    data = encode(make_photo(size, mode), pil_format, **params)
    return ImageFile(data=data, filename=filename, content_type=content_type)


def open_result(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


@pytest.fixture
def webp_supported(monkeypatch):
    if not features.check("webp"):
        pytest.skip("Pillow built without WebP support")
    monkeypatch.setattr(format_support, "_webp_supported", True)


@pytest.fixture
def webp_unsupported(monkeypatch):
    monkeypatch.setattr(format_support, "_webp_supported", False)


@pytest.fixture
def jpeg_2000x1000() -> ImageFile:
    return make_file((2000, 1000))


@pytest.fixture
def png_300x300() -> ImageFile:
    return make_file((300, 300), "PNG", "croissant.png", "image/png")
