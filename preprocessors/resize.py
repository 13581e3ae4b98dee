"""
Preprocessor: Resize

Proportionally shrinks images to fit within max_width × max_height.
Smaller images are NOT upscaled — they are returned unchanged.
Uses LANCZOS resampling for best downscale quality.

The clamp is applied in two passes: width first, then height on the
width-corrected result. An image that is still too tall after the width
pass gets a second correction; the aspect ratio used is always the
original one.
"""
from PIL import Image

MAX_WIDTH  = 800
MAX_HEIGHT = 800


def fit_dimensions(
    width: int,
    height: int,
    max_width: int = MAX_WIDTH,
    max_height: int = MAX_HEIGHT,
) -> tuple[int, int]:
    """Return the (width, height) an image of the given size is resized to."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")

    aspect_ratio = width / height
    new_w: float = width
    new_h: float = height

    if new_w > max_width:
        new_w = max_width
        new_h = new_w / aspect_ratio

    if new_h > max_height:
        new_h = max_height
        new_w = new_h * aspect_ratio

    return max(1, round(new_w)), max(1, round(new_h))


def process(image: Image.Image, max_width: int = MAX_WIDTH, max_height: int = MAX_HEIGHT) -> Image.Image:
    """
    Return a proportionally resized copy if the image exceeds the size limit.
    If the image already fits, the original object is returned unchanged.
    """
    w, h = image.size
    if w <= max_width and h <= max_height:
        return image  # already within limits — don't upscale

    new_size = fit_dimensions(w, h, max_width, max_height)
    return image.resize(new_size, Image.LANCZOS)
