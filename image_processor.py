"""Shared Pillow utilities: decoding uploaded bytes and encoding output formats."""
import io

from PIL import Image, ImageOps

# ── Format tables ─────────────────────────────────────────────────────────────
# Output formats are named the way they appear in MIME types (image/<format>).
PIL_FORMATS: dict[str, str] = {
    "webp": "WEBP",
    "jpeg": "JPEG",
    "png":  "PNG",
}

LOSSLESS_FORMATS = {"png"}

EXTENSION_MIME: dict[str, str] = {
    "jpg":  "image/jpeg",
    "jpeg": "image/jpeg",
    "png":  "image/png",
    "webp": "image/webp",
    "gif":  "image/gif",
}

JPEG_BACKGROUND = (255, 255, 255)


def mime_type(fmt: str) -> str:
    return f"image/{fmt}"


def guess_mime(filename: str, default: str = "application/octet-stream") -> str:
    if "." not in filename:
        return default
    return EXTENSION_MIME.get(filename.rsplit(".", 1)[1].lower(), default)


def _has_alpha(image: Image.Image) -> bool:
    return "A" in image.getbands() or "transparency" in image.info


def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw bytes into a fully loaded image.

    EXIF orientation is applied so phone photos are not stored sideways.
    The result is RGBA when the source carries transparency, RGB otherwise.
    Raises whatever Pillow raises for unreadable data.
    """
    image = Image.open(io.BytesIO(data))
    image.load()
    image = ImageOps.exif_transpose(image)
    return image.convert("RGBA" if _has_alpha(image) else "RGB")


def encode_image(image: Image.Image, fmt: str, quality: float) -> bytes:
    """
    Encode an image as `fmt` ("webp", "jpeg" or "png").

    quality is a 0–1 fraction; lossless formats ignore it.
    """
    pil_format = PIL_FORMATS[fmt]
    params: dict = {}

    if fmt not in LOSSLESS_FORMATS:
        params["quality"] = max(1, min(100, round(quality * 100)))

    if fmt == "jpeg":
        # JPEG has no alpha channel; transparent areas become white
        if image.mode != "RGB":
            background = Image.new("RGB", image.size, JPEG_BACKGROUND)
            if _has_alpha(image):
                rgba = image.convert("RGBA")
                background.paste(rgba, mask=rgba.getchannel("A"))
            else:
                background.paste(image.convert("RGB"))
            image = background
        params.update(optimize=True, progressive=True)
    elif fmt == "webp":
        params["method"] = 4
    elif fmt == "png":
        params["optimize"] = True

    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **params)
    return buffer.getvalue()
