"""
Runtime format capability checks.

The WebP probe decodes a tiny known-good 2×2 lossy WebP once per process and
caches the answer. Pillow builds without libwebp fail the probe, and every
compression request in that process then falls back to JPEG.
"""
import base64
import io
import logging

from PIL import Image, features

from image_processor import PIL_FORMATS

logger = logging.getLogger(__name__)

_WEBP_SAMPLE = base64.b64decode(
    "UklGRjoAAABXRUJQVlA4IC4AAACyAgCdASoCAAIALmk0mk0iIiIiIgBoSygABc6WWgAA/veff/0PP8bA//LwYAAA"
)
_WEBP_SAMPLE_SIZE = (2, 2)

# None until the first probe; never reset afterwards.
# Two threads racing on the first call both probe and store the same value.
_webp_supported: bool | None = None


def _probe_webp() -> bool:
    try:
        with Image.open(io.BytesIO(_WEBP_SAMPLE)) as sample:
            sample.load()
            return sample.size == _WEBP_SAMPLE_SIZE
    except Exception as e:
        logger.info("WebP probe failed: %s", e)
        return False


def supports_webp() -> bool:
    """Return True when this environment can decode (and so encode) WebP."""
    global _webp_supported
    if _webp_supported is None:
        _webp_supported = _probe_webp()
        logger.debug("WebP support: %s", _webp_supported)
    return _webp_supported


def encoder_available(fmt: str) -> bool:
    """Whether Pillow has a registered writer for an output format name."""
    pil_format = PIL_FORMATS.get(fmt)
    if pil_format is None:
        return False
    Image.init()
    if pil_format not in Image.SAVE:
        return False
    if fmt == "webp":
        return bool(features.check("webp"))
    if fmt == "jpeg":
        return bool(features.check("jpg"))
    if fmt == "png":
        return bool(features.check("zlib"))
    return True
