"""
Centralized service configuration.
Edit this file to change compression presets or storage buckets.
Deployment-specific values (paths, URLs, keys) come from the environment / .env.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# ── Compression presets ──────────────────────────────────────────────────────
# Keys match CompressionOptions fields.
COMPRESSION_PRESETS: dict[str, dict] = {
    # Coffee / pastry item photos
    "item": {
        "max_width":     800,
        "max_height":    800,
        "quality":       0.85,
        "target_format": "webp",
    },
    # Café logo: smaller, higher quality
    "logo": {
        "max_width":     400,
        "max_height":    400,
        "quality":       0.9,
        "target_format": "webp",
    },
}

# ── Storage ──────────────────────────────────────────────────────────────────
STORAGE_CONFIG = {
    "root":            os.environ.get("STORAGE_ROOT", "storage"),
    "public_base_url": os.environ.get("PUBLIC_BASE_URL", "http://localhost:5000"),
    "buckets":         ("coffee-images", "pastry-images", "cafe-logos"),
    "logo_bucket":     "cafe-logos",
}

# Defaults for the render-time transformation endpoint (/compress-image)
TRANSFORM_DEFAULTS = {
    "max_width": 1200,
    "quality":   80,
}

SITE_CONFIG = {
    "max_upload_bytes": 16 * 1024 * 1024,  # 16 MB
    "invalid_image_message": "Please upload a valid image file (JPG, PNG, WebP)",
}
