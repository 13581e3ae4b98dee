import os
import logging
import traceback
import importlib
from datetime import datetime

from flask import Flask, request, jsonify, send_file, Response
from dotenv import load_dotenv

from errors import StorageError
from image_compression import (
    CompressionOptions,
    ImageFile,
    compress_or_original,
    format_file_size,
    is_image_file,
)
from image_processor import guess_mime
from item_kinds import ITEM_KINDS
from logging_config import configure_logging
from site_config import COMPRESSION_PRESETS, SITE_CONFIG, STORAGE_CONFIG, TRANSFORM_DEFAULTS
from storage import LocalStorage

load_dotenv()
configure_logging()

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = SITE_CONFIG["max_upload_bytes"]
app.config["STORAGE_ROOT"]       = STORAGE_CONFIG["root"]
app.config["PUBLIC_BASE_URL"]    = STORAGE_CONFIG["public_base_url"]

ERROR_LOG = "last_error.log"


# ── Helpers ───────────────────────────────────────────────────────────────────

def _log_error(context: str, exc: Exception) -> None:
    """Write the last error with timestamp to last_error.log (no user data)."""
    with open(ERROR_LOG, "w", encoding="utf-8") as f:
        f.write(f"[{datetime.now().isoformat(timespec='seconds')}] {context}\n\n")
        if exc.__traceback__:
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=f)
        else:
            f.write(f"{type(exc).__name__}: {exc}\n")


def _storage() -> LocalStorage:
    return LocalStorage(
        app.config["STORAGE_ROOT"],
        app.config["PUBLIC_BASE_URL"],
        STORAGE_CONFIG["buckets"],
    )


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _get_handler(kind: str):
    handler_name = ITEM_KINDS[kind]["handler"]
    return importlib.import_module(f"handlers.{handler_name}")


def _upload_image(preset: str, bucket: str):
    """Validate, compress (or keep the original) and store the uploaded image."""
    file = request.files.get("image")
    if not file or not file.filename:
        return _error("No file received.", 400)
    if not is_image_file(file.mimetype):
        return _error(SITE_CONFIG["invalid_image_message"], 400)

    source = ImageFile(data=file.read(), filename=file.filename, content_type=file.mimetype)
    logger.info("Original image: %s (%s)", source.filename, format_file_size(source.size))

    options = CompressionOptions(**COMPRESSION_PRESETS[preset])
    stored  = compress_or_original(source, options)

    try:
        uploaded = _storage().upload(stored, bucket)
    except StorageError as e:
        _log_error(f"upload bucket={bucket}", e)
        return _error(str(e), 500)

    return jsonify({
        "public_url":    uploaded["public_url"],
        "path":          uploaded["path"],
        "bucket":        bucket,
        "filename":      stored.filename,
        "content_type":  stored.content_type,
        "compressed":    stored is not source,
        "original_size": format_file_size(source.size),
        "stored_size":   format_file_size(stored.size),
    }), 201


@app.errorhandler(413)
def too_large(e):
    limit = app.config["MAX_CONTENT_LENGTH"]
    return _error(f"File is too large. Maximum upload size is {format_file_size(limit)}.", 413)


# ── Routes ────────────────────────────────────────────────────────────────────

@app.route("/robots.txt")
def robots_txt():
    return Response("User-agent: *\nDisallow: /\n", mimetype="text/plain")


@app.route("/items/<kind>/image", methods=["POST"])
def upload_item_image(kind: str):
    if kind not in ITEM_KINDS:
        return _error(f"Unknown item kind: {kind}", 404)
    cfg = ITEM_KINDS[kind]
    return _upload_image(cfg["compression_preset"], cfg["bucket"])


@app.route("/cafe/logo", methods=["POST"])
def upload_logo():
    return _upload_image("logo", STORAGE_CONFIG["logo_bucket"])


@app.route("/images/<bucket>/<path:path>", methods=["DELETE"])
def delete_image(bucket: str, path: str):
    try:
        _storage().delete(bucket, path)
    except StorageError as e:
        return _error(str(e), 400)
    return "", 204


@app.route("/storage/<bucket>/<path:path>")
def serve_image(bucket: str, path: str):
    try:
        location = _storage().local_path(bucket, path)
    except StorageError as e:
        return _error(str(e), 404)
    if not location.is_file():
        return _error("Not found.", 404)
    return send_file(os.path.abspath(location), mimetype=guess_mime(path))


@app.route("/compress-image", methods=["POST"])
def compress_stored_image():
    """Return a render-time transformation URL for an already stored image."""
    body    = request.get_json(silent=True) or {}
    bucket  = body.get("bucket")
    path    = body.get("path")
    width   = body.get("maxWidth", TRANSFORM_DEFAULTS["max_width"])
    quality = body.get("quality", TRANSFORM_DEFAULTS["quality"])

    if not bucket or not path:
        return _error("bucket and path are required", 400)

    logger.info("Compressing image: %s/%s", bucket, path)
    storage = _storage()
    try:
        original_size = len(storage.download(bucket, path))
    except StorageError as e:
        return _error(str(e), 400)

    return jsonify({
        "success":        True,
        "originalSize":   original_size,
        "transformedUrl": storage.transform_url(bucket, path, width=width, quality=quality),
        "message": (
            "Image compressed via URL transformation. "
            f"Original: {round(original_size / 1024)}KB"
        ),
    })


@app.route("/items/<kind>/metadata", methods=["POST"])
def generate_metadata(kind: str):
    if kind not in ITEM_KINDS:
        return _error(f"Unknown item kind: {kind}", 404)

    body = request.get_json(silent=True) or {}
    name = (body.get("name") or "").strip()
    if not name:
        return _error("name is required", 400)

    result = _get_handler(kind).process(name)
    if result.get("error"):
        # Safe defaults are still returned so the form can be filled in manually
        _log_error(f"metadata kind={kind}", RuntimeError(result["error"]))
        logger.error("Metadata generation failed for %s %r: %s", kind, name, result["error"])

    return jsonify({
        "kind":     kind,
        "name":     name,
        "metadata": result["metadata"],
        "model":    result.get("model", ""),
        "error":    result.get("error"),
    })


if __name__ == "__main__":
    print("Starting on http://localhost:5000")
    app.run(debug=True, port=5000)
