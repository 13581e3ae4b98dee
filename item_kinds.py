# ─────────────────────────────────────────────────────────────────────────────
#  Item kind registry
#
#  Each menu item kind maps to a metadata handler module in handlers/ and a
#  storage bucket for its photos.
#
#  Per-kind config fields:
#    handler             — module name in handlers/ (e.g. "coffee")
#    name                — display name
#    bucket              — storage bucket for item photos
#    compression_preset  — key into site_config.COMPRESSION_PRESETS
# ─────────────────────────────────────────────────────────────────────────────

ITEM_KINDS: dict[str, dict] = {

    "coffee": {
        "handler":            "coffee",
        "name":               "Coffee",
        "bucket":             "coffee-images",
        "compression_preset": "item",
    },

    "pastry": {
        "handler":            "pastry",
        "name":               "Pastry",
        "bucket":             "pastry-images",
        "compression_preset": "item",
    },

}
