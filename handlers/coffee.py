"""
Handler: Coffee Metadata
Fills in roast, origin, flavour notes and ratings for a coffee from its name.
"""
from pydantic import BaseModel

from ai_client import call_ai

DEFAULTS: dict = {
    "roast_type":      "Medium",
    "preparation":     "",
    "sort_blend":      "",
    "origin":          "",
    "acidity":         3,
    "flavor_notes":    "",
    "season_hint":     "",
    "popularity_hint": 0.5,
    "is_core":         True,
    "is_guest":        False,
}

ROAST_TYPES  = ["Light", "Medium", "Medium-Dark", "Dark", "Espresso"]
SEASON_HINTS = ["fall", "winter", "spring", "summer", ""]


class AiResponse(BaseModel):
    roast_type:      str
    preparation:     str
    sort_blend:      str
    origin:          str
    acidity:         int      # 1 (low) – 5 (high)
    flavor_notes:    str
    season_hint:     str
    popularity_hint: float    # 0.0 (rare) – 1.0 (bestseller)
    is_core:         bool
    is_guest:        bool


def _build_prompt(name: str) -> str:
    return (
        "You are a coffee expert. Describe the coffee below using what is publicly "
        "known about it.\n\n"
        f"Coffee name: {name}\n\n"
        "Return a JSON object with:\n"
        f"  - roast_type: one of {ROAST_TYPES}\n"
        "  - preparation: common brewing methods (e.g. \"Espresso, French Press, Moka Pot\")\n"
        "  - sort_blend: bean composition (e.g. \"100% Arabica\", \"70% Arabica, 30% Robusta\")\n"
        "  - origin: country/region of origin (empty string if unknown)\n"
        "  - acidity: integer 1-5 (1 = low, 5 = high)\n"
        "  - flavor_notes: comma-separated flavour descriptors (e.g. \"chocolate, nutty, caramel\")\n"
        f"  - season_hint: one of {SEASON_HINTS}\n"
        "  - popularity_hint: number 0.0-1.0 (0 = rare, 1 = bestseller)\n"
        "  - is_core: true if commonly available year-round\n"
        "  - is_guest: true if seasonal or limited edition\n\n"
        "If information is not found use: roast_type \"Medium\", acidity 3, "
        "popularity_hint 0.5, is_core true, is_guest false, and infer flavor_notes "
        "from the name."
    )


def _clamp(value, default, cast, low, high):
    """Cast a numeric AI value into [low, high]; unparseable values give the default."""
    try:
        number = cast(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(low, min(high, number))


def _with_defaults(ai_raw: dict) -> dict:
    metadata = {}
    for key, default in DEFAULTS.items():
        value = ai_raw.get(key)
        if isinstance(default, bool):
            metadata[key] = default if value is None else bool(value)
        else:
            metadata[key] = value or default
    metadata["acidity"] = _clamp(metadata["acidity"], DEFAULTS["acidity"], int, 1, 5)
    metadata["popularity_hint"] = _clamp(
        metadata["popularity_hint"], DEFAULTS["popularity_hint"], float, 0.0, 1.0
    )
    if metadata["roast_type"] not in ROAST_TYPES:
        metadata["roast_type"] = DEFAULTS["roast_type"]
    if metadata["season_hint"] not in SEASON_HINTS:
        metadata["season_hint"] = ""
    return metadata


def process(name: str) -> dict:
    prompt = _build_prompt(name)

    try:
        ai_raw = call_ai(prompt, AiResponse)
    except Exception as e:
        return {"metadata": dict(DEFAULTS), "error": str(e), "model": "", "prompt": prompt}

    return {
        "metadata": _with_defaults(ai_raw),
        "error":    None,
        "model":    ai_raw.get("_model", ""),
        "prompt":   prompt,
    }
