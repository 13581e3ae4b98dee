"""
Handler: Pastry Metadata
Fills in flavour/texture tags, sweetness, richness and allergens from a pastry name.
"""
from pydantic import BaseModel

from ai_client import call_ai

DEFAULTS: dict = {
    "flavor_tags":     "",
    "texture_tags":    "",
    "sweetness":       3,
    "richness":        3,
    "popularity_hint": 0.6,
    "allergen_info":   "",
}


class AiResponse(BaseModel):
    flavor_tags:     str
    texture_tags:    str
    sweetness:       int      # 1 (low) – 5 (very sweet)
    richness:        int      # 1 (light) – 5 (very rich)
    popularity_hint: float    # 0.0 – 1.0
    allergen_info:   str


def _build_prompt(name: str) -> str:
    return (
        "You are a pastry and bakery expert. Describe the pastry below using what "
        "is publicly known about it.\n\n"
        f"Pastry name: {name}\n\n"
        "Return a JSON object with:\n"
        "  - flavor_tags: comma-separated flavour descriptors (e.g. \"almond, butter, vanilla\")\n"
        "  - texture_tags: comma-separated texture descriptors (e.g. \"flaky, crispy, buttery\")\n"
        "  - sweetness: integer 1-5 (1 = low, 5 = very sweet)\n"
        "  - richness: integer 1-5 (1 = light, 5 = very rich)\n"
        "  - popularity_hint: number 0.0-1.0 (0 = rare, 1 = bestseller)\n"
        "  - allergen_info: common allergens, \"None known\", or empty string\n\n"
        "If information is not found use: sweetness 3, richness 3, popularity_hint 0.6, "
        "allergen_info \"Contains gluten\", and infer the tags from the pastry type."
    )


def _clamp(value, default, cast, low, high):
    try:
        number = cast(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(low, min(high, number))


def _with_defaults(ai_raw: dict) -> dict:
    metadata = {key: ai_raw.get(key) or default for key, default in DEFAULTS.items()}
    for key in ("sweetness", "richness"):
        metadata[key] = _clamp(metadata[key], DEFAULTS[key], int, 1, 5)
    metadata["popularity_hint"] = _clamp(
        metadata["popularity_hint"], DEFAULTS["popularity_hint"], float, 0.0, 1.0
    )
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
