"""
AI backend: Google Gemini
Uses gemini-2.5-flash-lite with structured JSON output for item metadata.
Requires GEMINI_API_KEY in environment.
"""
import os
import json

from google import genai
from google.genai import types

MODEL = "gemini-2.5-flash-lite"


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def call(prompt: str, response_schema) -> dict:
    """Send a prompt to Gemini and return the parsed JSON response.

    Args:
        prompt:          Text prompt describing the item.
        response_schema: Pydantic model class used as the structured output schema.

    Returns:
        Parsed JSON response as a dict.
    """
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise RuntimeError(
            "GEMINI_API_KEY is not set. Copy .env.example to .env and add your key."
        )

    client = genai.Client(api_key=api_key)

    try:
        response = client.models.generate_content(
            model=MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=response_schema,
                temperature=0.3,
            ),
        )
    except Exception as e:
        msg = str(e)
        if "429" in msg or "RESOURCE_EXHAUSTED" in msg:
            raise RuntimeError(
                "Gemini API quota exceeded — free tier limit reached. "
                "Wait and try again, or use a different key."
            ) from e
        raise

    # Prefer response.parsed (SDK-parsed Pydantic object)
    parsed = getattr(response, "parsed", None)
    if parsed is not None:
        result = parsed.model_dump()
    else:
        raw_text = response.text or ""
        if not raw_text:
            raise RuntimeError("AI response text is empty")
        try:
            result = json.loads(_strip_code_fence(raw_text))
        except json.JSONDecodeError as e:
            snippet = raw_text[:500]
            raise RuntimeError(
                f"AI returned a response that could not be parsed as JSON. "
                f"(Detail: {e})\n\n--- RAW RESPONSE (first 500 chars) ---\n{snippet}"
            ) from e

    result["_model"] = MODEL
    return result
