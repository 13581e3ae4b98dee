"""
AI client dispatcher for item metadata.

Handlers pass a text prompt (built from the item name) and a pydantic schema;
the backend named by AI_PROVIDER (default: gemini_api) returns the parsed JSON.
A backend is a module ai_backends/<name>.py exposing call(prompt, response_schema).
"""
import os
import importlib

from dotenv import load_dotenv

load_dotenv()


def call_ai(prompt: str, response_schema) -> dict:
    """Send a text prompt to the active AI backend and return parsed JSON.

    Args:
        prompt:          Text prompt describing the item to look up.
        response_schema: Pydantic model class for structured output.

    Returns:
        Parsed JSON response as a dict.
    """
    load_dotenv(override=True)  # re-read .env so changes apply without server restart
    provider = os.environ.get("AI_PROVIDER", "gemini_api")
    try:
        backend = importlib.import_module(f"ai_backends.{provider}")
    except ModuleNotFoundError:
        raise RuntimeError(
            f"AI backend '{provider}' not found. "
            f"Create ai_backends/{provider}.py or change AI_PROVIDER in .env."
        )
    return backend.call(prompt, response_schema)
