"""Template decoder: recipe blob bytes to a JSON object."""

from __future__ import annotations

import json
from typing import Any

from recipeforge.errors import TemplateDecodeError


def decode_template(data: bytes) -> dict[str, Any]:
    """Decode a recipe template.  No schema is enforced; the backend validates."""
    try:
        template = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise TemplateDecodeError(f"recipe template is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise TemplateDecodeError("recipe template is nested too deeply to decode") from exc
    if not isinstance(template, dict):
        raise TemplateDecodeError(
            f"recipe template must be a JSON object, got {type(template).__name__}"
        )
    return template
