import json
import re
from typing import Any

from studypet.domain.errors import ContentGenerationError

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences that models add despite instructions."""
    return _FENCE_RE.sub("", text).strip()


def parse_json_payload(text: str) -> Any:
    """
    Parse a JSON document out of a model completion.

    Raises:
        ContentGenerationError: If the cleaned text is not valid JSON.
    """
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ContentGenerationError(f"Failed to parse generated content: {e}") from e


def is_letter_option(option: str) -> bool:
    """True for placeholder options such as "A" or "B" instead of real answers."""
    return bool(re.fullmatch(r"[A-D]", option.strip()))
