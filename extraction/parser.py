"""Parsing of character arrays out of free-form model output."""
import json
import re
from typing import Any, List

from pydantic import ValidationError

from utils.logger import setup_logger
from extraction.models import Character

logger = setup_logger(__name__)

# First '[' through the first ']' after it
JSON_ARRAY_PATTERN = re.compile(r'\[\s*[\s\S]*?\s*\]', re.MULTILINE)

EMPTY_ARRAY = "[]"


def extract_json_array(response_text: str) -> str:
    """Locate the JSON array embedded in a model response.

    Args:
        response_text: Raw model output, possibly wrapped in prose or code fences

    Returns:
        The matched array substring, or "[]" when there is none
    """
    match = JSON_ARRAY_PATTERN.search(response_text)
    if match:
        return match.group(0)

    logger.warning("No JSON array found in the model response")
    return EMPTY_ARRAY


def parse_characters(payload: str) -> List[Character]:
    """Parse a JSON array string into Character records.

    Items that are not objects, or that fail validation, are skipped.

    Args:
        payload: JSON array text

    Returns:
        Parsed characters in array order

    Raises:
        json.JSONDecodeError: If payload is not valid JSON
        ValueError: If payload is valid JSON but not an array
    """
    data: Any = json.loads(payload)

    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array, got {type(data).__name__}")

    characters = []
    for item in data:
        if not isinstance(item, dict):
            logger.debug(f"Skipping non-object array item: {item!r}")
            continue
        try:
            characters.append(Character.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Skipping invalid character record {item!r}: {e}")

    return characters
