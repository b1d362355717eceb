"""Character deduplication."""
from typing import Dict, Iterable, List

from extraction.models import Character


def deduplicate_characters(characters: Iterable[Character]) -> List[Character]:
    """Keep the first record for each case-insensitive name.

    Later records with the same name are dropped without merging. Names are
    not trimmed here.

    Args:
        characters: Records in extraction order

    Returns:
        Unique records in first-seen order
    """
    unique: Dict[str, Character] = {}

    for character in characters:
        if character.key not in unique:
            unique[character.key] = character

    return list(unique.values())
