"""LLM prompt templates for character extraction."""

CHARACTER_SYSTEM_PROMPT = """You are a helpful assistant that extracts character information from text.
For each character, provide their 'name', a brief 'description', and their 'personality' traits.
Return only a JSON array of objects in the following format:

[
  {
    "name": "Character Name",
    "description": "Brief description",
    "personality": "Personality traits"
  }
]

Do not include any additional text, explanations, or notes. If you find no characters, return an empty JSON array []."""


def character_extraction_prompt(chunk: str) -> str:
    """Generate the user prompt for one chunk.

    Args:
        chunk: Document chunk

    Returns:
        Formatted prompt string
    """
    return (
        "Extract all characters from the following text, and provide their "
        "'name', 'description', and 'personality' in a JSON array format.\n\n"
        f"Text:\n\n{chunk}"
    )
