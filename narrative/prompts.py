"""LLM prompt templates for story generation."""
from typing import List

from extraction.models import Character

STORY_SYSTEM_PROMPT = """You are a creative storyteller. Write vivid, original short stories in Markdown.
Start with a '#' title, use '##' headings for chapters or scenes, and separate paragraphs with a blank line.
Write only the story itself, with no preface or closing remarks."""


def format_character_list(characters: List[Character]) -> str:
    if not characters:
        return "No characters were provided; invent a small cast that suits the setting."

    lines = []
    for character in characters:
        line = f"- {character.name}"
        if character.description:
            line += f": {character.description}"
        if character.personality:
            line += f" (Personality: {character.personality})"
        lines.append(line)
    return "\n".join(lines)


def story_prompt(tone: str, setting: str, characters: List[Character]) -> str:
    """Generate the user prompt for a story.

    Args:
        tone: Desired tone, e.g. "whimsical"
        setting: Where and when the story takes place
        characters: Cast to feature

    Returns:
        Formatted prompt string
    """
    return f"""Write a {tone} story set in {setting}.

Feature these characters, keeping them true to their descriptions and personalities:
{format_character_list(characters)}"""
