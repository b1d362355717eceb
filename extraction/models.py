"""Pydantic models for character extraction."""
from typing import Any
from pydantic import BaseModel, field_validator


class Character(BaseModel):
    """Character record extracted from source text."""
    name: str = ""
    description: str = ""
    personality: str = ""

    @field_validator("name", "description", "personality", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        # Models occasionally emit null or bare numbers for these fields
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, list):
            return ", ".join(str(item) for item in value)
        return value

    @property
    def key(self) -> str:
        """Case-insensitive identity used for deduplication."""
        return self.name.lower()
