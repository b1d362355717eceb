"""Pydantic models for ingestion module."""
from pydantic import BaseModel, Field
from typing import Dict, Any


class SourceDocument(BaseModel):
    """Represents an uploaded source document."""
    title: str
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TextChunk(BaseModel):
    """A window of the source document."""
    chunk_index: int
    text: str
    start_char: int
    end_char: int

    @property
    def length(self) -> int:
        return self.end_char - self.start_char
