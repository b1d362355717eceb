"""Pydantic models for story generation."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from extraction.models import Character
import config


class StoryRequest(BaseModel):
    """Parameters for one story-generation request."""
    model_config = ConfigDict(populate_by_name=True)

    tone: str
    setting: str
    characters: List[Character] = Field(default_factory=list)
    temperature: float = Field(default=config.STORY_TEMPERATURE, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, alias="topK", ge=1)
    top_p: Optional[float] = Field(default=None, alias="topP", gt=0.0, le=1.0)


class StreamState(str, Enum):
    """Lifecycle of a story stream as seen by its consumer."""
    STREAMING = "streaming"
    COMPLETE = "complete"
    ERROR = "error"
