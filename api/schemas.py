"""Request and response bodies of the HTTP API."""
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

import config


class SplitRequest(BaseModel):
    """Character extraction request; the document is validated by the pipeline."""
    model_config = ConfigDict(populate_by_name=True)

    document: Any = None
    chunk_size: int = Field(default=config.DEFAULT_CHUNK_SIZE, alias="chunkSize")
    chunk_overlap: int = Field(default=config.DEFAULT_CHUNK_OVERLAP, alias="chunkOverlap")


class SectionsRequest(BaseModel):
    sections: Any = None

    def valid_sections(self, allow_empty: bool = True) -> List[str] | None:
        """Return the sections if they are a list of strings, else None."""
        if not isinstance(self.sections, list):
            return None
        if not allow_empty and not self.sections:
            return None
        if not all(isinstance(section, str) for section in self.sections):
            return None
        return self.sections

