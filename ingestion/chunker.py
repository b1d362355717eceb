"""Fixed-size overlapping window chunking."""
from typing import List
from utils.logger import setup_logger
from ingestion.models import TextChunk
import config

logger = setup_logger(__name__)


def split_text_into_chunks(text: str, chunk_size: int, chunk_overlap: int) -> List[str]:
    """Split text into overlapping windows of at most ``chunk_size`` characters.

    Consecutive windows share exactly ``chunk_overlap`` characters; the last
    window may be shorter.

    Args:
        text: Text to split
        chunk_size: Window size in characters
        chunk_overlap: Characters shared by consecutive windows

    Returns:
        Ordered list of chunk strings

    Raises:
        ValueError: If the size/overlap combination cannot make progress
    """
    return [chunk.text for chunk in _windows(text, chunk_size, chunk_overlap)]


def _windows(text: str, chunk_size: int, chunk_overlap: int) -> List[TextChunk]:
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
    if chunk_overlap < 0:
        raise ValueError(f"chunk_overlap must not be negative, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
        )

    chunks = []
    start = 0

    while start < len(text):
        end = min(start + chunk_size, len(text))
        chunks.append(
            TextChunk(
                chunk_index=len(chunks),
                text=text[start:end],
                start_char=start,
                end_char=end
            )
        )

        if end == len(text):
            break

        start = end - chunk_overlap

    return chunks


class WindowChunker:
    """Chunks document text into overlapping character windows."""

    def __init__(
        self,
        chunk_size: int = config.DEFAULT_CHUNK_SIZE,
        overlap: int = config.DEFAULT_CHUNK_OVERLAP
    ):
        """Initialize chunker.

        Args:
            chunk_size: Window size in characters
            overlap: Overlap size in characters
        """
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: str) -> List[TextChunk]:
        """Chunk text into windows that carry their character offsets.

        Args:
            text: Document text

        Returns:
            List of TextChunks in document order
        """
        chunks = _windows(text, self.chunk_size, self.overlap)
        logger.info(
            f"Split {len(text)} characters into {len(chunks)} chunks "
            f"({self.chunk_size} size, {self.overlap} overlap)"
        )
        return chunks
