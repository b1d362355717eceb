"""Character extraction pipeline: chunk, extract in batches, deduplicate."""
from typing import Any, List, Optional

from utils.logger import setup_logger
from ingestion.chunker import WindowChunker
from extraction.models import Character
from extraction.worker import CharacterExtractor
from extraction.scheduler import BatchScheduler, BatchCallback
from extraction.dedupe import deduplicate_characters
import config

logger = setup_logger(__name__)

PLACEHOLDER_NAME = "Unnamed Character"


class InvalidDocumentError(ValueError):
    """Raised when the caller supplies an unusable document or chunk settings."""
    pass


class ExtractionError(Exception):
    """Raised when the extraction run itself fails."""
    pass


def assign_placeholder_names(characters: List[Character]) -> List[Character]:
    """Trim names and give nameless records a numbered placeholder.

    Args:
        characters: Raw extracted records

    Returns:
        Records whose names are all non-empty
    """
    named = []
    unnamed_count = 0

    for character in characters:
        name = character.name.strip()
        if not name:
            unnamed_count += 1
            name = f"{PLACEHOLDER_NAME} {unnamed_count}"
        named.append(character.model_copy(update={"name": name}))

    return named


class CharacterExtractionPipeline:
    """Turns a raw document into a unique list of characters."""

    def __init__(
        self,
        extractor: CharacterExtractor,
        batch_size: int = config.MAX_CHUNKS_PER_BATCH,
        max_chunk_size: int = config.MAX_CHUNK_SIZE
    ):
        """Initialize pipeline.

        Args:
            extractor: Per-chunk extraction worker
            batch_size: Maximum concurrent extraction calls
            max_chunk_size: Upper bound applied to caller-provided chunk sizes
        """
        self.scheduler = BatchScheduler(extractor, batch_size)
        self.max_chunk_size = max_chunk_size

    def validate(self, document: Any, chunk_size: int, chunk_overlap: int) -> WindowChunker:
        """Check the request and build the chunker for it.

        Raises:
            InvalidDocumentError: On an empty/non-string document or bad chunk settings
        """
        if not document or not isinstance(document, str):
            raise InvalidDocumentError("Invalid input document")

        if not document.strip():
            raise InvalidDocumentError("Empty document provided")

        if chunk_size < 1:
            raise InvalidDocumentError(f"chunkSize must be at least 1, got {chunk_size}")

        if chunk_overlap < 0:
            raise InvalidDocumentError(f"chunkOverlap must not be negative, got {chunk_overlap}")

        effective_size = min(chunk_size, self.max_chunk_size)
        if chunk_overlap >= effective_size:
            raise InvalidDocumentError(
                f"chunkOverlap ({chunk_overlap}) must be smaller than the chunk size ({effective_size})"
            )

        return WindowChunker(chunk_size=effective_size, overlap=chunk_overlap)

    async def run(
        self,
        document: Any,
        chunk_size: int = config.DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = config.DEFAULT_CHUNK_OVERLAP,
        on_batch_complete: Optional[BatchCallback] = None
    ) -> List[Character]:
        """Extract unique characters from a document.

        Args:
            document: Raw document text
            chunk_size: Requested window size (clamped to max_chunk_size)
            chunk_overlap: Characters shared by consecutive windows
            on_batch_complete: Progress callback forwarded to the scheduler

        Returns:
            Unique characters in first-seen order

        Raises:
            InvalidDocumentError: If the input is rejected before any work starts
            ExtractionError: If the batch run fails
        """
        chunker = self.validate(document, chunk_size, chunk_overlap)

        logger.info(f"Received document of length: {len(document)}")
        logger.info(f"Chunk size: {chunker.chunk_size}, Chunk overlap: {chunker.overlap}")

        chunks = chunker.chunk(document)
        for chunk in chunks:
            logger.debug(f"Chunk {chunk.chunk_index + 1}: [{chunk.start_char}, {chunk.end_char})")

        try:
            all_characters = await self.scheduler.run_all(
                [chunk.text for chunk in chunks],
                on_batch_complete=on_batch_complete
            )
        except Exception as e:
            logger.exception("Character extraction run failed")
            raise ExtractionError(str(e)) from e

        characters = deduplicate_characters(assign_placeholder_names(all_characters))
        logger.info(f"Extracted {len(characters)} unique characters")

        return characters
