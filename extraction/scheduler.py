"""Sequential batches of concurrent extraction calls."""
import asyncio
from typing import Callable, List, Optional, Sequence

from utils.logger import setup_logger
from extraction.models import Character
from extraction.worker import CharacterExtractor
import config

logger = setup_logger(__name__)

BatchCallback = Callable[[int, int], None]


class BatchScheduler:
    """Runs extraction workers in bounded concurrent batches.

    Batches run strictly in order; chunks inside a batch run concurrently and
    their results are concatenated in chunk order, not completion order.
    """

    def __init__(
        self,
        extractor: CharacterExtractor,
        batch_size: int = config.MAX_CHUNKS_PER_BATCH
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.extractor = extractor
        self.batch_size = batch_size

    def partition(self, chunks: Sequence[str]) -> List[Sequence[str]]:
        """Split chunks into consecutive groups of at most batch_size."""
        return [chunks[i:i + self.batch_size] for i in range(0, len(chunks), self.batch_size)]

    async def run_all(
        self,
        chunks: Sequence[str],
        on_batch_complete: Optional[BatchCallback] = None
    ) -> List[Character]:
        """Extract characters from every chunk.

        Args:
            chunks: Ordered chunk texts
            on_batch_complete: Called with (completed_batches, total_batches)

        Returns:
            Flat list of characters in chunk order
        """
        batches = self.partition(chunks)
        all_characters: List[Character] = []

        for batch_number, batch in enumerate(batches):
            offset = batch_number * self.batch_size
            logger.info(
                f"Starting batch {batch_number + 1}/{len(batches)} "
                f"(chunks {offset + 1}-{offset + len(batch)})"
            )

            results = await asyncio.gather(*(
                self.extractor.extract(chunk, offset + index + 1)
                for index, chunk in enumerate(batch)
            ))

            for characters in results:
                all_characters.extend(characters)

            if on_batch_complete:
                on_batch_complete(batch_number + 1, len(batches))

        return all_characters
