"""HTTP consumer of the story-generation endpoint."""
from typing import AsyncIterator, Optional

import httpx

from utils.logger import setup_logger
from narrative.models import StoryRequest
from narrative.reformatter import SnapshotCallback, StoryStreamReformatter

logger = setup_logger(__name__)


class StoryClient:
    """Streams a story from the API and keeps a formatted snapshot."""

    def __init__(self, http_client: httpx.AsyncClient, endpoint: str = "/api/chat"):
        """Initialize client.

        Args:
            http_client: Client whose base_url points at the API
            endpoint: Story-generation route
        """
        self.http_client = http_client
        self.endpoint = endpoint

    async def _deltas(self, payload: dict) -> AsyncIterator[str]:
        async with self.http_client.stream("POST", self.endpoint, json=payload, timeout=None) as response:
            if not response.is_success:
                await response.aread()
                raise httpx.HTTPStatusError(
                    f"HTTP {response.status_code}: {response.text[:200]}",
                    request=response.request,
                    response=response
                )
            async for delta in response.aiter_text():
                yield delta

    async def generate(
        self,
        request: StoryRequest,
        on_update: Optional[SnapshotCallback] = None
    ) -> StoryStreamReformatter:
        """Generate a story, reformatting after every received delta.

        Args:
            request: Story parameters
            on_update: Called with the formatted snapshot after each delta

        Returns:
            The reformatter in its terminal state (COMPLETE or ERROR)
        """
        payload = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        logger.debug(f"Requesting story from {self.endpoint}")

        return await StoryStreamReformatter().consume(self._deltas(payload), on_update)
