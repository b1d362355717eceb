"""Server-side story generation stream."""
from typing import AsyncIterator

from utils.logger import setup_logger
from execution.llm_client import BaseChatClient, ChatMessage
from narrative.models import StoryRequest
from narrative import prompts
import config

logger = setup_logger(__name__)


class StoryGenerator:
    """Streams a narrative conditioned on tone, setting and characters."""

    def __init__(self, llm_client: BaseChatClient, max_tokens: int = config.STORY_MAX_TOKENS):
        self.llm_client = llm_client
        self.max_tokens = max_tokens

    def build_messages(self, request: StoryRequest) -> list:
        return [
            ChatMessage(role="system", content=prompts.STORY_SYSTEM_PROMPT),
            ChatMessage(
                role="user",
                content=prompts.story_prompt(request.tone, request.setting, request.characters)
            ),
        ]

    async def stream(self, request: StoryRequest) -> AsyncIterator[str]:
        """Yield story text deltas as the model produces them.

        Args:
            request: Story parameters

        Yields:
            Text deltas in arrival order
        """
        logger.info(
            f"Generating {request.tone} story in {request.setting} "
            f"with {len(request.characters)} characters"
        )

        delta_count = 0
        try:
            async for delta in self.llm_client.stream(
                self.build_messages(request),
                temperature=request.temperature,
                max_tokens=self.max_tokens,
                top_k=request.top_k,
                top_p=request.top_p
            ):
                delta_count += 1
                yield delta
        except Exception:
            logger.exception(f"Story stream failed after {delta_count} deltas")
            raise

        logger.info(f"Story stream finished after {delta_count} deltas")
