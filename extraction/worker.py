"""Per-chunk character extraction."""
from typing import List

from utils.logger import setup_logger
from execution.llm_client import BaseChatClient, ChatMessage
from extraction.models import Character
from extraction.parser import extract_json_array, parse_characters
from extraction import prompts
import config

logger = setup_logger(__name__)


class CharacterExtractor:
    """Extracts character records from a single chunk using an LLM.

    Best-effort: any failure while calling the model or parsing its answer
    yields an empty list for that chunk, so one bad chunk never aborts a run.
    """

    def __init__(
        self,
        llm_client: BaseChatClient,
        system_prompt: str = prompts.CHARACTER_SYSTEM_PROMPT,
        temperature: float = config.EXTRACTION_TEMPERATURE,
        max_tokens: int = config.EXTRACTION_MAX_TOKENS
    ):
        """Initialize extractor.

        Args:
            llm_client: Chat-completion client
            system_prompt: Fixed extraction instructions
            temperature: Sampling temperature
            max_tokens: Output token ceiling per call
        """
        self.llm_client = llm_client
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def extract(self, chunk: str, chunk_number: int = 1) -> List[Character]:
        """Extract characters from one chunk.

        Args:
            chunk: Chunk text
            chunk_number: 1-based position, used for logging only

        Returns:
            Characters found in the chunk (empty on any failure)
        """
        if not chunk.strip():
            return []

        messages = [
            ChatMessage(role="system", content=self.system_prompt),
            ChatMessage(role="user", content=prompts.character_extraction_prompt(chunk)),
        ]

        try:
            logger.info(f"Processing chunk {chunk_number}")

            result = await self.llm_client.complete(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
            logger.debug(f"Model response for chunk {chunk_number}:\n{result}")

            json_string = extract_json_array(result or "")
            logger.debug(f"Extracted JSON for chunk {chunk_number}:\n{json_string}")

            return parse_characters(json_string)
        except Exception as e:
            logger.warning(f"Error processing chunk {chunk_number}: {e}")
            return []
