"""Chat-completion clients used for extraction and story generation."""
import abc
from typing import Any, AsyncIterator, Dict, List, Literal, Optional, Tuple

from anthropic import AsyncAnthropic
from pydantic import BaseModel

from execution.retry_handler import RetryHandler
from utils.logger import setup_logger
import config

logger = setup_logger(__name__)


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class BaseChatClient(abc.ABC):
    """Language-model chat-completion collaborator."""

    @abc.abstractmethod
    async def complete(
        self,
        messages: List[ChatMessage],
        temperature: float,
        max_tokens: Optional[int] = None
    ) -> str:
        """Return the full text of a single non-streamed completion"""
        pass

    @abc.abstractmethod
    def stream(
        self,
        messages: List[ChatMessage],
        temperature: float,
        max_tokens: Optional[int] = None,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None
    ) -> AsyncIterator[str]:
        """Yield text deltas of a streamed completion in arrival order"""
        pass

    async def aclose(self) -> None:
        pass


def split_system(messages: List[ChatMessage]) -> Tuple[str, List[Dict[str, str]]]:
    """Separate system messages from the conversation turns.

    Args:
        messages: Role-tagged messages

    Returns:
        Joined system text and the remaining messages as dicts
    """
    system = "\n\n".join(m.content for m in messages if m.role == "system")
    turns = [{"role": m.role, "content": m.content} for m in messages if m.role != "system"]
    return system, turns


class AnthropicChatClient(BaseChatClient):
    """Chat client backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: Optional[str] = config.ANTHROPIC_API_KEY,
        model: str = config.ANTHROPIC_MODEL,
        retry_handler: Optional[RetryHandler] = None,
        client: Optional[AsyncAnthropic] = None
    ):
        self.client = client or AsyncAnthropic(api_key=api_key)
        self.model = model
        self.retry_handler = retry_handler or RetryHandler()
        self.total_tokens_used = 0

        logger.info(f"AnthropicChatClient initialized with model: {model}")

    def _request_kwargs(
        self,
        messages: List[ChatMessage],
        temperature: float,
        max_tokens: Optional[int],
        top_k: Optional[int] = None,
        top_p: Optional[float] = None
    ) -> Dict[str, Any]:
        system, turns = split_system(messages)
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or config.EXTRACTION_MAX_TOKENS,
            "temperature": temperature,
            "messages": turns,
        }
        if system:
            kwargs["system"] = system
        if top_k is not None:
            kwargs["top_k"] = top_k
        if top_p is not None:
            kwargs["top_p"] = top_p
        return kwargs

    async def complete(
        self,
        messages: List[ChatMessage],
        temperature: float,
        max_tokens: Optional[int] = None
    ) -> str:
        kwargs = self._request_kwargs(messages, temperature, max_tokens)
        message = await self.retry_handler.execute_with_retry(self.client.messages.create, **kwargs)

        self.total_tokens_used += message.usage.input_tokens + message.usage.output_tokens

        return "".join(block.text for block in message.content if block.type == "text")

    async def stream(
        self,
        messages: List[ChatMessage],
        temperature: float,
        max_tokens: Optional[int] = None,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None
    ) -> AsyncIterator[str]:
        kwargs = self._request_kwargs(messages, temperature, max_tokens, top_k, top_p)

        async with self.client.messages.stream(**kwargs) as stream:
            async for text in stream.text_stream:
                yield text

            final = await stream.get_final_message()
            self.total_tokens_used += final.usage.input_tokens + final.usage.output_tokens

    async def aclose(self) -> None:
        await self.client.close()
