"""Retry policy for transient LLM API failures."""
import logging
from typing import Any, Awaitable, Callable

import anthropic
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type, before_sleep_log

from utils.logger import setup_logger
import config

logger = setup_logger(__name__)

TRANSIENT_ERRORS = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.InternalServerError,
)


class RetryHandler:
    """Retries coroutine calls on rate-limit, connection and server errors."""

    def __init__(
        self,
        max_retries: int = config.MAX_RETRIES,
        base_delay: float = config.RETRY_BACKOFF_MULTIPLIER,
        max_delay: float = 60
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        **kwargs
    ) -> Any:
        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.base_delay, min=self.base_delay, max=self.max_delay),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )
        async def _wrapper():
            return await func(*args, **kwargs)

        return await _wrapper()
