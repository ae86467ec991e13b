"""
Generation Provider

This module wraps the Mistral chat model used to write answers. Calls are
rate limited and retried on transient errors; every other failure surfaces
as GenerationError so the orchestrator can degrade the affected question.
"""

import logging
import threading
import time
from typing import Any, Optional, Tuple

from langchain_core.messages import HumanMessage, SystemMessage

from .exceptions import GenerationError
from ..utils.config_manager import ConfigManager
from ..utils.retry_utils import RetryConfig, with_retry

logger = logging.getLogger(__name__)

# Completions this short are what the API returns when it is over capacity
MINIMAL_RESPONSES = {"", ".", "..", "..."}


def extract_token_usage(response: Any) -> int:
    """Read total token usage from a langchain chat response"""
    usage = getattr(response, 'usage_metadata', None)
    if usage and usage.get('total_tokens') is not None:
        return int(usage['total_tokens'])

    metadata = getattr(response, 'response_metadata', None) or {}
    token_usage = metadata.get('token_usage') or metadata.get('usage') or {}
    if isinstance(token_usage, dict):
        return int(token_usage.get('total_tokens', 0) or 0)
    return int(getattr(token_usage, 'total_tokens', 0) or 0)


class MistralGenerationProvider:
    """Chat completion through langchain's ChatMistralAI"""

    DEFAULT_MODEL = 'mistral-small-latest'
    DEFAULT_MAX_REQUESTS_PER_MINUTE = 60

    def __init__(self, llm=None, api_key: Optional[str] = None, model: str = DEFAULT_MODEL,
                 temperature: float = 0.1, max_tokens: int = 500, top_p: float = 0.9,
                 timeout: int = 120, retry_config: RetryConfig = None,
                 max_requests_per_minute: int = DEFAULT_MAX_REQUESTS_PER_MINUTE):
        if llm is None:
            if not api_key:
                raise GenerationError("MISTRAL_API_KEY is required for answer generation")
            from langchain_mistralai.chat_models import ChatMistralAI
            llm = ChatMistralAI(
                model=model,
                temperature=temperature,
                api_key=api_key,
                timeout=timeout,
                max_retries=0,
                max_tokens=max_tokens,
                top_p=top_p
            )
        self.llm = llm
        self.model = model
        self.retry_config = retry_config or RetryConfig()

        self._max_requests_per_minute = max(1, max_requests_per_minute)
        self._api_request_times = []
        self._rate_limit_lock = threading.Lock()
        self._invoke_with_retry = with_retry(self.retry_config)(self._invoke)

    def _wait_for_rate_limit(self):
        with self._rate_limit_lock:
            current_time = time.time()
            self._api_request_times = [t for t in self._api_request_times if current_time - t < 60]
            if len(self._api_request_times) >= self._max_requests_per_minute:
                wait_time = 60 - (current_time - self._api_request_times[0])
                if wait_time > 0:
                    logger.info(f"Rate limit reached, waiting {wait_time:.1f} seconds...")
                    time.sleep(wait_time)
            self._api_request_times.append(time.time())

    def _invoke(self, messages):
        self._wait_for_rate_limit()
        return self.llm.invoke(messages)

    def generate(self, system_prompt: str, user_prompt: str) -> Tuple[str, int]:
        """Generate a completion, returns (text, total_tokens)"""
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        try:
            response = self._invoke_with_retry(messages)
        except Exception as e:
            logger.error(f"Mistral generation failed: {e}")
            raise GenerationError(f"Answer generation failed: {e}", details={'model': self.model}) from e

        content = response.content if isinstance(response.content, str) else str(response.content)
        content = content.strip()
        if content in MINIMAL_RESPONSES:
            raise GenerationError("LLM returned minimal response - possible API capacity issue",
                                  details={'model': self.model})
        return content, extract_token_usage(response)


def build_generation_provider(config=None) -> MistralGenerationProvider:
    """Create the generation backend from configuration"""
    config_manager = config if isinstance(config, ConfigManager) else ConfigManager(config)
    return MistralGenerationProvider(
        api_key=config_manager.get('MISTRAL_API_KEY'),
        model=config_manager.get('MISTRAL_MODEL', MistralGenerationProvider.DEFAULT_MODEL),
        temperature=config_manager.get_float('TEMPERATURE', 0.1),
        max_tokens=config_manager.get_int('MAX_TOKENS', 500),
        top_p=config_manager.get_float('TOP_P', 0.9),
        timeout=config_manager.get_int('RESPONSE_TIMEOUT', 120),
        retry_config=config_manager.get_retry_config(),
        max_requests_per_minute=config_manager.get_int(
            'MAX_REQUESTS_PER_MINUTE', MistralGenerationProvider.DEFAULT_MAX_REQUESTS_PER_MINUTE)
    )


__all__ = ['MistralGenerationProvider', 'build_generation_provider', 'extract_token_usage']
