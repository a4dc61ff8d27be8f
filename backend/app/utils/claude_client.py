from anthropic import AsyncAnthropic, APIStatusError, APIError, APIConnectionError, APITimeoutError
from typing import Optional, Dict, List, Any
import asyncio
import random
import httpx
from app.core.config import settings
from app.core.logging_config import logger

# Retry configuration - loaded from settings
MAX_RETRIES = settings.CLAUDE_MAX_RETRIES
BASE_DELAY = settings.CLAUDE_RETRY_BASE_DELAY
MAX_DELAY = settings.CLAUDE_RETRY_MAX_DELAY
REQUEST_TIMEOUT = float(settings.TALKING_POINTS_TIMEOUT)
CONNECT_TIMEOUT = float(settings.CLAUDE_CONNECT_TIMEOUT)
RETRYABLE_ERRORS = ['overloaded_error', 'rate_limit_error', 'api_error']
RETRYABLE_STATUS_CODES = [429, 500, 502, 503, 529]


class ClaudeClient:
    """Claude API client wrapper for non-streaming requests"""

    def __init__(self, api_key: Optional[str] = None):
        client_kwargs = {"api_key": api_key or settings.ANTHROPIC_API_KEY}

        # Only set base_url if it's a non-empty string with actual content
        if settings.ANTHROPIC_BASE_URL and settings.ANTHROPIC_BASE_URL.strip():
            client_kwargs["base_url"] = settings.ANTHROPIC_BASE_URL.strip()
            logger.info(f"Using custom Claude API base URL: {settings.ANTHROPIC_BASE_URL}")

        client_kwargs["timeout"] = httpx.Timeout(
            connect=CONNECT_TIMEOUT,
            read=REQUEST_TIMEOUT,
            write=REQUEST_TIMEOUT,
            pool=REQUEST_TIMEOUT
        )
        # Retries are ours, with backoff, inside the caller's overall timeout
        client_kwargs["max_retries"] = 0

        self.async_client = AsyncAnthropic(**client_kwargs)
        self.model = settings.CLAUDE_HAIKU_MODEL

        logger.info(f"Claude client initialized: timeout={REQUEST_TIMEOUT}s, model={self.model}")

    def _is_retryable_error(self, error: Exception) -> bool:
        """Check if an error is retryable (overload, rate limit, network issues)"""
        if isinstance(error, (APIConnectionError, APITimeoutError)):
            logger.warning(f"Network error detected (retryable): {type(error).__name__}")
            return True

        if isinstance(error, (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError)):
            logger.warning(f"HTTPX network error detected (retryable): {type(error).__name__}")
            return True

        if isinstance(error, APIStatusError):
            if isinstance(error.body, dict):
                error_type = error.body.get('error', {}).get('type', '')
                if error_type in RETRYABLE_ERRORS:
                    return True
            return error.status_code in RETRYABLE_STATUS_CODES

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff and jitter"""
        delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
        # Add jitter (0-25% of delay)
        jitter = delay * random.uniform(0, 0.25)
        return delay + jitter

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        messages: Optional[List[Dict[str, str]]] = None
    ) -> Dict[str, Any]:
        """
        Generate response from Claude (non-streaming)

        Returns:
            Dict with content and usage metadata
        """
        messages = list(messages or [])
        messages.append({"role": "user", "content": prompt})

        if max_tokens is None:
            max_tokens = settings.CLAUDE_MAX_TOKENS
        if temperature is None:
            temperature = settings.CLAUDE_TEMPERATURE

        logger.info(f"Claude API: model={self.model}, max_tokens={max_tokens}, prompt_len={len(prompt)}")

        for attempt in range(MAX_RETRIES + 1):
            try:
                response = await self.async_client.messages.create(
                    model=self.model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    system=system_prompt or "",
                    messages=messages
                )

                content = response.content[0].text if response.content else ""
                result = {
                    "content": content,
                    "model": self.model,
                    "input_tokens": response.usage.input_tokens,
                    "output_tokens": response.usage.output_tokens,
                    "stop_reason": response.stop_reason,
                    "id": response.id
                }
                logger.info(f"Claude API response: id={response.id}, stop={response.stop_reason}")
                return result

            except (APIError, httpx.HTTPError) as e:
                error_type = type(e).__name__
                if self._is_retryable_error(e) and attempt < MAX_RETRIES:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"Claude API error [{error_type}] (attempt {attempt + 1}/{MAX_RETRIES + 1}), retrying in {delay:.1f}s...",
                        extra={
                            "event_type": "claude_api_retry",
                            "error_type": error_type,
                            "attempt": attempt + 1,
                            "retry_delay": delay
                        }
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        f"Claude API error (non-retryable or max retries exceeded): {error_type}: {e}",
                        extra={
                            "event_type": "claude_api_error",
                            "error_type": error_type,
                            "attempt": attempt + 1
                        }
                    )
                    raise


_claude_client: Optional[ClaudeClient] = None


def get_claude_client() -> ClaudeClient:
    """Shared client, created on first use so an unset API key never fails at import"""
    global _claude_client
    if _claude_client is None:
        _claude_client = ClaudeClient()
    return _claude_client
