"""
OpenAI API client for CloudDecode.

This module provides the async transport used to explain commands. It owns
authentication, request pacing and the translation of OpenAI failures into
RemoteServiceError sentinels.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)

from cloudecode.config import api_manager
from cloudecode.config.settings import settings
from cloudecode.explainer.errors import (
    KEY_AUTH_REQUIRED,
    KEY_LEAKED,
    QUOTA_EXCEEDED,
    RemoteServiceError,
)
from cloudecode.explainer.prompt_builder import PromptBuilder
from cloudecode.utils.platform_utils import get_platform_info

logger = logging.getLogger(__name__)

# Phrases OpenAI uses when a key has been revoked after exposure
REVOKED_KEY_MARKERS = ("leak", "revoked", "disabled")


class OpenAIClient:
    """
    Async client for the OpenAI chat completions API.

    The key is read from ``key_source`` on every request, so a credential
    selected mid-session is picked up by the next call.
    """

    def __init__(
        self,
        key_source: Callable[[], Optional[str]] = api_manager.get_api_key,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        """
        Initialize the OpenAI client.

        Args:
            key_source (Callable[[], Optional[str]]): Returns the current key.
            model (Optional[str]): Model name. Defaults to the api.model setting.
            timeout (Optional[float]): Request timeout in seconds. Defaults to
                the api.timeout setting.
            prompt_builder (Optional[PromptBuilder]): Prompt construction.
        """
        self.key_source = key_source
        self.model = model or settings.get("api", "model", "gpt-4.1-mini-2025-04-14")
        self.timeout = timeout or settings.get_request_timeout()
        self.temperature = settings.get("api", "temperature", 0.2)
        self.prompt_builder = prompt_builder or PromptBuilder()

        self.last_request_time = 0.0
        self.min_request_interval = float(
            settings.get("api", "min_request_interval", 0.5)
        )

        logger.info(f"OpenAI client initialized with model {self.model}")

    async def _handle_rate_limit(self) -> None:
        """
        Handle rate limiting by ensuring minimum time between requests.
        """
        current_time = time.time()
        time_since_last_request = current_time - self.last_request_time

        if time_since_last_request < self.min_request_interval:
            delay = self.min_request_interval - time_since_last_request
            logger.debug(f"Rate limiting: waiting {delay:.2f} seconds")
            await asyncio.sleep(delay)

        self.last_request_time = time.time()

    async def explain_command(self, query: str) -> str:
        """
        Ask the model to explain a command.

        Args:
            query (str): The command string, sent unchanged.

        Returns:
            str: The raw JSON text returned by the model.

        Raises:
            RemoteServiceError: With a sentinel message for leaked keys,
                missing or rejected authentication, and exhausted quota;
                with a descriptive message otherwise.
        """
        api_key = self.key_source()
        if not api_key:
            logger.error("No API key available for the request")
            raise RemoteServiceError(KEY_AUTH_REQUIRED)

        await self._handle_rate_limit()

        info = get_platform_info()
        messages = self.prompt_builder.build_explanation_prompt(
            query, context=f"The user is on {info['os_name']} {info['os_version']}."
        )
        logger.debug(
            f"Explaining command with {self.model} "
            f"(key {api_manager.mask_api_key(api_key)})"
        )

        try:
            async with AsyncOpenAI(api_key=api_key, timeout=self.timeout) as client:
                response = await client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    response_format={"type": "json_object"},
                )

        except AuthenticationError as e:
            logger.error(f"Authentication failed: {e}")
            raise RemoteServiceError(KEY_AUTH_REQUIRED) from e

        except PermissionDeniedError as e:
            logger.error(f"Permission denied: {e}")
            if any(marker in str(e).lower() for marker in REVOKED_KEY_MARKERS):
                raise RemoteServiceError(KEY_LEAKED) from e
            raise RemoteServiceError(f"Permission denied by OpenAI API: {e}") from e

        except RateLimitError as e:
            logger.error(f"Rate limit or quota exceeded: {e}")
            raise RemoteServiceError(QUOTA_EXCEEDED) from e

        except APITimeoutError as e:
            logger.error(f"Request timed out after {self.timeout}s")
            raise RemoteServiceError(
                "Request timed out. Please check your connection and try again."
            ) from e

        except APIConnectionError as e:
            logger.error(f"Connection error during API request: {e}")
            raise RemoteServiceError(f"Network error during API request: {e}") from e

        except APIStatusError as e:
            logger.error(f"OpenAI API error: {e}")
            raise RemoteServiceError(f"Error communicating with OpenAI API: {e}") from e

        except httpx.HTTPError as e:
            logger.error(f"HTTP error during API request: {e}")
            raise RemoteServiceError(f"Network error during API request: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error("Empty response from API")
            raise RemoteServiceError("Empty response from API")

        return content
