"""Perplexity chat-completions client"""

import logging
from typing import List

import requests

from ..errors import RequestError
from ..interfaces.llm_client import LLMClientInterface
from ..models.api_models import ApiSettings, CompletionResult, Message
from ..config import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)


class PerplexityClient(LLMClientInterface):
    """Client for the Perplexity API"""

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL, timeout: float = 60.0):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def build_payload(self, messages: List[Message], settings: ApiSettings) -> dict:
        """Request body: settings flattened next to the message list, never streamed"""
        payload = settings.to_payload()
        payload["messages"] = [message.to_api() for message in messages]
        payload["stream"] = False
        return payload

    def chat(self, messages: List[Message], settings: ApiSettings) -> CompletionResult:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        data = self.build_payload(messages, settings)
        logger.debug("Sending %d messages to %s (model=%s)", len(messages), self.base_url, settings.model)
        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=data,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error("Perplexity API call failed: %s", e)
            raise RequestError(f"API request failed: {e}") from e

        if not response.ok:
            logger.error("Perplexity API returned %s %s", response.status_code, response.reason)
            raise RequestError(f"API request failed: {response.reason}", response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise RequestError("API returned an invalid response body", response.status_code) from e
        if not isinstance(body, dict):
            raise RequestError("API returned an invalid response body", response.status_code)

        result = CompletionResult.from_dict(body)
        logger.debug(
            "Response received: %s choices, %s total tokens",
            len(result.choices), result.usage.total_tokens
        )
        return result
