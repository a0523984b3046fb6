"""Interface for chat-completion clients"""

from abc import ABC, abstractmethod
from typing import List

from ..models.api_models import ApiSettings, CompletionResult, Message


class LLMClientInterface(ABC):
    """Abstract base class for LLM clients"""

    @abstractmethod
    def chat(self, messages: List[Message], settings: ApiSettings) -> CompletionResult:
        """Execute chat completion

        Args:
            messages: Ordered conversation to send
            settings: Request options

        Returns:
            Parsed response envelope
        """
        pass
