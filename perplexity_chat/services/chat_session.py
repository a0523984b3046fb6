"""Chat session state"""

import logging
from dataclasses import replace
from typing import List, Optional

from ..errors import RequestError, SubmissionBlocked
from ..interfaces.key_store import KeyStoreInterface
from ..interfaces.llm_client import LLMClientInterface
from ..models.api_models import ApiSettings, DEFAULT_SETTINGS, Message
from .query_builder import StructuredQueryBuilder

ERROR_MESSAGE = "Sorry, there was an error processing your request."

logger = logging.getLogger(__name__)


class ChatSession:
    """Ordered messages plus the transient state of one chat

    One request may be outstanding at a time. Failures are turned into a
    single apology message so the session keeps going.
    """

    def __init__(
        self,
        builder: StructuredQueryBuilder,
        key_store: KeyStoreInterface,
        settings: Optional[ApiSettings] = None
    ):
        self.builder = builder
        self.key_store = key_store
        self.settings = settings or DEFAULT_SETTINGS
        self.messages: List[Message] = []
        self.related_questions: List[str] = []
        self.is_loading = False
        self.api_key = key_store.load()

    def set_api_key(self, api_key: str) -> None:
        self.api_key = api_key
        self.key_store.save(api_key)

    def use_client(self, llm_client: LLMClientInterface) -> None:
        """Send future questions through ``llm_client``, e.g. after the key changed"""
        self.builder = StructuredQueryBuilder(llm_client)

    def can_submit(self, text: str) -> bool:
        return not self.is_loading and bool(self.api_key) and bool(text.strip())

    def use_related_question(self, question: str) -> str:
        """Pick a suggestion; returns the text to place in the input box"""
        self.related_questions = []
        return question

    def submit(self, text: str) -> Message:
        """Send ``text`` and record the exchange

        Returns:
            The assistant message appended to the session

        Raises:
            SubmissionBlocked: If a request is in flight, no key is set, or the text is blank
        """
        if not self.can_submit(text):
            raise SubmissionBlocked("Cannot submit while loading, without an API key, or with empty input")

        question = text.strip()
        self.messages.append(Message(role="user", content=question))
        self.related_questions = []
        self.is_loading = True
        try:
            result = self.builder.ask(question, self.settings)
            reply = Message(
                role="assistant",
                content=result.content,
                citations=result.citations,
                is_research_response=True,
            )
            related = list(result.related_questions or [])
        except RequestError as e:
            logger.error("Error: %s", e)
            reply = Message(role="assistant", content=ERROR_MESSAGE)
            related = []
        finally:
            self.is_loading = False

        self.messages.append(reply)
        self.related_questions = related
        return reply

    def clear(self) -> None:
        self.messages = []
        self.related_questions = []

    def update_settings(self, settings: ApiSettings) -> None:
        self.settings = replace(settings, stream=False)
