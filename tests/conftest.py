"""Shared test fixtures."""

from __future__ import annotations

import json
from typing import List, Optional

import pytest

from perplexity_chat.errors import RequestError
from perplexity_chat.interfaces.llm_client import LLMClientInterface
from perplexity_chat.models.api_models import ApiSettings, CompletionResult, Message


ARTICLE = {
    "title": "Solar Power in 2024",
    "sections": [
        {
            "heading": "Overview",
            "content": "Capacity grew quickly [1] and costs fell [3].",
            "subsections": [
                {"heading": "Europe", "content": "Germany leads installs [2]."},
            ],
        },
        {"heading": "Outlook", "content": "Growth should continue [9]."},
    ],
    "summary_table": "| Region | GW |\n|--------|----|\n| EU | 56 |",
    "citations": [
        {"number": 1, "url": "https://iea.test/report"},
        {"number": 3, "url": "https://irena.test/costs"},
        {"number": 2, "url": "https://bnetza.test/solar"},
    ],
}


def completion_body(content: str, citations: Optional[List[str]] = None,
                    related_questions: Optional[List[str]] = None) -> dict:
    body = {
        "id": "cmpl-1",
        "model": "sonar",
        "object": "chat.completion",
        "created": 1700000000,
        "citations": citations or [],
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
                "delta": {"role": "assistant", "content": ""},
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
    }
    if related_questions is not None:
        body["related_questions"] = related_questions
    return body


class RecordingClient(LLMClientInterface):
    """LLM client that records calls and replays a canned body or error."""

    def __init__(self, body: Optional[dict] = None, error: Optional[Exception] = None):
        self.body = body if body is not None else completion_body(json.dumps(ARTICLE))
        self.error = error
        self.calls: List[tuple] = []
        self.on_call = None

    def chat(self, messages: List[Message], settings: ApiSettings) -> CompletionResult:
        self.calls.append((messages, settings))
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return CompletionResult.from_dict(self.body)


@pytest.fixture
def article() -> dict:
    return json.loads(json.dumps(ARTICLE))


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def failing_client() -> RecordingClient:
    return RecordingClient(error=RequestError("API request failed: Service Unavailable", 503))


@pytest.fixture
def make_body():
    return completion_body


@pytest.fixture
def make_client():
    return RecordingClient
