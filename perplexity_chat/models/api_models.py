"""Data models for the Perplexity chat-completions API"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import MalformedCompletion

SUPPORTED_MODELS = ("sonar", "sonar-pro", "sonar-reasoning", "sonar-reasoning-pro")
DEFAULT_MODEL = "sonar"
RECENCY_FILTERS = ("hour", "day", "week", "month")
MAX_DOMAIN_FILTERS = 3


@dataclass(frozen=True)
class Message:
    """A single chat message"""
    role: str
    content: str
    citations: Optional[List[str]] = None
    is_research_response: bool = False

    def to_api(self) -> Dict[str, str]:
        """Wire form; citations and flags stay local"""
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ResponseFormat(ABC):
    """Base for structured output constraints"""

    @abstractmethod
    def to_payload(self) -> Dict[str, Any]:
        """Wire form of the constraint"""
        pass


@dataclass(frozen=True)
class JsonSchemaFormat(ResponseFormat):
    """Constrain the reply to a JSON schema"""
    schema: Dict[str, Any]

    def to_payload(self) -> Dict[str, Any]:
        return {"type": "json_schema", "json_schema": {"schema": self.schema}}


@dataclass(frozen=True)
class RegexFormat(ResponseFormat):
    """Constrain the reply to a regular expression (sonar only)"""
    regex: str

    def to_payload(self) -> Dict[str, Any]:
        return {"type": "regex", "regex": {"regex": self.regex}}


@dataclass(frozen=True)
class ApiSettings:
    """Request options sent alongside the message list"""
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    top_p: float = 0.9
    top_k: int = 0
    presence_penalty: float = 0.0
    frequency_penalty: float = 1.0
    max_tokens: Optional[int] = None
    return_images: bool = False
    return_related_questions: bool = False
    search_domain_filter: Optional[List[str]] = None
    search_recency_filter: Optional[str] = None
    response_format: Optional[ResponseFormat] = None
    stream: bool = False

    def validate(self) -> "ApiSettings":
        """Check option ranges

        Returns:
            The same settings object, for chaining

        Raises:
            ValueError: If any option is outside its accepted range
        """
        if self.model not in SUPPORTED_MODELS:
            raise ValueError(f"Unknown model '{self.model}', expected one of {', '.join(SUPPORTED_MODELS)}")
        if not 0 <= self.temperature <= 2:
            raise ValueError("temperature must be between 0 and 2")
        if not 0 <= self.top_p <= 1:
            raise ValueError("top_p must be between 0 and 1")
        if self.top_k < 0:
            raise ValueError("top_k must not be negative")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        if self.search_recency_filter is not None and self.search_recency_filter not in RECENCY_FILTERS:
            raise ValueError(f"search_recency_filter must be one of {', '.join(RECENCY_FILTERS)}")
        if self.search_domain_filter is not None and len(self.search_domain_filter) > MAX_DOMAIN_FILTERS:
            raise ValueError(f"At most {MAX_DOMAIN_FILTERS} domain filters are allowed")
        if self.response_format is not None and not isinstance(self.response_format, (JsonSchemaFormat, RegexFormat)):
            raise ValueError("response_format must be a JSON schema or a regex constraint")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Flatten the settings into a request body fragment, dropping unset options"""
        payload: Dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "presence_penalty": self.presence_penalty,
            "frequency_penalty": self.frequency_penalty,
            "return_images": self.return_images,
            "return_related_questions": self.return_related_questions,
            "stream": False,
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        if self.search_domain_filter:
            payload["search_domain_filter"] = list(self.search_domain_filter)
        if self.search_recency_filter:
            payload["search_recency_filter"] = self.search_recency_filter
        if self.response_format is not None:
            payload["response_format"] = self.response_format.to_payload()
        return payload


DEFAULT_SETTINGS = ApiSettings()


@dataclass
class Usage:
    """Token counters reported by the API"""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class Choice:
    """One completion choice"""
    index: int
    finish_reason: Optional[str]
    message: Message
    delta: Dict[str, str] = field(default_factory=dict)


@dataclass
class CompletionResult:
    """Envelope returned by the chat-completions endpoint"""
    id: str
    model: str
    object: str
    created: int
    citations: List[str]
    choices: List[Choice]
    usage: Usage
    related_questions: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompletionResult":
        """Build a result from the decoded response body

        Raises:
            MalformedCompletion: If choices, messages or content have the wrong shape
        """
        if not isinstance(data, dict):
            raise MalformedCompletion("Response body must be an object")
        raw_choices = data.get("choices") or []
        if not isinstance(raw_choices, list):
            raise MalformedCompletion("Response 'choices' must be a list")

        choices = []
        for raw in raw_choices:
            if not isinstance(raw, dict):
                raise MalformedCompletion("Each choice must be an object")
            message = raw.get("message") or {}
            if not isinstance(message, dict):
                raise MalformedCompletion("Choice 'message' must be an object")
            content = message.get("content")
            if content is None:
                content = ""
            if not isinstance(content, str):
                raise MalformedCompletion("Message content must be a string")
            delta = raw.get("delta")
            choices.append(Choice(
                index=raw.get("index", len(choices)),
                finish_reason=raw.get("finish_reason"),
                message=Message(role=message.get("role", "assistant"), content=content),
                delta=delta if isinstance(delta, dict) else {},
            ))

        citations = data.get("citations") or []
        if not isinstance(citations, list) or not all(isinstance(url, str) for url in citations):
            raise MalformedCompletion("Response 'citations' must be a list of urls")
        related_questions = data.get("related_questions")
        if related_questions is not None and not isinstance(related_questions, list):
            raise MalformedCompletion("Response 'related_questions' must be a list")
        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        return cls(
            id=data.get("id", ""),
            model=data.get("model", ""),
            object=data.get("object", ""),
            created=data.get("created", 0),
            citations=list(citations),
            choices=choices,
            usage=Usage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            ),
            related_questions=[str(q) for q in related_questions] if related_questions is not None else None,
        )

    @property
    def content(self) -> str:
        """Content of the first choice

        Raises:
            MalformedCompletion: If the response carries no choices
        """
        if not self.choices:
            raise MalformedCompletion("Cannot extract content from LLM response")
        return self.choices[0].message.content
