"""Structured article queries"""

from dataclasses import replace
from typing import List

from ..interfaces.llm_client import LLMClientInterface
from ..models.api_models import ApiSettings, CompletionResult, JsonSchemaFormat, Message

ARTICLE_SCHEMA = {
    "type": "object",
    "required": ["title", "sections", "citations"],
    "properties": {
        "title": {"type": "string"},
        "sections": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["heading", "content"],
                "properties": {
                    "heading": {"type": "string"},
                    "content": {"type": "string"},
                    "subsections": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["heading", "content"],
                            "properties": {
                                "heading": {"type": "string"},
                                "content": {"type": "string"}
                            }
                        }
                    }
                }
            }
        },
        "summary_table": {
            "type": "string",
            "description": "A markdown-formatted table with summary data"
        },
        "citations": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["number", "url"],
                "properties": {
                    "number": {"type": "number"},
                    "url": {"type": "string"}
                }
            }
        }
    }
}

ARTICLE_PROMPT = """You are a knowledgeable assistant. Format responses as structured articles with:
- A clear, concise title
- Well-organized sections with headings
- Subsections where appropriate for detailed breakdowns
- A summary table in markdown format if numerical/comparative data is present (use | for columns)
- Numbered citations linking to reliable sources
- Clean, consistent formatting throughout

For tables, use markdown format like this:
| Header 1 | Header 2 |
|----------|----------|
| Data 1   | Data 2   |

Guidelines:
1. Search globally in multiple languages for comprehensive coverage
2. Include sources from academic papers, research institutions, and expert analysis
3. Use numbered citations [1], [2], etc. throughout the content
4. Consider multiple perspectives and competing theories
5. Prioritize peer-reviewed research and primary sources
6. Maintain academic rigor while being accessible"""


class StructuredQueryBuilder:
    """Ask questions that must be answered as a structured article"""

    def __init__(self, llm_client: LLMClientInterface):
        """Initialize query builder

        Args:
            llm_client: LLM client interface implementation
        """
        self.llm = llm_client

    @staticmethod
    def build_messages(question: str) -> List[Message]:
        return [
            Message(role="system", content=ARTICLE_PROMPT),
            Message(role="user", content=question),
        ]

    @staticmethod
    def build_settings(settings: ApiSettings) -> ApiSettings:
        """Copy of ``settings`` constrained to the article schema"""
        return replace(settings, response_format=JsonSchemaFormat(schema=ARTICLE_SCHEMA), stream=False)

    def ask(self, question: str, settings: ApiSettings) -> CompletionResult:
        """Send ``question`` with the article instruction and schema

        Client errors are propagated unchanged.
        """
        return self.llm.chat(self.build_messages(question), self.build_settings(settings))
