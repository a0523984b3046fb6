"""Error types for the chat client"""

from typing import Optional


class ChatClientError(Exception):
    """Base class for all chat client errors"""


class RequestError(ChatClientError):
    """Raised when the completion endpoint returns a non-success status or cannot be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedCompletion(RequestError):
    """Raised when a successful response body has no usable choice"""


class InvalidSchemaInput(ChatClientError, ValueError):
    """Raised when a user-supplied JSON schema or regex cannot be parsed"""


class SubmissionBlocked(ChatClientError):
    """Raised when a prompt is submitted while the session cannot accept one"""
