"""Configuration management for the chat client"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.logging import RichHandler

from .models.api_models import DEFAULT_MODEL, SUPPORTED_MODELS

DEFAULT_BASE_URL = "https://api.perplexity.ai"
DEFAULT_KEY_STORE_PATH = Path.home() / ".perplexity_chat" / "credentials.json"

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    """Application configuration"""
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    timeout: float = 60.0
    key_store_path: Path = DEFAULT_KEY_STORE_PATH
    log_level: str = "INFO"


def resolve_model(model: Optional[str]) -> str:
    """Return ``model`` if it is supported, otherwise warn and use the default"""
    if not model:
        return DEFAULT_MODEL
    if model not in SUPPORTED_MODELS:
        logger.warning(
            "Configured model '%s' is not one of %s; using '%s' instead",
            model, ", ".join(SUPPORTED_MODELS), DEFAULT_MODEL,
        )
        return DEFAULT_MODEL
    return model


def load_config() -> AppConfig:
    """Load configuration from environment

    Returns:
        AppConfig built from environment variables and ``.env``

    Raises:
        ValueError: If a numeric setting cannot be parsed
    """
    # Load environment variables from .env file
    load_dotenv()

    try:
        temperature = float(os.getenv("TEMPERATURE", "0.7"))
        timeout = float(os.getenv("REQUEST_TIMEOUT", "60"))
    except ValueError as e:
        raise ValueError(f"Invalid numeric setting in environment: {e}") from e

    return AppConfig(
        api_key=os.getenv("PERPLEXITY_API_KEY") or None,
        base_url=os.getenv("PERPLEXITY_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        model=resolve_model(os.getenv("PERPLEXITY_MODEL")),
        temperature=temperature,
        timeout=timeout,
        key_store_path=Path(os.getenv("KEY_STORE_PATH", str(DEFAULT_KEY_STORE_PATH))).expanduser(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def setup_logging(level: str = "INFO") -> None:
    """Route log records through rich"""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
