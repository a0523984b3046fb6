"""API key stores"""

import json
import logging
from pathlib import Path

from ..interfaces.key_store import KeyStoreInterface

API_KEY_FIELD = "perplexity_api_key"

logger = logging.getLogger(__name__)


class FileKeyStore(KeyStoreInterface):
    """Keep the API key in a small JSON file (unencrypted, no expiry)"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> str:
        if not self.path.exists():
            return ""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not read key store %s: %s", self.path, e)
            return ""
        if not isinstance(data, dict):
            return ""
        return str(data.get(API_KEY_FIELD) or "")

    def save(self, api_key: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({API_KEY_FIELD: api_key}), encoding="utf-8")


class MemoryKeyStore(KeyStoreInterface):
    """Process-local store, used when nothing should touch disk"""

    def __init__(self, api_key: str = ""):
        self.api_key = api_key

    def load(self) -> str:
        return self.api_key

    def save(self, api_key: str) -> None:
        self.api_key = api_key
