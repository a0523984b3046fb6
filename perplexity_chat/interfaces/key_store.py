"""Interface for credential storage"""

from abc import ABC, abstractmethod


class KeyStoreInterface(ABC):
    """Abstract base class for API key stores"""

    @abstractmethod
    def load(self) -> str:
        """Return the stored key, or an empty string"""
        pass

    @abstractmethod
    def save(self, api_key: str) -> None:
        """Persist the key"""
        pass
