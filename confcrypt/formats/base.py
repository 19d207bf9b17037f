"""Base class for confcrypt file format handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from confcrypt.model import FileState


class ConfigFormat(ABC):
    """Abstract base class for file format handlers."""

    @abstractmethod
    def load(self, data: str) -> FileState:
        """Parse file text into a file state."""

    @abstractmethod
    def dump(self, state: FileState) -> str:
        """Serialize a file state to file text."""

    @abstractmethod
    def get_extension(self) -> str:
        """Get the conventional file extension, including the dot."""

    @classmethod
    @abstractmethod
    def detect(cls, data: str) -> bool:
        """Check if text looks like this format."""

    @classmethod
    @abstractmethod
    def get_name(cls) -> str:
        """Get the format name."""
