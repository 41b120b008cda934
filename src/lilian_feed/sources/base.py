from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ContentSource(ABC):
    """Abstract base class for a content backend."""

    @abstractmethod
    def get_section(self, section: str) -> List[Dict[str, Any]]:
        """Return the raw published records of a section."""
        pass

    @abstractmethod
    def get_single(self, section: str) -> Optional[Dict[str, Any]]:
        """Return the raw record of a singleton section, or None if it has none."""
        pass

    @abstractmethod
    def get_upcoming(self) -> List[Dict[str, Any]]:
        """Return the raw records the backend selects for the upcoming feed."""
        pass

    @abstractmethod
    def get_image(self, content_id: int) -> Optional[bytes]:
        """Return the image bytes of a record, or None."""
        pass

    @abstractmethod
    def get_published(self) -> List[Dict[str, Any]]:
        """Return every published record across sections."""
        pass
