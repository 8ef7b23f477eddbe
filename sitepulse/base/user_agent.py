# ==============================================================================
# User-Agent Parser Abstract Base Class
# ==============================================================================
"""
Abstract interface for User-Agent header parsing.
"""

from abc import ABC, abstractmethod

from sitepulse.core.models import BrowserInfo


class UserAgentParser(ABC):
    """Maps a raw User-Agent header to browser and device details."""

    @abstractmethod
    def parse(self, header: str) -> BrowserInfo:
        """
        Parse a User-Agent header.

        Args:
            header: Raw header value (may be empty)

        Returns:
            Browser details; unknown parts keep their sentinel defaults
        """
        ...
