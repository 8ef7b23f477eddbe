# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared utilities, constants, and helper functions used across CLI command modules.

This module provides:
- ANSI color codes and box-drawing characters
- Box drawing helpers for formatted output
- Service construction for commands that read or reset the stores
"""

import re

from sitepulse.services.analytics import AnalyticsService, create_service
from sitepulse.utils.config import get_settings

# ==============================================================================
# Constants
# ==============================================================================

# Box drawing width (unified for all commands)
BOX_WIDTH = 68


# ==============================================================================
# ANSI Colors and Box Drawing
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Colors
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    # Bright colors
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"


class Box:
    """Unicode box-drawing characters."""

    H = "─"  # horizontal
    V = "│"  # vertical
    TL = "┌"  # top-left
    TR = "┐"  # top-right
    BL = "└"  # bottom-left
    BR = "┘"  # bottom-right
    LT = "├"  # left-tee
    RT = "┤"  # right-tee


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"


# Module-level aliases for convenience
C, B, I = Colors, Box, Icons


__all__ = [
    "BOX_WIDTH",
    "Box",
    "Colors",
    "Icons",
    "B",
    "C",
    "I",
    "get_service",
]


# ==============================================================================
# Service Helpers
# ==============================================================================


def get_service() -> AnalyticsService:
    """Build the analytics service from the current settings."""
    return create_service(get_settings())


# ==============================================================================
# Box Drawing Helpers
# ==============================================================================

# Regex pattern for stripping ANSI escape codes
_ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def _visible_len(s: str) -> int:
    """Calculate visible length of string, ignoring ANSI escape codes."""
    return len(_ANSI_ESCAPE_PATTERN.sub("", s))


def _box_header(title: str, width: int = BOX_WIDTH) -> str:
    """Create a single-line box header."""
    inner_width = width - 2
    title_padded = f" {title} "
    left_bar = (inner_width - len(title_padded)) // 2
    right_bar = inner_width - left_bar - len(title_padded)
    return (
        f"{C.CYAN}{B.TL}{B.H * left_bar}{C.BOLD}{C.WHITE}{title_padded}"
        f"{C.RESET}{C.CYAN}{B.H * right_bar}{B.TR}{C.RESET}"
    )


def _section_header(title: str, width: int = BOX_WIDTH) -> str:
    """Create a section divider inside the box."""
    inner_width = width - 2
    title_padded = f" {title} "
    bar_len = inner_width - len(title_padded) - 1  # -1 for the first H after LT
    return (
        f"{C.CYAN}{B.LT}{B.H}{C.BOLD}{title_padded}{C.RESET}{C.CYAN}{B.H * bar_len}{B.RT}{C.RESET}"
    )


def _box_line(content: str, width: int = BOX_WIDTH) -> str:
    """Create a line inside the box with proper padding to right border."""
    inner_width = width - 2
    padding = max(inner_width - _visible_len(content), 0)
    return f"{C.CYAN}{B.V}{C.RESET}{content}{' ' * padding}{C.CYAN}{B.V}{C.RESET}"


def _empty_line(width: int = BOX_WIDTH) -> str:
    """Create an empty line inside the box."""
    return f"{C.CYAN}{B.V}{' ' * (width - 2)}{B.V}{C.RESET}"


def _box_bottom(width: int = BOX_WIDTH) -> str:
    """Create a box bottom border."""
    return f"{C.CYAN}{B.BL}{B.H * (width - 2)}{B.BR}{C.RESET}"
