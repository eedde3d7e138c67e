# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared constants and helpers used across CLI command modules.

This module provides:
- ANSI color codes, box-drawing characters and status icons
- Box drawing helpers for the status panel
- Small report helpers for success/failure lines
"""

import re

# ==============================================================================
# Constants
# ==============================================================================

# Box drawing width (unified for all commands)
BOX_WIDTH = 60


# ==============================================================================
# ANSI Colors and Box Drawing
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    CYAN = "\033[36m"
    WHITE = "\033[37m"

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
    STOP = "□"
    DATABASE = "◆"
    SEARCH = "◎"
    CACHE = "⚡"


# Module-level aliases for convenience
C, B, I = Colors, Box, Icons

_ANSI_ESCAPE_PATTERN = re.compile(r"\033\[[0-9;]*m")


# ==============================================================================
# Box Drawing Helpers
# ==============================================================================


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
    bar_len = inner_width - len(title_padded) - 1
    return (
        f"{C.CYAN}{B.LT}{B.H}{C.BOLD}{title_padded}{C.RESET}{C.CYAN}{B.H * bar_len}{B.RT}{C.RESET}"
    )


def _box_line(content: str, width: int = BOX_WIDTH) -> str:
    """Create a line inside the box with proper padding to right border."""
    inner_width = width - 2
    padding = max(inner_width - _visible_len(content), 0)
    return f"{C.CYAN}{B.V}{C.RESET}{content}{' ' * padding}{C.CYAN}{B.V}{C.RESET}"


def _box_bottom(width: int = BOX_WIDTH) -> str:
    return f"{C.CYAN}{B.BL}{B.H * (width - 2)}{B.BR}{C.RESET}"


def _status_badge(status: str, is_ok: bool, is_disabled: bool = False) -> str:
    """Create a colored status badge."""
    if is_ok:
        return f"{C.BRIGHT_GREEN}{I.CHECK} {status}{C.RESET}"
    if is_disabled:
        return f"{C.DIM}{I.STOP} {status}{C.RESET}"
    return f"{C.BRIGHT_RED}{I.CROSS} {status}{C.RESET}"


# ==============================================================================
# Report Helpers
# ==============================================================================


def print_ok(message: str) -> None:
    print(f"  {C.BRIGHT_GREEN}{I.CHECK}{C.RESET} {message}")


def print_fail(message: str, detail: str | None = None) -> None:
    print(f"  {C.BRIGHT_RED}{I.CROSS}{C.RESET} {message}")
    if detail:
        print(f"    {C.DIM}{detail}{C.RESET}")
