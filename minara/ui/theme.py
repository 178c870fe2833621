"""UI Theme Constants for the Minara Learn client.

Centralises all colour, font, and sizing constants for the
CustomTkinter interface: a light content area with a single card
holding the signup forms.

This file contains **zero logic**, only ``Final`` constants.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

CONTENT_BG: Final[str] = "#f4f6fb"
CONTENT_CARD_BG: Final[str] = "#ffffff"
CARD_BORDER: Final[str] = "#e0e0e0"

ACCENT_PRIMARY: Final[str] = "#2f6fed"
ACCENT_HOVER: Final[str] = "#245ad0"
TEXT_PRIMARY: Final[str] = "#1b2030"
TEXT_SECONDARY: Final[str] = "#6c757d"
TEXT_LIGHT: Final[str] = "#ffffff"

# Input / form
INPUT_BG: Final[str] = "#ffffff"
INPUT_BORDER: Final[str] = "#ced4da"
ERROR_TEXT: Final[str] = "#dc3545"
WARNING_TEXT: Final[str] = "#b7791f"
SUCCESS_TEXT: Final[str] = "#27ae60"
LINK_TEXT: Final[str] = "#2f6fed"

# Tab / interactive
TAB_HOVER: Final[str] = "#eef2fb"

# ---------------------------------------------------------------------------
# Fonts (Segoe UI, falling back to the system default)
# ---------------------------------------------------------------------------

FONT_FAMILY: Final[str] = "Segoe UI"
FONT_BRAND: Final[tuple[str, int, str]] = (FONT_FAMILY, 22, "bold")
FONT_ICON_LG: Final[tuple[str, int, str]] = (FONT_FAMILY, 24, "bold")
FONT_HEADING: Final[tuple[str, int, str]] = (FONT_FAMILY, 20, "bold")
FONT_SUBTITLE: Final[tuple[str, int]] = (FONT_FAMILY, 12)
FONT_BODY: Final[tuple[str, int]] = (FONT_FAMILY, 13)
FONT_TAB: Final[tuple[str, int]] = (FONT_FAMILY, 13)
FONT_TAB_ACTIVE: Final[tuple[str, int, str]] = (FONT_FAMILY, 13, "bold")
FONT_LABEL: Final[tuple[str, int, str]] = (FONT_FAMILY, 11, "bold")
FONT_SMALL: Final[tuple[str, int]] = (FONT_FAMILY, 11)
FONT_CAPTION: Final[tuple[str, int]] = (FONT_FAMILY, 10)
FONT_BUTTON: Final[tuple[str, int, str]] = (FONT_FAMILY, 13, "bold")

# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

MAIN_WINDOW_WIDTH: Final[int] = 640
MAIN_WINDOW_HEIGHT: Final[int] = 860
MIN_WINDOW_WIDTH: Final[int] = 520
MIN_WINDOW_HEIGHT: Final[int] = 600
CARD_WIDTH: Final[int] = 480
CORNER_RADIUS: Final[int] = 8
INPUT_HEIGHT: Final[int] = 40
BUTTON_HEIGHT: Final[int] = 46
TAB_HEIGHT: Final[int] = 42
PADDING_SM: Final[int] = 8
PADDING_MD: Final[int] = 16
PADDING_LG: Final[int] = 24
