"""Handle application styling"""

from enum import Enum, auto


class ColorRole(Enum):
    """Enumeration of color roles in the application."""
    # Editor colours
    BACKGROUND_PRIMARY = auto()         # Editor background
    TEXT_PRIMARY = auto()               # Plain text
    CURRENT_LINE = auto()               # Background of the line holding the cursor
    LINE_NUMBER = auto()                # Gutter text
    LINE_NUMBER_BACKGROUND = auto()     # Gutter background

    # Markdown colours
    SYNTAX_HEADING = auto()
    SYNTAX_BOLD = auto()
    SYNTAX_ITALIC = auto()
    SYNTAX_INLINE_CODE = auto()
    SYNTAX_CODE_BLOCK = auto()
    SYNTAX_LINK = auto()
    SYNTAX_QUOTE = auto()
    SYNTAX_LIST_MARKER = auto()
