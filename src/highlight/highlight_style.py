from enum import IntEnum, auto


class HighlightStyle(IntEnum):
    """Style applied to a range of document text."""
    HEADING1 = auto()
    HEADING2 = auto()
    HEADING3 = auto()
    HEADING4 = auto()
    HEADING5 = auto()
    HEADING6 = auto()
    BOLD = auto()
    ITALIC = auto()
    INLINE_CODE = auto()
    CODE_BLOCK = auto()
    LINK = auto()
    QUOTE = auto()
    LIST_MARKER = auto()
    PLAIN = auto()

    @classmethod
    def for_heading_level(cls, level: int) -> 'HighlightStyle':
        """
        Get the heading style for a heading level.

        Args:
            level: Heading level, clamped to 1-6

        Returns:
            The matching HEADINGn style
        """
        return cls(cls.HEADING1 + max(1, min(6, level)) - 1)
