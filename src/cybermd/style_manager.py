"""Style manager for handling application-wide style settings.

Implements a singleton pattern to maintain consistent styling across components.
Provides a signal for style changes and the text formats used for each highlight style.
"""

from enum import Enum, auto
from typing import Dict, List

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QColor, QFont, QFontDatabase, QTextCharFormat

from highlight import HighlightStyle

from cybermd.color_role import ColorRole


class ColorMode(Enum):
    """Enumeration for color theme modes."""
    LIGHT = auto()
    DARK = auto()


class StyleManager(QObject):
    """
    Singleton manager for application-wide style settings.

    Attributes:
        style_changed (Signal): Emitted when the color mode or font size changes
        _instance (StyleManager): Singleton instance
        _initialized (bool): Tracks initialization state of QObject base
    """

    style_changed = Signal()
    _instance = None

    def __new__(cls) -> 'StyleManager':
        """Create or return singleton instance."""
        if cls._instance is None:
            cls._instance = super(StyleManager, cls).__new__(cls)

        return cls._instance

    def __init__(self) -> None:
        """Initialize QObject base class if not already done."""
        if not hasattr(self, '_initialized'):
            super().__init__()
            self._initialized = True
            self._color_mode = ColorMode.DARK
            self._user_font_size: float | None = None
            self._colors: Dict[ColorRole, Dict[ColorMode, str]] = self._initialize_colors()
            self._highlights: Dict[HighlightStyle, QTextCharFormat] = {}
            self._code_font_families = ["Menlo", "Consolas", "Monaco", "monospace"]
            self._initialize_highlights()

    def _initialize_colors(self) -> Dict[ColorRole, Dict[ColorMode, str]]:
        """Initialize the application colours for both light and dark modes."""
        return {
            ColorRole.BACKGROUND_PRIMARY: {
                ColorMode.DARK: "#060606",
                ColorMode.LIGHT: "#fcfcfc"
            },
            ColorRole.TEXT_PRIMARY: {
                ColorMode.DARK: "#d8d8d8",
                ColorMode.LIGHT: "#202020"
            },
            ColorRole.CURRENT_LINE: {
                ColorMode.DARK: "#1c1c24",
                ColorMode.LIGHT: "#eeeef8"
            },
            ColorRole.LINE_NUMBER: {
                ColorMode.DARK: "#607080",
                ColorMode.LIGHT: "#98a8b8"
            },
            ColorRole.LINE_NUMBER_BACKGROUND: {
                ColorMode.DARK: "#141414",
                ColorMode.LIGHT: "#ececec"
            },
            ColorRole.SYNTAX_HEADING: {
                ColorMode.DARK: "#ffe0a0",
                ColorMode.LIGHT: "#204080"
            },
            ColorRole.SYNTAX_BOLD: {
                ColorMode.DARK: "#ffffff",
                ColorMode.LIGHT: "#000000"
            },
            ColorRole.SYNTAX_ITALIC: {
                ColorMode.DARK: "#c0c0e0",
                ColorMode.LIGHT: "#404070"
            },
            ColorRole.SYNTAX_INLINE_CODE: {
                ColorMode.DARK: "#90d090",
                ColorMode.LIGHT: "#207020"
            },
            ColorRole.SYNTAX_CODE_BLOCK: {
                ColorMode.DARK: "#a0c8a0",
                ColorMode.LIGHT: "#306030"
            },
            ColorRole.SYNTAX_LINK: {
                ColorMode.DARK: "#80a0ff",
                ColorMode.LIGHT: "#0000ff"
            },
            ColorRole.SYNTAX_QUOTE: {
                ColorMode.DARK: "#a0a0a0",
                ColorMode.LIGHT: "#606060"
            },
            ColorRole.SYNTAX_LIST_MARKER: {
                ColorMode.DARK: "#e0a080",
                ColorMode.LIGHT: "#a0785c"
            }
        }

    def _initialize_highlights(self) -> None:
        # Mapping from highlight style to colour
        colour_mapping = {
            HighlightStyle.HEADING1: ColorRole.SYNTAX_HEADING,
            HighlightStyle.HEADING2: ColorRole.SYNTAX_HEADING,
            HighlightStyle.HEADING3: ColorRole.SYNTAX_HEADING,
            HighlightStyle.HEADING4: ColorRole.SYNTAX_HEADING,
            HighlightStyle.HEADING5: ColorRole.SYNTAX_HEADING,
            HighlightStyle.HEADING6: ColorRole.SYNTAX_HEADING,
            HighlightStyle.BOLD: ColorRole.SYNTAX_BOLD,
            HighlightStyle.ITALIC: ColorRole.SYNTAX_ITALIC,
            HighlightStyle.INLINE_CODE: ColorRole.SYNTAX_INLINE_CODE,
            HighlightStyle.CODE_BLOCK: ColorRole.SYNTAX_CODE_BLOCK,
            HighlightStyle.LINK: ColorRole.SYNTAX_LINK,
            HighlightStyle.QUOTE: ColorRole.SYNTAX_QUOTE,
            HighlightStyle.LIST_MARKER: ColorRole.SYNTAX_LIST_MARKER,
            HighlightStyle.PLAIN: ColorRole.TEXT_PRIMARY
        }

        for style, role in colour_mapping.items():
            self._highlights[style] = self._create_highlight(role)

        # Weight and slant distinguish styles that share a colour
        for style in (HighlightStyle.HEADING1, HighlightStyle.HEADING2, HighlightStyle.HEADING3, HighlightStyle.BOLD):
            self._highlights[style].setFontWeight(QFont.Weight.Bold)

        self._highlights[HighlightStyle.ITALIC].setFontItalic(True)
        self._highlights[HighlightStyle.LINK].setFontUnderline(True)

    def _create_highlight(self, role: ColorRole) -> QTextCharFormat:
        text_highlight = QTextCharFormat()
        text_highlight.setFontFamilies(self._code_font_families)
        text_highlight.setFontFixedPitch(True)
        text_highlight.setForeground(QColor(self._colors[role][self._color_mode]))

        return text_highlight

    def get_color(self, role: ColorRole) -> QColor:
        """
        Get a color for a specific role.

        Args:
            role: The ColorRole to look up

        Returns:
            QColor: The color for the specified role

        Raises:
            KeyError: If no color is defined for the role
        """
        return QColor(self._colors[role][self._color_mode])

    def get_color_str(self, role: ColorRole) -> str:
        """
        Get a color for a specific role as a string.

        Args:
            role: The ColorRole to look up

        Returns:
            The color as a "#rrggbb" string
        """
        return self._colors[role][self._color_mode]

    def get_highlight(self, style: HighlightStyle) -> QTextCharFormat:
        """
        Get the text format for a highlight style.

        Args:
            style: The highlight style

        Returns:
            The format to apply for that style
        """
        return self._highlights[style]

    def color_mode(self) -> ColorMode:
        """Current color mode."""
        return self._color_mode

    def set_color_mode(self, mode: ColorMode) -> None:
        """
        Set the color mode and update application styles.

        Args:
            mode: The ColorMode to switch to
        """
        if mode != self._color_mode:
            self._color_mode = mode
            self._initialize_highlights()
            self.style_changed.emit()

    def base_font_size(self) -> float:
        """Font size in points, from the user's settings or the system default."""
        if self._user_font_size is not None:
            return self._user_font_size

        system_size = QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont).pointSizeF()
        return system_size if system_size > 0 else 12

    def set_user_font_size(self, size: float | None) -> None:
        """
        Set the user's font size.

        Args:
            size: Font size in points, or None for the system default
        """
        if size != self._user_font_size:
            self._user_font_size = size
            self.style_changed.emit()

    @property
    def monospace_font_families(self) -> List[str]:
        """Font families to try, in order, for editor text."""
        return self._code_font_families
