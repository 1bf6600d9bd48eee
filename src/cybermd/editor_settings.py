"""Editor settings module for storing application-wide settings."""

from dataclasses import dataclass
import json
import os

from cybermd.style_manager import ColorMode


DEFAULT_DEBOUNCE_MS = 300


@dataclass
class EditorSettings:
    """
    User-specific editor settings.
    """
    debounce_ms: int = DEFAULT_DEBOUNCE_MS  # Quiet period after typing before reparsing
    theme: ColorMode = ColorMode.DARK  # Default to dark mode
    font_size: float | None = None  # None means use the default font size
    tab_width: int = 4

    @classmethod
    def create_default(cls) -> "EditorSettings":
        """Create a new EditorSettings object with default values."""
        return cls(
            debounce_ms=DEFAULT_DEBOUNCE_MS,
            theme=ColorMode.DARK,
            font_size=None,
            tab_width=4
        )

    @classmethod
    def load(cls, path: str) -> "EditorSettings":
        """
        Load editor settings from file.

        Args:
            path: Path to the settings file

        Returns:
            EditorSettings object with loaded values

        Raises:
            json.JSONDecodeError: If file contains invalid JSON
            ValueError: If the JSON is not an object
            OSError: If the file cannot be read
        """
        settings = cls.create_default()

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"settings file {path} does not contain a JSON object")

        debounce_ms = data.get("debounceMs", DEFAULT_DEBOUNCE_MS)
        if isinstance(debounce_ms, int) and not isinstance(debounce_ms, bool) and debounce_ms > 0:
            settings.debounce_ms = debounce_ms

        tab_width = data.get("tabWidth", 4)
        if isinstance(tab_width, int) and not isinstance(tab_width, bool) and tab_width > 0:
            settings.tab_width = tab_width

        font_size = data.get("fontSize", None)
        if isinstance(font_size, (int, float)) and not isinstance(font_size, bool) and font_size > 0:
            settings.font_size = float(font_size)

        # Load theme if available, otherwise use default (dark mode)
        theme_str = data.get("theme", "DARK")
        try:
            settings.theme = ColorMode[theme_str]

        except (KeyError, TypeError):
            settings.theme = ColorMode.DARK

        return settings

    def save(self, path: str) -> None:
        """
        Save editor settings to file.

        Args:
            path: Path to save the settings file

        Raises:
            OSError: If there's an issue creating the directory or writing the file
        """
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        data = {
            "debounceMs": self.debounce_ms,
            "theme": self.theme.name,
            "fontSize": self.font_size,
            "tabWidth": self.tab_width
        }

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4)
