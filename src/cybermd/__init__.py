"""CyberMD - A Markdown editor with background syntax highlighting."""


__version__ = "0.1"
