"""Agent History - read-only viewer core for AI coding CLI session logs."""

__version__ = "0.1.0"
