"""Event-sourced highlight store."""

__version__ = "4.0.0"
