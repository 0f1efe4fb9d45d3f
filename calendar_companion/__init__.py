"""Calendar Companion: chat with a language model to manage calendar events."""

__version__ = "0.1.0"
