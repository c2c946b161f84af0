"""Gemini Relay - chat and file-upload relay for a generative-AI provider."""

__version__ = "1.0.0"
