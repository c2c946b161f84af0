"""LLM module - provides a unified interface for remote inference providers."""

from .base import LLMProvider, LLMResponse, Conversation, StoredContent, MessagePart
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from .factory import create_llm_provider

__all__ = [
    'LLMProvider',
    'LLMResponse',
    'Conversation',
    'StoredContent',
    'MessagePart',
    'GeminiProvider',
    'OpenAIProvider',
    'create_llm_provider',
]
