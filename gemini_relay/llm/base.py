"""
LLM Provider Base - Abstract base for remote inference providers.

A provider exposes exactly four operations to the relay:
create a conversation, send a message into it, store binary content,
and delete stored content.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class StoredContent:
    """
    Reference to binary content held by the provider.

    `handle` is the provider's own identifier for the content
    (e.g. "files/abc123" for Gemini, "file-abc123" for OpenAI).
    """
    handle: str
    display_name: str
    mime_type: str
    size_bytes: int = 0
    uri: Optional[str] = None


MessagePart = Union[str, StoredContent]


@dataclass(frozen=True)
class Conversation:
    """
    A provider-side conversation context.

    The system instruction and model are fixed for the lifetime of the
    conversation; `state` is the provider-native chat object.
    """
    model: str
    system_instruction: str
    state: Any = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class LLMResponse:
    """Response from an LLM API call."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Optional[Any] = None


class LLMProvider(ABC):
    """
    Abstract base class for LLM API providers.
    """

    name: str = "base"

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 log_calls: bool = True):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.log_calls = log_calls

    @abstractmethod
    async def create_conversation(
        self,
        system_instruction: str,
        model: Optional[str] = None,
    ) -> Conversation:
        """
        Create a new conversation context.

        Args:
            system_instruction: Fixed instruction for every turn of the conversation
            model: Model name override (uses provider model if not set)

        Returns:
            Conversation bound to this provider
        """
        pass

    @abstractmethod
    async def send_message(
        self,
        conversation: Conversation,
        parts: List[MessagePart],
    ) -> LLMResponse:
        """
        Send one user message into a conversation and wait for the reply.

        Args:
            conversation: Conversation created by this provider
            parts: Ordered message parts; attachments come before text

        Returns:
            LLMResponse with the generated text
        """
        pass

    @abstractmethod
    async def store_content(
        self,
        data: bytes,
        mime_type: str,
        display_name: str,
    ) -> StoredContent:
        """
        Upload raw bytes to the provider's content store.

        Returns:
            StoredContent whose handle identifies the upload
        """
        pass

    @abstractmethod
    async def delete_content(self, handle: str) -> None:
        """Delete previously stored content by handle."""
        pass

    def _log_completed(self, operation: str, start_time: float, **fields: Any) -> None:
        """Log a successful provider call (INFO level)."""
        if not self.log_calls:
            return
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"LLM API call completed: {operation}",
            extra={"extra_fields": {
                "provider": self.name,
                "operation": operation,
                "duration_ms": round(duration_ms, 2),
                **fields,
            }}
        )

    def _log_failed(self, operation: str, start_time: float, error: Exception, **fields: Any) -> None:
        """Log a failed provider call with traceback."""
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"LLM API call failed: {operation}: {str(error)}",
            exc_info=True,
            extra={"extra_fields": {
                "provider": self.name,
                "operation": operation,
                "duration_ms": round(duration_ms, 2),
                "error": str(error),
                **fields,
            }}
        )
