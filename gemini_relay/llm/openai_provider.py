"""
OpenAI-compatible LLM Provider.
Conversation state is chained server-side through the Responses API
(`previous_response_id`); attachments go through the Files API.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, List, Any, Dict

from openai import AsyncOpenAI

from .base import LLMProvider, LLMResponse, Conversation, StoredContent, MessagePart

logger = logging.getLogger(__name__)


@dataclass
class ResponseThread:
    """Mutable pointer to the last response of a conversation."""
    previous_response_id: Optional[str] = None


class OpenAIProvider(LLMProvider):
    """Provider for OpenAI and OpenAI-compatible Responses endpoints."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        log_calls: bool = True,
        client: Optional[Any] = None,
    ):
        super().__init__(api_key, model, base_url, log_calls)
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def create_conversation(
        self,
        system_instruction: str,
        model: Optional[str] = None,
    ) -> Conversation:
        """Start an empty thread; nothing is sent until the first message."""
        model = model or self.model
        return Conversation(
            model=model,
            system_instruction=system_instruction,
            state=ResponseThread(),
        )

    async def send_message(
        self,
        conversation: Conversation,
        parts: List[MessagePart],
    ) -> LLMResponse:
        """Send message parts through the Responses API."""
        start_time = time.time()
        thread: ResponseThread = conversation.state
        params: Dict[str, Any] = {
            "model": conversation.model,
            # Instructions are not inherited through previous_response_id.
            "instructions": conversation.system_instruction,
            "input": [{"role": "user", "content": [self._to_input(part) for part in parts]}],
        }
        if thread.previous_response_id:
            params["previous_response_id"] = thread.previous_response_id

        try:
            response = await self.client.responses.create(**params)
        except Exception as e:
            self._log_failed("send_message", start_time, e, model=conversation.model)
            raise

        thread.previous_response_id = response.id
        usage = self._usage(response)
        self._log_completed("send_message", start_time, model=response.model, **usage)
        return LLMResponse(
            content=response.output_text or "",
            model=response.model or conversation.model,
            usage=usage,
            raw=response,
        )

    async def store_content(
        self,
        data: bytes,
        mime_type: str,
        display_name: str,
    ) -> StoredContent:
        """Upload bytes through the Files API for use as an `input_file` part."""
        start_time = time.time()
        try:
            uploaded = await self.client.files.create(
                file=(display_name, data, mime_type),
                purpose="user_data",
            )
        except Exception as e:
            self._log_failed("store_content", start_time, e, mime_type=mime_type, size_bytes=len(data))
            raise

        self._log_completed(
            "store_content", start_time,
            handle=uploaded.id, mime_type=mime_type, size_bytes=len(data),
        )
        return StoredContent(
            handle=uploaded.id,
            display_name=display_name,
            mime_type=mime_type,
            size_bytes=len(data),
        )

    async def delete_content(self, handle: str) -> None:
        """Delete an uploaded file by id."""
        start_time = time.time()
        try:
            await self.client.files.delete(handle)
        except Exception as e:
            self._log_failed("delete_content", start_time, e, handle=handle)
            raise
        self._log_completed("delete_content", start_time, handle=handle)

    @staticmethod
    def _to_input(part: MessagePart) -> Dict[str, Any]:
        if isinstance(part, StoredContent):
            if part.mime_type.startswith("image/"):
                return {"type": "input_image", "file_id": part.handle, "detail": "auto"}
            return {"type": "input_file", "file_id": part.handle}
        return {"type": "input_text", "text": part}

    @staticmethod
    def _usage(response: Any) -> Dict[str, int]:
        usage = getattr(response, "usage", None)
        if usage is None:
            return {}
        return {
            "prompt_tokens": usage.input_tokens or 0,
            "completion_tokens": usage.output_tokens or 0,
            "total_tokens": usage.total_tokens or 0,
        }
