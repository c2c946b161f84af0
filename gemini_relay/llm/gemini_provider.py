"""
Google Gemini LLM Provider.
Uses the official google-genai SDK (async surface under `client.aio`):
chats for conversation state and the Files API for attachments.
"""

import io
import logging
import time
from typing import Optional, List, Any, Dict

from google import genai
from google.genai import types

from .base import LLMProvider, LLMResponse, Conversation, StoredContent, MessagePart

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """
    Provider for the Gemini Developer API.
    Conversation state is kept client-side by the SDK's AsyncChat object.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: Optional[str] = None,
        log_calls: bool = True,
        client: Optional[Any] = None,
    ):
        super().__init__(api_key, model, base_url, log_calls)
        self.client = client or genai.Client(api_key=api_key)

    async def create_conversation(
        self,
        system_instruction: str,
        model: Optional[str] = None,
    ) -> Conversation:
        """Create an AsyncChat bound to the system instruction."""
        model = model or self.model
        chat = self.client.aio.chats.create(
            model=model,
            config=types.GenerateContentConfig(system_instruction=system_instruction),
        )
        logger.info(f"Created Gemini chat: model={model}")
        return Conversation(model=model, system_instruction=system_instruction, state=chat)

    async def send_message(
        self,
        conversation: Conversation,
        parts: List[MessagePart],
    ) -> LLMResponse:
        """Send message parts through the conversation's chat."""
        start_time = time.time()
        message = [self._to_part(part) for part in parts]

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API call starting: provider=gemini, model={conversation.model}, "
                f"parts={len(message)}, attachments={sum(isinstance(p, StoredContent) for p in parts)}"
            )

        try:
            response = await conversation.state.send_message(message)
        except Exception as e:
            self._log_failed("send_message", start_time, e, model=conversation.model)
            raise

        usage = self._usage(response)
        self._log_completed("send_message", start_time, model=conversation.model, **usage)
        return LLMResponse(
            content=response.text or "",
            model=conversation.model,
            usage=usage,
            raw=response,
        )

    async def store_content(
        self,
        data: bytes,
        mime_type: str,
        display_name: str,
    ) -> StoredContent:
        """Upload bytes through the Files API."""
        start_time = time.time()
        try:
            uploaded = await self.client.aio.files.upload(
                file=io.BytesIO(data),
                config=types.UploadFileConfig(mime_type=mime_type, display_name=display_name),
            )
        except Exception as e:
            self._log_failed("store_content", start_time, e, mime_type=mime_type, size_bytes=len(data))
            raise

        self._log_completed(
            "store_content", start_time,
            handle=uploaded.name, mime_type=mime_type, size_bytes=len(data),
        )
        return StoredContent(
            handle=uploaded.name,
            display_name=uploaded.display_name or display_name,
            mime_type=uploaded.mime_type or mime_type,
            size_bytes=len(data),
            uri=uploaded.uri,
        )

    async def delete_content(self, handle: str) -> None:
        """Delete a file from the Files API."""
        start_time = time.time()
        try:
            await self.client.aio.files.delete(name=handle)
        except Exception as e:
            self._log_failed("delete_content", start_time, e, handle=handle)
            raise
        self._log_completed("delete_content", start_time, handle=handle)

    @staticmethod
    def _to_part(part: MessagePart) -> Any:
        if isinstance(part, StoredContent):
            return types.Part.from_uri(file_uri=part.uri, mime_type=part.mime_type)
        return part

    @staticmethod
    def _usage(response: Any) -> Dict[str, int]:
        metadata = getattr(response, "usage_metadata", None)
        if metadata is None:
            return {}
        return {
            "prompt_tokens": metadata.prompt_token_count or 0,
            "completion_tokens": metadata.candidates_token_count or 0,
            "total_tokens": metadata.total_token_count or 0,
        }
