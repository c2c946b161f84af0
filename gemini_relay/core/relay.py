"""
Relay Service - runs chat turns over the conversation registry and the
attachment broker.

One instance is built at startup and shared by every request handler.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Optional, TypeVar, Union

from ..llm.base import LLMProvider, LLMResponse, MessagePart
from .attachments import AttachmentBroker
from .errors import InvalidRequestError, TurnError, TurnTimeoutError, UploadError
from .registry import ConversationRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RelayService:
    """
    Owns the per-session conversations and the staged attachments.
    """

    def __init__(
        self,
        provider: LLMProvider,
        system_instruction: str,
        model: Optional[str] = None,
        default_session_id: str = "default-it-user",
        request_timeout: Optional[float] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        self.provider = provider
        self.request_timeout = request_timeout
        self.registry = ConversationRegistry(
            provider,
            system_instruction=system_instruction,
            model=model,
            default_session_id=default_session_id,
        )
        self.broker = AttachmentBroker(provider, max_upload_bytes=max_upload_bytes)
        self._sweeper: Optional[asyncio.Task] = None

    async def upload(
        self,
        raw: Union[str, bytes],
        mime_type: Optional[str],
        display_name: Optional[str],
    ) -> str:
        """Stage a file for the next chat turn and return its token."""
        try:
            return await self._bounded(self.broker.stage(raw, mime_type, display_name))
        except asyncio.TimeoutError as e:
            raise UploadError(
                f"Provider did not answer the upload within {self.request_timeout}s"
            ) from e

    def discard(self, token: str) -> bool:
        """Drop a staged attachment without using it."""
        return self.broker.consume(token)

    async def run_turn(
        self,
        session_id: Optional[str],
        prompt: Optional[str],
        token: Optional[str] = None,
    ) -> LLMResponse:
        """
        Send one prompt, with an optional staged attachment, to a session.

        A supplied token is always consumed once the prompt has passed
        validation, whether the provider call succeeds or not.

        Raises:
            InvalidRequestError: blank prompt
            ConversationCreationError: conversation could not be created
            TurnError: provider failed the message
            TurnTimeoutError: provider did not answer in time
        """
        if not prompt or not prompt.strip():
            raise InvalidRequestError("Prompt is missing.")

        session_key = self.registry.resolve_session_id(session_id)
        attachment = None
        try:
            conversation = await self.registry.get_or_create(session_key)

            parts: list[MessagePart] = []
            # No await between lookup and removal: one turn per attachment
            attachment = self.broker.claim(token)
            if attachment is not None:
                parts.append(attachment.content)
                logger.info(f"Using attached file in chat: {attachment.display_name}")
            elif token:
                logger.warning(f"Ignoring unknown file token {token}")
            parts.append(prompt)

            async with self.registry.turn_lock(session_key):
                try:
                    response = await self._bounded(
                        self.provider.send_message(conversation, parts)
                    )
                except asyncio.TimeoutError as e:
                    raise TurnTimeoutError(
                        f"Provider did not answer within {self.request_timeout}s"
                    ) from e
                except Exception as e:
                    raise TurnError(f"Provider error during chat: {e}") from e
        finally:
            if attachment is not None:
                self.broker.release(attachment)
            elif token:
                self.broker.consume(token)

        logger.info(
            f"Turn completed for session {session_key}",
            extra={"extra_fields": {
                "session_id": session_key,
                "with_attachment": attachment is not None,
                "reply_length": len(response.content),
            }}
        )
        return response

    async def _bounded(self, call: Awaitable[T]) -> T:
        if self.request_timeout:
            return await asyncio.wait_for(call, timeout=self.request_timeout)
        return await call

    def start_sweeper(self, ttl_seconds: int, interval_seconds: int) -> None:
        """Periodically discard attachments nobody used within `ttl_seconds`."""
        if ttl_seconds <= 0 or interval_seconds <= 0 or self._sweeper is not None:
            return
        self._sweeper = asyncio.get_running_loop().create_task(
            self._sweep_forever(timedelta(seconds=ttl_seconds), interval_seconds)
        )

    async def _sweep_forever(self, max_age: timedelta, interval_seconds: int) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.broker.sweep_expired(max_age)

    async def aclose(self) -> None:
        """Stop the sweeper and wait for pending cleanups."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        await self.broker.drain()
