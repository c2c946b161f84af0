"""
Shared test fixtures and configuration.
"""

import asyncio
import os
from typing import List, Optional, Tuple

import pytest

# Set test environment variables before importing app modules
os.environ["LLM_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("ATTACHMENT_TTL_SECONDS", "0")

from gemini_relay.core import RelayService  # noqa: E402
from gemini_relay.llm.base import (  # noqa: E402
    LLMProvider, LLMResponse, Conversation, StoredContent, MessagePart
)


class FakeProvider(LLMProvider):
    """In-memory provider recording every call."""

    name = "fake"

    def __init__(self):
        super().__init__(api_key="test-key", model="fake-model")
        self.created: List[str] = []
        self.sent: List[Tuple[Conversation, List[MessagePart]]] = []
        self.stored: List[Tuple[bytes, StoredContent]] = []
        self.deleted: List[str] = []
        self.reply = "fake reply"
        self.fail_create: Optional[Exception] = None
        self.fail_send: Optional[Exception] = None
        self.fail_store: Optional[Exception] = None
        self.fail_delete: Optional[Exception] = None
        self.send_delay = 0.0
        self.store_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    async def create_conversation(self, system_instruction, model=None):
        await asyncio.sleep(0)
        if self.fail_create:
            raise self.fail_create
        self.created.append(system_instruction)
        return Conversation(
            model=model or self.model,
            system_instruction=system_instruction,
            state=len(self.created),
        )

    async def send_message(self, conversation, parts):
        self.sent.append((conversation, list(parts)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.send_delay)
            if self.fail_send:
                raise self.fail_send
            return LLMResponse(content=self.reply, model=conversation.model)
        finally:
            self.in_flight -= 1

    async def store_content(self, data, mime_type, display_name):
        await asyncio.sleep(self.store_delay)
        if self.fail_store:
            raise self.fail_store
        content = StoredContent(
            handle=f"T{len(self.stored) + 1}",
            display_name=display_name,
            mime_type=mime_type,
            size_bytes=len(data),
        )
        self.stored.append((data, content))
        return content

    async def delete_content(self, handle):
        await asyncio.sleep(0)
        self.deleted.append(handle)
        if self.fail_delete:
            raise self.fail_delete


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def relay(provider):
    return RelayService(
        provider,
        system_instruction="You are a test architect.",
        default_session_id="default-it-user",
        max_upload_bytes=1024,
    )
