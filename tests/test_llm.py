"""
Unit tests for the LLM module.
Tests the Gemini and OpenAI providers against mocked SDK clients, and the factory.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from gemini_relay.llm.base import Conversation, LLMResponse, StoredContent
from gemini_relay.llm.gemini_provider import GeminiProvider
from gemini_relay.llm.openai_provider import OpenAIProvider, ResponseThread
from gemini_relay.llm.factory import create_llm_provider


def _stored(handle="files/abc", mime_type="text/plain"):
    return StoredContent(
        handle=handle,
        display_name="f.txt",
        mime_type=mime_type,
        size_bytes=3,
        uri=f"https://generativelanguage.googleapis.com/v1beta/{handle}",
    )


class TestLLMResponse:

    def test_basic_response(self):
        resp = LLMResponse(content="Hello!", model="gemini-2.5-flash")
        assert resp.content == "Hello!"
        assert resp.usage == {}
        assert resp.raw is None


class TestGeminiProvider:
    """Tests for the google-genai backed provider."""

    def test_init_defaults(self):
        provider = GeminiProvider(api_key="test-key", client=MagicMock())
        assert provider.api_key == "test-key"
        assert provider.model == "gemini-2.5-flash"
        assert provider.name == "gemini"

    @pytest.mark.asyncio
    async def test_create_conversation(self):
        client = MagicMock()
        chat = MagicMock()
        client.aio.chats.create.return_value = chat
        provider = GeminiProvider(api_key="key", client=client)

        conversation = await provider.create_conversation("be technical")

        assert conversation.state is chat
        assert conversation.model == "gemini-2.5-flash"
        assert conversation.system_instruction == "be technical"
        kwargs = client.aio.chats.create.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert kwargs["config"].system_instruction == "be technical"

    @pytest.mark.asyncio
    async def test_send_message_with_attachment(self):
        chat = MagicMock()
        chat.send_message = AsyncMock(return_value=SimpleNamespace(
            text="Summary",
            usage_metadata=SimpleNamespace(
                prompt_token_count=12, candidates_token_count=3, total_token_count=15
            ),
        ))
        provider = GeminiProvider(api_key="key", client=MagicMock())
        conversation = Conversation(model="gemini-2.5-flash", system_instruction="sys", state=chat)

        result = await provider.send_message(conversation, [_stored(), "Summarize this"])

        assert result.content == "Summary"
        assert result.usage == {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15}
        message = chat.send_message.call_args.args[0]
        assert len(message) == 2
        assert message[0].file_data.file_uri.endswith("files/abc")
        assert message[0].file_data.mime_type == "text/plain"
        assert message[1] == "Summarize this"

    @pytest.mark.asyncio
    async def test_send_message_error_propagates(self):
        chat = MagicMock()
        chat.send_message = AsyncMock(side_effect=RuntimeError("quota"))
        provider = GeminiProvider(api_key="key", client=MagicMock())
        conversation = Conversation(model="m", system_instruction="sys", state=chat)

        with pytest.raises(RuntimeError, match="quota"):
            await provider.send_message(conversation, ["hi"])

    @pytest.mark.asyncio
    async def test_store_content(self):
        client = MagicMock()
        client.aio.files.upload = AsyncMock(return_value=SimpleNamespace(
            name="files/abc",
            display_name="f.txt",
            mime_type="text/plain",
            uri="https://generativelanguage.googleapis.com/v1beta/files/abc",
        ))
        provider = GeminiProvider(api_key="key", client=client)

        stored = await provider.store_content(b"abc", "text/plain", "f.txt")

        assert stored.handle == "files/abc"
        assert stored.size_bytes == 3
        assert stored.uri.endswith("files/abc")
        kwargs = client.aio.files.upload.call_args.kwargs
        assert kwargs["file"].read() == b"abc"
        assert kwargs["config"].mime_type == "text/plain"
        assert kwargs["config"].display_name == "f.txt"

    @pytest.mark.asyncio
    async def test_delete_content(self):
        client = MagicMock()
        client.aio.files.delete = AsyncMock(return_value=None)
        provider = GeminiProvider(api_key="key", client=client)

        await provider.delete_content("files/abc")

        client.aio.files.delete.assert_awaited_once_with(name="files/abc")


class TestOpenAIProvider:
    """Tests for the Responses API backed provider."""

    def _client(self):
        client = MagicMock()
        client.responses.create = AsyncMock(side_effect=[
            SimpleNamespace(id="resp_1", model="gpt-4o-mini", output_text="first", usage=None),
            SimpleNamespace(id="resp_2", model="gpt-4o-mini", output_text="second", usage=None),
        ])
        return client

    @pytest.mark.asyncio
    async def test_create_conversation_is_local(self):
        client = self._client()
        provider = OpenAIProvider(api_key="key", client=client)

        conversation = await provider.create_conversation("sys")

        assert isinstance(conversation.state, ResponseThread)
        assert conversation.model == "gpt-4o-mini"
        client.responses.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_turns_chain_previous_response(self):
        client = self._client()
        provider = OpenAIProvider(api_key="key", client=client)
        conversation = await provider.create_conversation("sys")

        first = await provider.send_message(conversation, [_stored("file-1", "application/pdf"), "Read"])
        second = await provider.send_message(conversation, ["And then?"])

        assert first.content == "first"
        assert second.content == "second"
        first_call, second_call = client.responses.create.call_args_list
        assert "previous_response_id" not in first_call.kwargs
        assert first_call.kwargs["instructions"] == "sys"
        content = first_call.kwargs["input"][0]["content"]
        assert content[0] == {"type": "input_file", "file_id": "file-1"}
        assert content[1] == {"type": "input_text", "text": "Read"}
        assert second_call.kwargs["previous_response_id"] == "resp_1"

    def test_image_attachment_becomes_input_image(self):
        part = OpenAIProvider._to_input(_stored("file-2", "image/png"))
        assert part["type"] == "input_image"
        assert part["file_id"] == "file-2"

    @pytest.mark.asyncio
    async def test_store_and_delete_content(self):
        client = MagicMock()
        client.files.create = AsyncMock(return_value=SimpleNamespace(id="file-9"))
        client.files.delete = AsyncMock(return_value=None)
        provider = OpenAIProvider(api_key="key", client=client)

        stored = await provider.store_content(b"abc", "text/plain", "f.txt")
        await provider.delete_content(stored.handle)

        assert stored.handle == "file-9"
        client.files.create.assert_awaited_once_with(
            file=("f.txt", b"abc", "text/plain"), purpose="user_data"
        )
        client.files.delete.assert_awaited_once_with("file-9")


class TestLLMFactory:
    """Tests for LLM provider factory."""

    def test_create_gemini_provider(self):
        provider = create_llm_provider(
            provider="gemini", api_key="test-key", model="gemini-2.5-pro", client=MagicMock()
        )
        assert isinstance(provider, GeminiProvider)
        assert provider.model == "gemini-2.5-pro"

    def test_create_openai_provider(self):
        provider = create_llm_provider(
            provider="openai",
            api_key="test-key",
            base_url="https://custom.api.com/v1",
            client=MagicMock(),
        )
        assert isinstance(provider, OpenAIProvider)
        assert provider.base_url == "https://custom.api.com/v1"

    @pytest.mark.parametrize("api_key", ["", None])
    def test_no_api_key_returns_none(self, api_key):
        assert create_llm_provider(provider="gemini", api_key=api_key) is None

    def test_unsupported_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_llm_provider(provider="unsupported", api_key="key")
