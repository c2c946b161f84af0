"""
Conversation Registry - maps session ids to provider conversations.
"""

import asyncio
import logging
from typing import Dict, Optional

from ..llm.base import LLMProvider, Conversation
from .errors import ConversationCreationError

logger = logging.getLogger(__name__)


class ConversationRegistry:
    """
    Lazily creates one conversation per session id and reuses it for the
    lifetime of the process.

    Creation is awaited while holding a lock, so overlapping first requests
    for the same session cannot create two conversations.
    """

    def __init__(
        self,
        provider: LLMProvider,
        system_instruction: str,
        model: Optional[str] = None,
        default_session_id: str = "default-it-user",
    ):
        self._provider = provider
        self.system_instruction = system_instruction
        self.model = model
        self.default_session_id = default_session_id
        self._conversations: Dict[str, Conversation] = {}
        self._turn_locks: Dict[str, asyncio.Lock] = {}
        self._create_lock = asyncio.Lock()

    def resolve_session_id(self, session_id: Optional[str]) -> str:
        """Map an absent or blank session id to the default session."""
        if session_id and session_id.strip():
            return session_id.strip()
        return self.default_session_id

    async def get_or_create(self, session_id: Optional[str] = None) -> Conversation:
        """
        Return the conversation for a session, creating it on first use.

        Raises:
            ConversationCreationError: provider refused to create the context;
                nothing is stored, so the next call retries
        """
        key = self.resolve_session_id(session_id)
        conversation = self._conversations.get(key)
        if conversation is not None:
            return conversation

        async with self._create_lock:
            conversation = self._conversations.get(key)
            if conversation is not None:
                return conversation

            logger.info(f"Creating new conversation for session {key}")
            try:
                conversation = await self._provider.create_conversation(
                    self.system_instruction, model=self.model
                )
            except Exception as e:
                logger.error(f"Failed to create conversation for session {key}: {e}")
                raise ConversationCreationError(
                    f"Failed to create chat session: {e}"
                ) from e

            self._conversations[key] = conversation
            return conversation

    def get(self, session_id: Optional[str] = None) -> Optional[Conversation]:
        """Existing conversation for a session, or None. Never creates one."""
        return self._conversations.get(self.resolve_session_id(session_id))

    def turn_lock(self, session_id: Optional[str] = None) -> asyncio.Lock:
        """Lock serializing the turns of one session."""
        key = self.resolve_session_id(session_id)
        return self._turn_locks.setdefault(key, asyncio.Lock())

    def __len__(self) -> int:
        """Number of live conversations."""
        return len(self._conversations)

    def __contains__(self, session_id: str) -> bool:
        return self.resolve_session_id(session_id) in self._conversations
