"""
Attachment Broker - stages uploaded files for exactly one chat turn.

An attachment is keyed by the provider's own content handle. It is created
by `stage` and read by `peek`. A turn takes it with `claim` and hands it back
to `release`; `consume` does both. The token is forgotten locally at once and
the remote content is deleted in a background task.
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set, Union

from ..llm.base import LLMProvider, StoredContent
from .errors import InvalidRequestError, ContentTooLargeError, UploadError

logger = logging.getLogger(__name__)


@dataclass
class StagedAttachment:
    """An uploaded file waiting for its chat turn."""
    content: StoredContent
    staged_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def token(self) -> str:
        return self.content.handle

    @property
    def display_name(self) -> str:
        return self.content.display_name

    @property
    def mime_type(self) -> str:
        return self.content.mime_type

    @property
    def size_bytes(self) -> int:
        return self.content.size_bytes


def decode_payload(raw: Union[str, bytes]) -> bytes:
    """Decode base64 text into bytes; bytes pass through unchanged."""
    if isinstance(raw, bytes):
        return raw
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidRequestError(f"File data is not valid base64: {e}") from e


class AttachmentBroker:
    """Token -> staged attachment map with best-effort remote cleanup."""

    def __init__(self, provider: LLMProvider, max_upload_bytes: Optional[int] = None):
        self._provider = provider
        self.max_upload_bytes = max_upload_bytes
        self._staged: Dict[str, StagedAttachment] = {}
        self._cleanup_tasks: Set[asyncio.Task] = set()

    async def stage(
        self,
        raw: Union[str, bytes],
        mime_type: Optional[str],
        display_name: Optional[str],
    ) -> str:
        """
        Upload content to the provider and stage it for the next turn.

        Args:
            raw: base64 text or raw bytes
            mime_type: MIME type of the decoded content
            display_name: Original file name

        Returns:
            The token (provider content handle)

        Raises:
            InvalidRequestError: missing fields or undecodable data
            ContentTooLargeError: decoded payload exceeds max_upload_bytes
            UploadError: provider failed to store the content
        """
        if not raw or not mime_type or not display_name:
            raise InvalidRequestError("Missing file data (base64, mimeType, or fileName).")

        data = decode_payload(raw)
        if not data:
            raise InvalidRequestError("File data is empty.")
        if self.max_upload_bytes is not None and len(data) > self.max_upload_bytes:
            raise ContentTooLargeError(
                f"File is {len(data)} bytes; the limit is {self.max_upload_bytes} bytes."
            )

        try:
            content = await self._provider.store_content(data, mime_type, display_name)
        except Exception as e:
            raise UploadError(f"Provider error during upload: {e}") from e

        self._staged[content.handle] = StagedAttachment(content=content)
        logger.info(
            f"File staged: {content.handle} ({display_name})",
            extra={"extra_fields": {
                "token": content.handle,
                "mime_type": mime_type,
                "size_bytes": len(data),
            }}
        )
        return content.handle

    def peek(self, token: Optional[str]) -> Optional[StagedAttachment]:
        """Look up a staged attachment without changing state."""
        if not token:
            return None
        return self._staged.get(token)

    def claim(self, token: Optional[str]) -> Optional[StagedAttachment]:
        """
        Take a staged attachment for exclusive use by one turn.

        The token stops resolving immediately, so a concurrent turn or the
        sweeper sees a miss. The caller must `release` the attachment.
        """
        if not token:
            return None
        return self._staged.pop(token, None)

    def release(self, attachment: StagedAttachment) -> None:
        """Delete a claimed attachment's remote content in the background."""
        task = asyncio.get_running_loop().create_task(self._delete_remote(attachment))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    def consume(self, token: Optional[str]) -> bool:
        """
        Forget a token and delete its remote content in the background.

        Returns:
            True if the token was staged, False if it was already gone
        """
        attachment = self.claim(token)
        if attachment is None:
            return False
        self.release(attachment)
        return True

    async def _delete_remote(self, attachment: StagedAttachment) -> None:
        try:
            await self._provider.delete_content(attachment.token)
        except Exception as e:
            logger.error(f"Cleanup failure for token {attachment.token}: {e}")
            return
        logger.info(f"Cleanup success: deleted file token {attachment.token}")

    async def drain(self) -> None:
        """Wait for in-flight remote deletions."""
        if self._cleanup_tasks:
            await asyncio.gather(*list(self._cleanup_tasks), return_exceptions=True)

    def sweep_expired(self, max_age: timedelta, now: Optional[datetime] = None) -> List[str]:
        """
        Consume attachments staged longer than `max_age` ago.

        Returns:
            Tokens that were swept
        """
        now = now or datetime.now(timezone.utc)
        expired = [
            token for token, attachment in self._staged.items()
            if now - attachment.staged_at > max_age
        ]
        for token in expired:
            self.consume(token)
        if expired:
            logger.info(f"Swept {len(expired)} unused attachment(s)")
        return expired

    @property
    def pending_cleanups(self) -> int:
        return len(self._cleanup_tasks)

    def __len__(self) -> int:
        return len(self._staged)

    def __contains__(self, token: str) -> bool:
        return token in self._staged
