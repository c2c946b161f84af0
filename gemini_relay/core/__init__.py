"""Core module - session and attachment lifecycle."""

from .attachments import AttachmentBroker, StagedAttachment
from .registry import ConversationRegistry
from .relay import RelayService

__all__ = ['AttachmentBroker', 'StagedAttachment', 'ConversationRegistry', 'RelayService']
