"""API module."""

from .chat import router as chat_router
from .upload import router as upload_router

__all__ = ['chat_router', 'upload_router']
