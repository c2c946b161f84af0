"""Models module."""

from .relay import (
    UploadRequest, UploadResponse, DiscardResponse, ChatRequest, ChatResponse, ErrorResponse
)

__all__ = [
    'UploadRequest', 'UploadResponse', 'DiscardResponse',
    'ChatRequest', 'ChatResponse', 'ErrorResponse'
]
