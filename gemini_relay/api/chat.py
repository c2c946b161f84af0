"""
Chat API endpoint - one prompt, optionally with a staged attachment.
"""

from typing import Optional
from fastapi import APIRouter, Depends

from ..core import RelayService
from ..models import ChatRequest, ChatResponse, ErrorResponse
from .deps import get_relay, get_session_header

router = APIRouter(prefix="/api", tags=["chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse},
               502: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def chat(
    body: ChatRequest,
    relay: RelayService = Depends(get_relay),
    session_header: Optional[str] = Depends(get_session_header),
):
    """
    Send a prompt to the session's conversation.

    The session is taken from the body, then the X-Session-Id header, then
    the configured default. A `fileToken` is used once and then deleted,
    whatever the outcome of the turn.
    """
    reply = await relay.run_turn(
        session_id=body.session_id or session_header,
        prompt=body.prompt,
        token=body.file_token,
    )
    return ChatResponse(response=reply.content)
