"""
Upload API endpoints - stage files for the next chat turn.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from ..core import RelayService
from ..models import UploadRequest, UploadResponse, DiscardResponse, ErrorResponse
from .deps import get_relay

router = APIRouter(prefix="/api/upload", tags=["upload"])

_ERRORS = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.post("", response_model=UploadResponse, responses=_ERRORS)
async def upload_base64(
    body: UploadRequest,
    relay: RelayService = Depends(get_relay),
):
    """
    Receive base64 encoded file data from the console.

    Returns:
        The file token to pass as `fileToken` on the next chat request
    """
    token = await relay.upload(body.base64_data, body.mime_type, body.file_name)
    return UploadResponse(file_token=token)


@router.post("/file", response_model=UploadResponse, responses=_ERRORS)
async def upload_file(
    file: UploadFile = File(...),
    relay: RelayService = Depends(get_relay),
):
    """Multipart variant of the upload for clients that send raw bytes."""
    data = await file.read()
    token = await relay.upload(data, file.content_type, file.filename)
    return UploadResponse(file_token=token)


@router.delete("/{token:path}", response_model=DiscardResponse)
async def discard_upload(
    token: str,
    relay: RelayService = Depends(get_relay),
):
    """Drop a staged file that will not be used in a chat turn."""
    return DiscardResponse(discarded=relay.discard(token))
