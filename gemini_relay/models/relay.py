"""
Relay Models - request and response bodies of the console API.
Field aliases follow the camelCase names the console front-end sends.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class UploadRequest(BaseModel):
    """Base64 upload from the console."""
    model_config = ConfigDict(populate_by_name=True)

    base64_data: Optional[str] = Field(None, alias="base64Data")
    mime_type: Optional[str] = Field(None, alias="mimeType")
    file_name: Optional[str] = Field(None, alias="fileName")


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "File uploaded successfully"
    file_token: str = Field(..., alias="fileToken")


class DiscardResponse(BaseModel):
    discarded: bool


class ChatRequest(BaseModel):
    """One chat turn. Fields are optional so missing values get a 400, not a 422."""
    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None
    file_token: Optional[str] = Field(None, alias="fileToken")
    session_id: Optional[str] = Field(None, alias="sessionId")


class ChatResponse(BaseModel):
    response: str


class ErrorResponse(BaseModel):
    error: str
