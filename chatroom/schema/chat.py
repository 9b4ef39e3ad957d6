"""
Chat schemas: request bodies and responses of the room API.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


# --- Requests ---

class JoinBody(BaseModel):
    """Body for POST /api/room/{room_id}/join."""
    username: Optional[str] = None


class SendBody(BaseModel):
    """Body for POST /api/room/{room_id}/send. message is ciphertext when the room uses E2E."""
    username: Optional[str] = None
    message: Optional[str] = None


# --- Responses ---

class SyncMessage(BaseModel):
    username: str
    message: str
    timestamp: int = Field(..., description="Server insert time, epoch milliseconds.")


class SyncResponse(BaseModel):
    """Authoritative room snapshot returned to every poll."""
    type: Literal["sync"] = "sync"
    messages: List[SyncMessage] = Field(default_factory=list, description="Oldest first.")
    users: List[str] = Field(default_factory=list, description="Active users, unordered.")


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    code: str
