"""
API Router - all endpoints.
"""
from fastapi import APIRouter

from chatroom.router.api import room

api_router = APIRouter(prefix="/api")

api_router.include_router(
    room.router,
    prefix="/room",
    tags=["Room"],
)
