"""
Room API: /api/room/{room_id}/{action}.
Endpoints are plain functions so FastAPI runs the blocking store calls in its threadpool.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from chatroom.core.database import get_db
from chatroom.core.exceptions import MethodNotSupported, MissingRoomId, NotFound
from chatroom.core.responses import json_response
from chatroom.schema.chat import ErrorResponse, JoinBody, SendBody, SuccessResponse, SyncResponse
from chatroom.service.room_service import RoomService

router = APIRouter()

KNOWN_ACTIONS = {"messages": "GET", "send": "POST", "join": "POST", "destroy": "POST"}
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def get_room_service(db: Session = Depends(get_db)) -> RoomService:
    return RoomService(db)


@router.get("/{room_id}/messages", response_model=SyncResponse, responses=ERROR_RESPONSES)
def sync_room(
    room_id: str,
    user: Optional[str] = None,
    service: RoomService = Depends(get_room_service),
):
    """Room snapshot for polling clients. Refreshes presence of `user` when given."""
    return json_response(service.sync(room_id, user))


@router.post("/{room_id}/send", response_model=SuccessResponse, responses=ERROR_RESPONSES)
def send_message(
    room_id: str,
    body: SendBody,
    service: RoomService = Depends(get_room_service),
):
    return json_response(service.send(room_id, body.username, body.message))


@router.post(
    "/{room_id}/join",
    response_model=SuccessResponse,
    responses={**ERROR_RESPONSES, 409: {"model": ErrorResponse}},
)
def join_room(
    room_id: str,
    body: JoinBody,
    service: RoomService = Depends(get_room_service),
):
    """Claim a username. 409 while another active user holds it."""
    return json_response(service.join(room_id, body.username))


@router.post("/{room_id}/destroy", response_model=SuccessResponse, responses=ERROR_RESPONSES)
def destroy_room(
    room_id: str,
    service: RoomService = Depends(get_room_service),
):
    """Irreversibly delete all messages and presence of a room."""
    return json_response(service.destroy(room_id))


@router.api_route("/{room_id}/{action}", methods=ALL_METHODS, include_in_schema=False)
def unsupported_action(room_id: str, action: str, request: Request):
    if action in KNOWN_ACTIONS:
        raise MethodNotSupported(f"{request.method} is not supported for '{action}', use {KNOWN_ACTIONS[action]}.")
    raise NotFound("Action")


@router.api_route("", methods=ALL_METHODS, include_in_schema=False)
@router.api_route("/{rest:path}", methods=ALL_METHODS, include_in_schema=False)
def invalid_room_path(rest: str = ""):
    if not rest.split("/")[0].strip():
        raise MissingRoomId()
    raise NotFound("Action")
