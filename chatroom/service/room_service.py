"""
Room protocol service: join, send, sync and destroy.

Stateless per request. All room, message and presence state lives in the store;
a room exists only while rows share its id.
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional
import logging
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatroom.core.config import Settings, settings as default_settings
from chatroom.core.exceptions import (
    EncryptionFailure,
    InvalidInput,
    MissingRoomId,
    NameConflict,
    StoreUnavailable,
)
from chatroom.crud import chat_message_crud, chat_presence_crud, chat_room_crud
from chatroom.service.cipher import decrypt_message, encrypt_message
from chatroom.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")


class RoomService:
    """Handles room protocol operations for one request."""

    def __init__(
        self,
        db: Session,
        *,
        key: Optional[bytes] = None,
        clock: Clock = now_ms,
        config: Optional[Settings] = None,
    ):
        self.db = db
        self.config = config or default_settings
        self.key = key if key is not None else self.config.encryption_key
        self.clock = clock

    # --- validation ---

    def _room_id(self, room_id: Optional[str]) -> str:
        if not room_id or not room_id.strip():
            raise MissingRoomId()
        if room_id != room_id.strip():
            raise InvalidInput("Room id must not start or end with whitespace.")
        if len(room_id) > self.config.MAX_ROOM_ID_LENGTH:
            raise InvalidInput(f"Room id must be at most {self.config.MAX_ROOM_ID_LENGTH} characters.")
        return room_id

    def _username(self, username: Optional[str]) -> str:
        username = (username or "").strip()
        if not username:
            raise InvalidInput("Username is required.")
        if len(username) > self.config.MAX_USERNAME_LENGTH or not USERNAME_PATTERN.fullmatch(username):
            raise InvalidInput(
                f"Invalid username (1-{self.config.MAX_USERNAME_LENGTH} characters: letters, digits, _ . -)."
            )
        return username

    def _heartbeat_username(self, username: Optional[str]) -> Optional[str]:
        """Validated username for a read heartbeat, or None when it should be skipped."""
        if not username:
            return None
        try:
            return self._username(username)
        except InvalidInput:
            logger.debug("Skipping heartbeat for invalid username")
            return None

    def _active_threshold(self, now: int) -> int:
        return now - self.config.USER_TIMEOUT_MS

    @contextmanager
    def _store(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Store failure during %s: %s", action, e)
            raise StoreUnavailable() from e

    # --- operations ---

    def join(self, room_id: Optional[str], username: Optional[str]) -> Dict[str, Any]:
        """Claim a username in a room. Raises NameConflict while an active user holds it."""
        room_id = self._room_id(room_id)
        username = self._username(username)
        now = self.clock()
        with self._store("join"):
            claimed = chat_presence_crud.claim_name(
                self.db,
                room_id=room_id,
                username=username,
                now_ms=now,
                active_threshold=self._active_threshold(now),
            )
        if not claimed:
            logger.warning("Name conflict: %r already active in room %r", username, room_id)
            raise NameConflict()
        logger.info("User %r joined room %r", username, room_id)
        return {"success": True}

    def send(self, room_id: Optional[str], username: Optional[str], message: Optional[str]) -> Dict[str, Any]:
        """Encrypt and store a message. Counts as a heartbeat for the sender."""
        room_id = self._room_id(room_id)
        if username is None or message is None:
            raise InvalidInput("username and message are required.")
        username = self._username(username)
        message = message.strip()
        if not message:
            raise InvalidInput("Message cannot be empty or whitespace only.")
        if len(message) > self.config.MAX_MESSAGE_LENGTH:
            raise InvalidInput(f"Message too long (max {self.config.MAX_MESSAGE_LENGTH} characters).")

        payload = encrypt_message(message, self.key)
        if payload is None:
            raise EncryptionFailure()

        now = self.clock()
        with self._store("send"):
            chat_message_crud.insert(
                self.db,
                room_id=room_id,
                username=username,
                content=payload.content,
                iv=payload.iv,
                timestamp=now,
                commit=False,
            )
            chat_presence_crud.upsert_heartbeat(self.db, room_id=room_id, username=username, now_ms=now)
        return {"success": True}

    def sync(self, room_id: Optional[str], username: Optional[str] = None) -> Dict[str, Any]:
        """
        Snapshot of a room: recent messages oldest-first and the active roster.

        When username is given the read also refreshes that user's presence.
        Messages that fail to decrypt are left out of the snapshot.
        """
        room_id = self._room_id(room_id)
        heartbeat_user = self._heartbeat_username(username)
        now = self.clock()
        with self._store("sync"):
            if heartbeat_user:
                chat_presence_crud.upsert_heartbeat(self.db, room_id=room_id, username=heartbeat_user, now_ms=now)
            users = chat_presence_crud.list_active_usernames(
                self.db, room_id=room_id, active_threshold=self._active_threshold(now)
            )
            rows = chat_message_crud.list_recent(
                self.db, room_id=room_id, limit=self.config.MAX_MESSAGES_RETRIEVE
            )

        messages: List[Dict[str, Any]] = []
        for row in reversed(rows):
            text = decrypt_message(row.content, row.iv, self.key)
            if text is None:
                logger.warning("Dropping undecryptable message %s in room %r", row.id, room_id)
                continue
            messages.append({"username": row.username, "message": text, "timestamp": row.timestamp})
        return {"type": "sync", "messages": messages, "users": users}

    def destroy(self, room_id: Optional[str]) -> Dict[str, Any]:
        """Delete every message and presence row of a room. Idempotent."""
        room_id = self._room_id(room_id)
        with self._store("destroy"):
            messages, presence = chat_room_crud.delete_room_data(self.db, room_id=room_id)
        logger.info("Room %r destroyed (%s messages, %s presence rows)", room_id, messages, presence)
        return {"success": True, "message": f"Room {room_id} destroyed"}
