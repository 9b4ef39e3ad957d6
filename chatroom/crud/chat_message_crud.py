"""
Chat message CRUD.
"""
from typing import Any, Dict, List

from sqlalchemy import desc
from sqlalchemy.orm import Session

from chatroom.crud.base import CRUDBase
from chatroom.model.chat_message import ChatMessage


class CRUDChatMessage(CRUDBase[ChatMessage, Dict[str, Any]]):
    def insert(
        self,
        db: Session,
        *,
        room_id: str,
        username: str,
        content: str,
        iv: str,
        timestamp: int,
        commit: bool = True,
    ) -> ChatMessage:
        return self.create_from_dict(
            db,
            obj_in={
                "room_id": room_id,
                "username": username,
                "content": content,
                "iv": iv,
                "timestamp": timestamp,
            },
            commit=commit,
        )

    def list_recent(self, db: Session, *, room_id: str, limit: int) -> List[ChatMessage]:
        """Most recent messages in a room, newest first."""
        return (
            db.query(self.model)
            .filter(self.model.room_id == room_id)
            .order_by(desc(self.model.timestamp), desc(self.model.id))
            .limit(limit)
            .all()
        )

    def delete_by_room(self, db: Session, *, room_id: str) -> int:
        """Delete all messages of a room. Caller commits."""
        return (
            db.query(self.model)
            .filter(self.model.room_id == room_id)
            .delete(synchronize_session=False)
        )

    def delete_expired(self, db: Session, *, cutoff: int) -> int:
        deleted = (
            db.query(self.model)
            .filter(self.model.timestamp < cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted


chat_message_crud = CRUDChatMessage(ChatMessage)
