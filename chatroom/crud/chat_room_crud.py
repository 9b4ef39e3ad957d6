"""
Chat room CRUD. Rooms have no table; this operates on every row sharing a room_id.
"""
from typing import Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatroom.crud.chat_message_crud import chat_message_crud
from chatroom.crud.chat_presence_crud import chat_presence_crud


class CRUDChatRoom:
    def delete_room_data(self, db: Session, *, room_id: str) -> Tuple[int, int]:
        """Delete messages and presence of a room in one transaction. Returns (messages, presence) counts."""
        try:
            messages = chat_message_crud.delete_by_room(db, room_id=room_id)
            presence = chat_presence_crud.delete_by_room(db, room_id=room_id)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return messages, presence


chat_room_crud = CRUDChatRoom()
