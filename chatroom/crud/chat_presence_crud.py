"""
Chat presence CRUD.
Heartbeats and name claims are single INSERT ... ON CONFLICT statements on (room_id, username).
"""
from typing import Any, Dict, List

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from chatroom.crud.base import CRUDBase
from chatroom.model.chat_presence import ChatPresence

_CONFLICT_TARGET = ["room_id", "username"]


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"Upsert is not supported for dialect: {dialect}")


class CRUDChatPresence(CRUDBase[ChatPresence, Dict[str, Any]]):
    def upsert_heartbeat(
        self, db: Session, *, room_id: str, username: str, now_ms: int, commit: bool = True
    ) -> None:
        """Insert a presence row or overwrite its last_seen."""
        insert = _dialect_insert(db)
        stmt = insert(self.model).values(room_id=room_id, username=username, last_seen=now_ms)
        stmt = stmt.on_conflict_do_update(
            index_elements=_CONFLICT_TARGET,
            set_={"last_seen": stmt.excluded.last_seen},
        )
        db.execute(stmt)
        if commit:
            db.commit()

    def claim_name(self, db: Session, *, room_id: str, username: str, now_ms: int, active_threshold: int) -> bool:
        """
        Take a username in a room unless an active holder exists.

        The row is written only when absent or when its last_seen is at or
        before active_threshold, so two concurrent claims cannot both win.

        Returns:
            True if the name was claimed, False if it is held by an active user.
        """
        insert = _dialect_insert(db)
        stmt = insert(self.model).values(room_id=room_id, username=username, last_seen=now_ms)
        stmt = stmt.on_conflict_do_update(
            index_elements=_CONFLICT_TARGET,
            set_={"last_seen": stmt.excluded.last_seen},
            where=self.model.last_seen <= active_threshold,
        ).returning(self.model.username)
        claimed = db.execute(stmt).first() is not None
        db.commit()
        return claimed

    def list_active_usernames(self, db: Session, *, room_id: str, active_threshold: int) -> List[str]:
        rows = (
            db.query(self.model.username)
            .filter(
                self.model.room_id == room_id,
                self.model.last_seen > active_threshold,
            )
            .all()
        )
        return [row.username for row in rows]

    def delete_by_room(self, db: Session, *, room_id: str) -> int:
        """Delete all presence rows of a room. Caller commits."""
        return (
            db.query(self.model)
            .filter(self.model.room_id == room_id)
            .delete(synchronize_session=False)
        )


chat_presence_crud = CRUDChatPresence(ChatPresence)
