"""
Chat presence model. Last heartbeat of a username in a room.
"""
from sqlalchemy import BigInteger, Column, Integer, String, UniqueConstraint

from chatroom.core.database import Base


class ChatPresence(Base):
    __tablename__ = "chat_presence"
    __table_args__ = (UniqueConstraint("room_id", "username", name="uq_chat_presence_room_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String, nullable=False, index=True)
    username = Column(String, nullable=False)
    last_seen = Column(BigInteger, nullable=False)  # epoch ms
