"""
Chat message model. One encrypted message in a room.
A room is never stored on its own: it exists while rows share its room_id.
"""
from sqlalchemy import BigInteger, Column, Index, Integer, String, Text

from chatroom.core.database import Base


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    __table_args__ = (Index("ix_chat_messages_room_id_timestamp", "room_id", "timestamp"),)

    # Autoincrement id breaks timestamp ties in insertion order.
    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String, nullable=False, index=True)
    username = Column(String, nullable=False)
    content = Column(Text, nullable=False)  # hex ciphertext
    iv = Column(String, nullable=False)  # hex nonce, paired with content
    timestamp = Column(BigInteger, nullable=False, index=True)  # epoch ms at insert
