from chatroom.model.chat_message import ChatMessage
from chatroom.model.chat_presence import ChatPresence

__all__ = ["ChatMessage", "ChatPresence"]
