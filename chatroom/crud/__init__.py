from chatroom.crud.chat_message_crud import chat_message_crud
from chatroom.crud.chat_presence_crud import chat_presence_crud
from chatroom.crud.chat_room_crud import chat_room_crud

__all__ = [
    "chat_message_crud",
    "chat_presence_crud",
    "chat_room_crud",
]
