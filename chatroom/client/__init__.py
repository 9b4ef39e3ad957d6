from chatroom.client.api import RoomApiClient, RoomApiError
from chatroom.client.e2e import RoomCipher
from chatroom.client.sync_loop import DECRYPTION_FAILED_PLACEHOLDER, RoomSession, RoomView, ViewMessage

__all__ = [
    "RoomApiClient",
    "RoomApiError",
    "RoomCipher",
    "RoomSession",
    "RoomView",
    "ViewMessage",
    "DECRYPTION_FAILED_PLACEHOLDER",
]
