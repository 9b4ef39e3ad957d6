"""
Error taxonomy for the chat API.
Every error renders as {"error": message, "code": code} with its HTTP status.
"""
from typing import Optional


class ChatError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingRoomId(ChatError):
    status_code = 400
    code = "MISSING_ROOM_ID"
    default_message = "Room id is required"


class InvalidInput(ChatError):
    status_code = 400
    code = "INVALID_INPUT"
    default_message = "Invalid input"


class NotFound(ChatError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class MethodNotSupported(ChatError):
    status_code = 405
    code = "METHOD_NOT_SUPPORTED"
    default_message = "Method not supported"


class NameConflict(ChatError):
    status_code = 409
    code = "NAME_CONFLICT"
    default_message = "Username already taken in this room"


class TooFast(ChatError):
    status_code = 429
    code = "TOO_FAST"
    default_message = "Too Fast"


class EncryptionFailure(ChatError):
    status_code = 500
    code = "ENCRYPTION_FAILURE"
    default_message = "Message encryption failed"


class UnhandledException(ChatError):
    status_code = 500
    code = "UNHANDLED_EXCEPTION"


class StoreUnavailable(ChatError):
    status_code = 503
    code = "STORE_UNAVAILABLE"
    default_message = "Storage is unavailable. Please try again."
