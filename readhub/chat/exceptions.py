class ServiceError(Exception):
    """
    A rejected precondition.

    ``code`` ends up in the API error payload, ``status`` is the HTTP status
    the views answer with.
    """
    code = "SERVICE_ERROR"
    status = 400
    default_message = "Request rejected"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def as_payload(self):
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
            },
        }


class NotMember(ServiceError):
    code = "NOT_MEMBER"
    status = 403
    default_message = "You are not a member of this room"


class NotOwner(ServiceError):
    code = "NOT_OWNER"
    status = 403
    default_message = "Only the author can do this"


class InvalidParent(ServiceError):
    code = "INVALID_PARENT"
    default_message = "Parent message is missing, deleted or in another room"


class MessageTooLong(ServiceError):
    code = "MESSAGE_TOO_LONG"
    default_message = "Message is too long"


class EmptyMessage(ServiceError):
    code = "EMPTY_MESSAGE"
    default_message = "Message text is required"


class EditWindowExpired(ServiceError):
    code = "EDIT_WINDOW_EXPIRED"
    status = 403
    default_message = "This message can no longer be edited"


class InvalidReactionKind(ServiceError):
    code = "INVALID_REACTION"
    default_message = "Invalid reaction"


class MessageNotFound(ServiceError):
    code = "MESSAGE_NOT_FOUND"
    status = 404
    default_message = "Message not found"


class RoomNotFound(ServiceError):
    code = "ROOM_NOT_FOUND"
    status = 404
    default_message = "Room not found"


class RoomInactive(ServiceError):
    code = "ROOM_INACTIVE"
    status = 403
    default_message = "This room is closed"


class BookNotFound(ServiceError):
    code = "BOOK_NOT_FOUND"
    status = 404
    default_message = "Book not found"
