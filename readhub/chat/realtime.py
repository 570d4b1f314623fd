from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from chat.models import Message


def room_group(room_id) -> str:
    return f"room_{room_id}"


def user_group(user_id) -> str:
    return f"user_{user_id}"


def serialize_message_payload(message: Message):
    return {
        "id": message.id,
        "room_id": message.room_id,
        "content": message.display_content,
        "is_deleted": message.is_deleted,
        "created_at": message.created_at.isoformat(),
        "edited_at": message.edited_at.isoformat() if message.edited_at else None,
        "parent_id": message.parent_id,
        "sender": {
            "id": message.sender_id,
            "handle": message.sender.handle,
            "name": message.sender.name,
        } if message.sender else None,
    }


def broadcast_message(message: Message, event="message"):
    """
    Send a message change to the room WS
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return

    async_to_sync(channel_layer.group_send)(
        room_group(message.room_id),
        {
            "type": "message_event",
            "event": event,
            "message": serialize_message_payload(message),
        }
    )


def broadcast_reaction(message: Message, *, user_id, kind, removed=False):
    from chat.services_reactions import summarize

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return

    async_to_sync(channel_layer.group_send)(
        room_group(message.room_id),
        {
            "type": "reaction_event",
            "message_id": message.id,
            "reactions": summarize(message.id, None)["counts"],
            "user_id": user_id,
            "reaction": None if removed else kind,
        }
    )
