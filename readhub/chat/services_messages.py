import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from notifications.kinds import ActivityKind
from notifications import services_activity
from . import hooks, realtime
from .conf import chat_setting
from .exceptions import (
    EditWindowExpired, EmptyMessage, InvalidParent, MessageNotFound,
    MessageTooLong, NotMember, NotOwner, RoomInactive,
)
from .models import Message, Membership, Mention
from .services_mentions import MentionSource, scan
from .services_rooms import get_room, is_member, record_activity

logger = logging.getLogger(__name__)


def _clean_text(text) -> str:
    text = (text or "").strip()
    if not text:
        raise EmptyMessage()
    limit = chat_setting("MESSAGE_MAX_LENGTH")
    if len(text) > limit:
        raise MessageTooLong(f"Message is longer than {limit} characters")
    return text


# ---- post-commit hooks ----

def scan_message_mentions(message: Message):
    scan(message.content, MentionSource.for_message(message))


def record_message_activities(message: Message):
    """
    One ``chat_message`` entry per other member. The parent's author gets a
    ``chat_reply`` instead, and users already notified by a mention are skipped.
    """
    author_id = message.sender_id
    reply_to = None
    if message.parent_id:
        reply_to = (
            Message.objects.filter(id=message.parent_id)
            .values_list("sender_id", flat=True)
            .first()
        )

    mentioned = set(
        Mention.objects.filter(message=message).values_list("mentioned_user_id", flat=True)
    )
    member_ids = (
        Membership.objects.filter(room_id=message.room_id)
        .exclude(user_id=author_id)
        .values_list("user_id", flat=True)
    )

    for user_id in member_ids:
        if user_id in mentioned:
            continue
        if reply_to and user_id == reply_to:
            kind = ActivityKind.CHAT_REPLY
        else:
            kind = ActivityKind.CHAT_MESSAGE
        services_activity.record(
            author_id,
            kind,
            recipient_id=user_id,
            room_id=message.room_id,
            message_id=message.id,
            metadata={"excerpt": message.content[:140]},
        )


def broadcast_new_message(message: Message):
    realtime.broadcast_message(message)


def broadcast_edit(message: Message):
    realtime.broadcast_message(message, event="message_edited")


def broadcast_delete(message: Message):
    realtime.broadcast_message(message, event="message_deleted")


POST_HOOKS = (scan_message_mentions, record_message_activities, broadcast_new_message)
EDIT_HOOKS = (scan_message_mentions, broadcast_edit)
DELETE_HOOKS = (broadcast_delete,)


# ---- operations ----

def post(room_id: int, user_id: int, text: str, parent_message_id: int | None = None) -> Message:
    with transaction.atomic():
        room = get_room(room_id)
        if not is_member(room.id, user_id):
            raise NotMember()
        if not room.is_active:
            raise RoomInactive()

        text = _clean_text(text)

        parent = None
        if parent_message_id is not None:
            parent = Message.objects.filter(id=parent_message_id).first()
            if not parent or parent.is_deleted or parent.room_id != room.id:
                raise InvalidParent()

        # takes the room lock, so ids within a room follow acceptance order
        record_activity(room.id)
        msg = Message.objects.create(room=room, sender_id=user_id, content=text, parent=parent)

        hooks.on_commit(POST_HOOKS, msg)

    logger.debug("message %s posted in room %s by %s", msg.id, room.id, user_id)
    return msg


def edit(message_id: int, user_id: int, new_text: str) -> Message:
    """
    Replace the text within the edit window.

    The mention scan runs again; mentions from the old text are kept.
    """
    with transaction.atomic():
        msg = Message.objects.select_for_update().filter(id=message_id).first()
        if not msg or msg.is_deleted:
            raise MessageNotFound()
        if msg.sender_id != user_id:
            raise NotOwner()

        now = timezone.now()
        window = timedelta(seconds=chat_setting("EDIT_WINDOW_SECONDS"))
        if now - msg.created_at > window:
            raise EditWindowExpired()

        msg.content = _clean_text(new_text)
        msg.edited_at = now
        msg.save(update_fields=["content", "edited_at"])

        hooks.on_commit(EDIT_HOOKS, msg)
    return msg


def soft_delete(message_id: int, user_id: int, *, as_moderator: bool = False) -> Message:
    with transaction.atomic():
        msg = Message.objects.select_for_update().filter(id=message_id).first()
        if not msg:
            raise MessageNotFound()
        if msg.sender_id != user_id and not as_moderator:
            raise NotOwner()
        if msg.is_deleted:
            return msg

        msg.is_deleted = True
        msg.deleted_at = timezone.now()
        msg.save(update_fields=["is_deleted", "deleted_at"])

        hooks.on_commit(DELETE_HOOKS, msg)

    logger.info("message %s deleted by %s (moderator=%s)", msg.id, user_id, as_moderator)
    return msg


def get_message(message_id: int) -> Message:
    msg = Message.objects.select_related("sender").filter(id=message_id).first()
    if not msg:
        raise MessageNotFound()
    return msg


def list_messages(room_id: int, before_message_id: int | None = None, limit: int | None = None):
    """
    Newest first. Pass the last id you saw as ``before_message_id`` for the
    next page. Deleted messages stay in the page as tombstones.
    """
    limit = limit or chat_setting("LIST_PAGE_SIZE")
    qs = Message.objects.filter(room_id=room_id)
    if before_message_id is not None:
        qs = qs.filter(id__lt=before_message_id)
    return (
        qs.select_related("sender")
        .prefetch_related("reactions")
        .order_by("-id")[:limit]
    )
