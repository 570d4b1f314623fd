import logging

from django.db import transaction
from django.utils import timezone

from books.catalog import get_book
from notifications.kinds import ActivityKind
from notifications import services_activity
from . import hooks
from .exceptions import MessageNotFound, NotMember, RoomInactive, RoomNotFound
from .models import Room, Membership, Message, Mention

logger = logging.getLogger(__name__)


def get_or_create_room(book_id: int) -> Room:
    book = get_book(book_id)
    room, created = Room.objects.get_or_create(book=book)
    if created:
        logger.info("created room %s for book %s", room.id, book.id)
    return room


def get_room(room_id: int) -> Room:
    room = Room.objects.filter(id=room_id).first()
    if not room:
        raise RoomNotFound()
    return room


def get_membership(room_id: int, user_id: int) -> Membership:
    membership = Membership.objects.filter(room_id=room_id, user_id=user_id).first()
    if not membership:
        raise NotMember()
    return membership


def is_member(room_id: int, user_id: int) -> bool:
    return Membership.objects.filter(room_id=room_id, user_id=user_id).exists()


def _record_joined(membership):
    services_activity.record(
        membership.user_id,
        ActivityKind.JOINED_ROOM,
        room_id=membership.room_id,
        book_id=membership.room.book_id,
    )


@transaction.atomic
def join(room_id: int, user_id: int) -> Membership:
    """Upsert: joining twice hands back the existing membership."""
    room = get_room(room_id)
    if not room.is_active:
        raise RoomInactive()

    membership, created = Membership.objects.get_or_create(room=room, user_id=user_id)
    if created:
        hooks.on_commit([_record_joined], membership)
    return membership


def join_book_room(book_id: int, user_id: int) -> Membership:
    room = get_or_create_room(book_id)
    return join(room.id, user_id)


@transaction.atomic
def leave(room_id: int, user_id: int) -> None:
    deleted, _ = Membership.objects.filter(room_id=room_id, user_id=user_id).delete()
    if not deleted:
        raise NotMember()


def _set_muted(room_id: int, user_id: int, muted: bool) -> Membership:
    with transaction.atomic():
        membership = (
            Membership.objects.select_for_update()
            .filter(room_id=room_id, user_id=user_id)
            .first()
        )
        if not membership:
            raise NotMember()

        membership.is_muted = muted
        membership.muted_at = timezone.now() if muted else None
        membership.save(update_fields=["is_muted", "muted_at"])
    return membership


def mute(room_id: int, user_id: int) -> Membership:
    return _set_muted(room_id, user_id, True)


def unmute(room_id: int, user_id: int) -> Membership:
    return _set_muted(room_id, user_id, False)


def mark_read(room_id: int, user_id: int, upto_message_id: int) -> bool:
    """
    Advance the read watermark to ``upto_message_id``.

    Moving backwards is a silent no-op. Returns True when the watermark moved;
    room mentions and room activities up to it are cleared at the same time.
    """
    with transaction.atomic():
        membership = (
            Membership.objects.select_for_update()
            .filter(room_id=room_id, user_id=user_id)
            .first()
        )
        if not membership:
            raise NotMember()

        message = Message.objects.filter(id=upto_message_id, room_id=room_id).first()
        if not message:
            raise MessageNotFound()

        prev = membership.last_read_message_id or 0
        if message.id <= prev:
            return False

        membership.last_read_message_id = message.id
        membership.last_read_at = message.created_at
        membership.save(update_fields=["last_read_message_id", "last_read_at"])

        now = timezone.now()
        Mention.objects.filter(
            mentioned_user_id=user_id,
            message__room_id=room_id,
            message_id__lte=message.id,
            is_read=False,
        ).update(is_read=True, read_at=now)

        services_activity.mark_room_read(user_id, room_id, message.id)
        return True


def record_activity(room_id: int, *, now=None) -> Room:
    """
    Bump the room counters for one accepted message.

    The row lock serialises concurrent posters, so a day rollover resets
    ``messages_today`` exactly once. A post stamped before the stored day
    (it lost the race to the lock) counts towards the current day instead
    of moving the date back.
    """
    now = now or timezone.now()
    today = timezone.localdate(now)

    with transaction.atomic():
        room = Room.objects.select_for_update().get(id=room_id)

        last_reset = room.last_message_reset_date
        if last_reset is not None and today <= last_reset:
            room.messages_today += 1
        else:
            room.messages_today = 1
            room.last_message_reset_date = today

        room.message_count += 1
        if room.last_activity_at is None or now > room.last_activity_at:
            room.last_activity_at = now
        room.save(update_fields=[
            "messages_today",
            "last_message_reset_date",
            "message_count",
            "last_activity_at",
        ])
    return room


def list_members(room_id: int):
    return (
        Membership.objects.filter(room_id=room_id)
        .select_related("user")
        .order_by("joined_at", "id")
    )


def member_count(room_id: int) -> int:
    return Membership.objects.filter(room_id=room_id).count()


def unread_message_count(room_id: int, user_id: int) -> int:
    membership = get_membership(room_id, user_id)
    return (
        Message.objects.filter(
            room_id=room_id,
            id__gt=membership.last_read_message_id or 0,
            is_deleted=False,
        )
        .exclude(sender_id=user_id)
        .count()
    )


def deactivate_room(room_id: int) -> Room:
    room = get_room(room_id)
    if room.is_active:
        room.is_active = False
        room.save(update_fields=["is_active"])
    return room
