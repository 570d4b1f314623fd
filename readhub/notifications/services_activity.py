"""
The activity feed.

Entries are appended by whichever service observed the event and only ever
change once, from unread to read. Out-of-band delivery is scheduled after
the entry is committed and can't fail the write that produced it.
"""
import logging
from functools import partial

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from accounts.directory import is_active_user
from .exceptions import ActivityNotFound, InvalidActivityKind, InvalidActor, InvalidFilter, NotRecipient
from .kinds import ActivityKind, FEED_FILTERS, ROOM_READ_KINDS, kinds_for_filter, profile_kinds
from .models import Activity

logger = logging.getLogger(__name__)


def dispatch_fanout(activity_id: int):
    try:
        if getattr(settings, "CELERY_ENABLED", False):
            from .tasks import deliver_activity_task
            deliver_activity_task.delay(activity_id)
        else:
            from .fanout import deliver_activity
            deliver_activity(activity_id)
    except Exception:
        logger.exception("fan-out dispatch failed for activity %s", activity_id)


def record(
    actor_id: int,
    kind,
    *,
    recipient_id: int | None = None,
    book_id: int | None = None,
    review_id: int | None = None,
    comment_id: int | None = None,
    target_user_id: int | None = None,
    room_id: int | None = None,
    message_id: int | None = None,
    metadata: dict | None = None,
) -> Activity:
    try:
        kind = ActivityKind(kind)
    except ValueError:
        raise InvalidActivityKind(f"Unknown activity kind '{kind}'")

    if not actor_id or not is_active_user(actor_id):
        raise InvalidActor()

    activity = Activity.objects.create(
        actor_id=actor_id,
        recipient_id=recipient_id,
        kind=kind,
        book_id=book_id,
        review_id=review_id,
        comment_id=comment_id,
        target_user_id=target_user_id,
        room_id=room_id,
        message_id=message_id,
        metadata=metadata or {},
    )

    if recipient_id is not None:
        transaction.on_commit(partial(dispatch_fanout, activity.id))
    return activity


def _feed(user_id: int, unread_only: bool):
    qs = Activity.objects.filter(recipient_id=user_id)
    if unread_only:
        qs = qs.filter(is_read=False)
    return qs


def _after_cursor(qs, anchors, cursor):
    """Entries strictly after ``cursor`` in (-created_at, -id) order."""
    anchor = anchors.filter(id=cursor).values("created_at", "id").first()
    if not anchor:
        raise ActivityNotFound("Unknown cursor")
    return qs.filter(
        Q(created_at__lt=anchor["created_at"]) |
        Q(created_at=anchor["created_at"], id__lt=anchor["id"])
    )


def list_activities(user_id: int, filter="all", unread_only=False, cursor=None, limit=None):
    """
    Newest first. ``cursor`` is the id of the last activity of the previous
    page; the next page starts strictly after it.
    """
    if filter not in FEED_FILTERS:
        raise InvalidFilter(f"Unknown filter '{filter}'")

    qs = _feed(user_id, unread_only)

    kinds = kinds_for_filter(filter)
    if kinds is not None:
        qs = qs.filter(kind__in=kinds)

    if cursor is not None:
        qs = _after_cursor(qs, Activity.objects.filter(recipient_id=user_id), cursor)

    qs = qs.select_related("actor").order_by("-created_at", "-id")
    if limit:
        qs = qs[:limit]
    return qs


def unread_count(user_id: int) -> int:
    # same predicate as list_activities(unread_only=True), served by the index
    return _feed(user_id, True).count()


def mark_read(activity_id: int, user_id: int) -> Activity:
    activity = Activity.objects.filter(id=activity_id).first()
    if not activity:
        raise ActivityNotFound()
    if activity.recipient_id != user_id:
        raise NotRecipient()

    if not activity.is_read:
        Activity.objects.filter(id=activity.id, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
        activity.refresh_from_db(fields=["is_read", "read_at"])
    return activity


def mark_all_read(user_id: int) -> int:
    return _feed(user_id, True).update(is_read=True, read_at=timezone.now())


def mark_room_read(user_id: int, room_id: int, upto_message_id: int) -> int:
    return _feed(user_id, True).filter(
        room_id=room_id,
        kind__in=ROOM_READ_KINDS,
        message_id__lte=upto_message_id,
    ).update(is_read=True, read_at=timezone.now())


def profile_activities(actor_id: int, cursor=None, limit=None):
    qs = Activity.objects.filter(actor_id=actor_id, kind__in=profile_kinds())
    if cursor is not None:
        qs = _after_cursor(qs, qs, cursor)
    qs = qs.select_related("actor", "book").order_by("-created_at", "-id")
    if limit:
        qs = qs[:limit]
    return qs
