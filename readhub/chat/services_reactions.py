from django.db import transaction
from django.db.models import Count

from notifications.kinds import ActivityKind
from notifications import services_activity
from . import hooks, realtime
from .exceptions import InvalidReactionKind, MessageNotFound, NotMember
from .models import Message, Reaction, ReactionKind
from .services_rooms import is_member


def _check_kind(kind):
    if kind not in ReactionKind.values:
        raise InvalidReactionKind(f"Unknown reaction '{kind}'")


def summarize(message_id: int, requesting_user_id: int | None) -> dict:
    counts = {k: 0 for k in ReactionKind.values}
    rows = (
        Reaction.objects.filter(message_id=message_id)
        .values("kind")
        .annotate(n=Count("id"))
    )
    for row in rows:
        counts[row["kind"]] = row["n"]

    mine = set()
    if requesting_user_id:
        mine = set(
            Reaction.objects.filter(message_id=message_id, user_id=requesting_user_id)
            .values_list("kind", flat=True)
        )

    return {
        "message_id": message_id,
        "counts": counts,
        "mine": [k for k in ReactionKind.values if k in mine],
    }


def record_reaction_activity(reaction: Reaction, author_id):
    if not author_id or author_id == reaction.user_id:
        return
    services_activity.record(
        reaction.user_id,
        ActivityKind.CHAT_REACTION,
        recipient_id=author_id,
        room_id=reaction.message.room_id,
        message_id=reaction.message_id,
        metadata={"reaction": reaction.kind},
    )


def broadcast_reaction(reaction: Reaction, author_id=None, removed=False):
    realtime.broadcast_reaction(
        reaction.message,
        user_id=reaction.user_id,
        kind=reaction.kind,
        removed=removed,
    )


def react(message_id: int, user_id: int, kind: str) -> dict:
    """
    Add ``kind`` from ``user_id``. Reacting again with the same kind changes
    nothing and still succeeds.
    """
    _check_kind(kind)

    msg = Message.objects.filter(id=message_id, is_deleted=False).first()
    if not msg:
        raise MessageNotFound()
    if not is_member(msg.room_id, user_id):
        raise NotMember()

    with transaction.atomic():
        # the unique (message, user, kind) key settles concurrent duplicates
        reaction, created = Reaction.objects.get_or_create(
            message=msg, user_id=user_id, kind=kind
        )
        if created:
            hooks.on_commit(
                (record_reaction_activity, broadcast_reaction), reaction, msg.sender_id
            )

    return summarize(msg.id, user_id)


def unreact(message_id: int, user_id: int, kind: str) -> dict:
    _check_kind(kind)

    with transaction.atomic():
        reaction = (
            Reaction.objects.select_related("message")
            .filter(message_id=message_id, user_id=user_id, kind=kind)
            .first()
        )
        if reaction:
            reaction.delete()
            hooks.on_commit((broadcast_reaction,), reaction, removed=True)

    return summarize(message_id, user_id)


def get_reactions(message_id: int, requesting_user_id: int | None) -> dict:
    if not Message.objects.filter(id=message_id).exists():
        raise MessageNotFound()
    return summarize(message_id, requesting_user_id)
