"""
@mention extraction for chat messages and review comments.

Scanning is an enrichment step: it runs after the host text is committed
and any failure here is logged and dropped. Handles that don't resolve, the
author's own handle and users on either side of a block with the author
are skipped without telling anyone.
"""
import logging
import re
from dataclasses import dataclass

from django.db import transaction

from accounts import directory
from notifications.kinds import ActivityKind
from notifications import services_activity
from .models import Mention

logger = logging.getLogger(__name__)

# not after a word char, so "bob@example.com" is not a mention
MENTION_RE = re.compile(r"(?<![\w@.])@([A-Za-z0-9_](?:[A-Za-z0-9_.]{0,28}[A-Za-z0-9_])?)")


@dataclass(frozen=True)
class MentionSource:
    author_id: int
    message_id: int | None = None
    comment_id: int | None = None
    room_id: int | None = None
    book_id: int | None = None
    review_id: int | None = None

    @classmethod
    def for_message(cls, message):
        return cls(
            author_id=message.sender_id,
            message_id=message.id,
            room_id=message.room_id,
        )

    @classmethod
    def for_comment(cls, comment_id: int, author_id: int, *, review_id=None, book_id=None):
        return cls(
            author_id=author_id,
            comment_id=comment_id,
            review_id=review_id,
            book_id=book_id,
        )

    @property
    def activity_kind(self):
        if self.message_id is not None:
            return ActivityKind.MENTIONED_IN_CHAT
        return ActivityKind.MENTIONED_IN_COMMENT

    def lookup(self):
        if self.message_id is not None:
            return {"message_id": self.message_id}
        return {"comment_id": self.comment_id}


def extract_handles(text) -> list[str]:
    """Lowercase handles in order of first appearance."""
    seen = []
    for match in MENTION_RE.finditer(text or ""):
        handle = match.group(1).lower()
        if handle not in seen:
            seen.append(handle)
    return seen


def scan(text, source: MentionSource) -> list[Mention]:
    try:
        return _scan(text, source)
    except Exception:
        logger.exception(
            "mention scan failed (message=%s comment=%s)", source.message_id, source.comment_id
        )
        return []


def _scan(text, source: MentionSource) -> list[Mention]:
    if source.message_id is None and source.comment_id is None:
        raise ValueError("mention source needs a message or a comment")

    handles = extract_handles(text)
    if not handles:
        return []

    resolved = directory.resolve_handles(handles)

    targets = []
    for handle in handles:
        user_id = resolved.get(handle)
        if user_id is None or user_id == source.author_id or user_id in targets:
            continue
        targets.append(user_id)

    blocked = directory.blocked_among(source.author_id, targets)
    if blocked:
        logger.debug("dropping %d blocked mention(s) from user %s", len(blocked), source.author_id)

    created = []
    for user_id in targets:
        if user_id in blocked:
            continue

        with transaction.atomic():
            mention, was_created = Mention.objects.get_or_create(
                mentioned_user_id=user_id, **source.lookup()
            )
            if not was_created:
                continue

            services_activity.record(
                source.author_id,
                source.activity_kind,
                recipient_id=user_id,
                room_id=source.room_id,
                message_id=source.message_id,
                comment_id=source.comment_id,
                review_id=source.review_id,
                book_id=source.book_id,
            )
        created.append(mention)

    return created
