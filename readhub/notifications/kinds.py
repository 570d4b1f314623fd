"""
Activity kinds and everything keyed by them.

Adding a kind means adding one ``ActivityKind`` member and one ``KIND_RULES``
row; the feed filters, preference lookup and fan-out all read from here.
"""
from dataclasses import dataclass

from django.db import models


class ActivityKind(models.TextChoices):
    MENTIONED_IN_CHAT = "mentioned_in_chat", "Mentioned in chat"
    MENTIONED_IN_COMMENT = "mentioned_in_comment", "Mentioned in a comment"
    CHAT_MESSAGE = "chat_message", "New chat message"
    CHAT_REPLY = "chat_reply", "Reply to your message"
    CHAT_REACTION = "chat_reaction", "Reaction to your message"
    REVIEW_COMMENT = "review_comment", "Comment on your review"
    COMMENT_REPLY = "comment_reply", "Reply to your comment"
    LIKED_REVIEW = "liked_review", "Liked a review"
    NEW_FOLLOWER = "new_follower", "New follower"
    FINISHED_BOOK = "finished_book", "Finished a book"
    WROTE_REVIEW = "wrote_review", "Wrote a review"
    JOINED_ROOM = "joined_room", "Joined a book chat"
    NEW_RELEASE = "new_release", "New release"
    RECOMMENDATION = "recommendation", "Recommendation"


class Category(models.TextChoices):
    NEW_FOLLOWER = "new_follower"
    REVIEW_COMMENT = "review_comment"
    COMMENT_REPLY = "comment_reply"
    CHAT_MENTION = "chat_mention"
    COMMENT_MENTION = "comment_mention"
    WEEKLY_SUMMARY = "weekly_summary"
    PUSH_CHAT_MESSAGE = "push_chat_message"
    PUSH_ACTIVITY = "push_activity"
    PUSH_NEW_RELEASE = "push_new_release"
    PUSH_RECOMMENDATION = "push_recommendation"


class Channel(models.TextChoices):
    EMAIL = "email"
    PUSH = "push"


CATEGORY_CHANNEL = {
    Category.NEW_FOLLOWER: Channel.EMAIL,
    Category.REVIEW_COMMENT: Channel.EMAIL,
    Category.COMMENT_REPLY: Channel.EMAIL,
    Category.CHAT_MENTION: Channel.EMAIL,
    Category.COMMENT_MENTION: Channel.EMAIL,
    Category.WEEKLY_SUMMARY: Channel.EMAIL,
    Category.PUSH_CHAT_MESSAGE: Channel.PUSH,
    Category.PUSH_ACTIVITY: Channel.PUSH,
    Category.PUSH_NEW_RELEASE: Channel.PUSH,
    Category.PUSH_RECOMMENDATION: Channel.PUSH,
}


FEED_FILTERS = ("all", "comments", "replies", "mentions", "likes", "followers")


@dataclass(frozen=True)
class KindRule:
    feed_filter: str
    category: str | None
    on_profile: bool
    # silenced out-of-band when the recipient muted the room
    muted_by_room: bool
    summary: str


KIND_RULES = {
    ActivityKind.MENTIONED_IN_CHAT: KindRule(
        "mentions", Category.CHAT_MENTION, False, False, "@{actor} mentioned you in a book chat"),
    ActivityKind.MENTIONED_IN_COMMENT: KindRule(
        "mentions", Category.COMMENT_MENTION, False, False, "@{actor} mentioned you in a comment"),
    ActivityKind.CHAT_MESSAGE: KindRule(
        "all", Category.PUSH_CHAT_MESSAGE, False, True, "@{actor}: {excerpt}"),
    ActivityKind.CHAT_REPLY: KindRule(
        "replies", Category.COMMENT_REPLY, False, True, "@{actor} replied to your message"),
    ActivityKind.CHAT_REACTION: KindRule(
        "likes", Category.PUSH_ACTIVITY, False, True, "@{actor} reacted to your message"),
    ActivityKind.REVIEW_COMMENT: KindRule(
        "comments", Category.REVIEW_COMMENT, False, False, "@{actor} commented on your review"),
    ActivityKind.COMMENT_REPLY: KindRule(
        "replies", Category.COMMENT_REPLY, False, False, "@{actor} replied to your comment"),
    ActivityKind.LIKED_REVIEW: KindRule(
        "likes", Category.PUSH_ACTIVITY, True, False, "@{actor} liked your review"),
    ActivityKind.NEW_FOLLOWER: KindRule(
        "followers", Category.NEW_FOLLOWER, True, False, "@{actor} started following you"),
    ActivityKind.FINISHED_BOOK: KindRule(
        "all", Category.PUSH_ACTIVITY, True, False, "@{actor} finished a book"),
    ActivityKind.WROTE_REVIEW: KindRule(
        "all", Category.PUSH_ACTIVITY, True, False, "@{actor} wrote a review"),
    ActivityKind.JOINED_ROOM: KindRule(
        "all", None, True, False, "@{actor} joined a book chat"),
    ActivityKind.NEW_RELEASE: KindRule(
        "all", Category.PUSH_NEW_RELEASE, False, False, "A book you follow has a new release"),
    ActivityKind.RECOMMENDATION: KindRule(
        "all", Category.PUSH_RECOMMENDATION, False, False, "We found a book you might like"),
}


def rule_for(kind) -> KindRule:
    return KIND_RULES[ActivityKind(kind)]


def kinds_for_filter(name):
    """Kinds shown under a feed filter; ``None`` means no narrowing."""
    if name == "all":
        return None
    return [kind for kind, rule in KIND_RULES.items() if rule.feed_filter == name]


def profile_kinds():
    return [kind for kind, rule in KIND_RULES.items() if rule.on_profile]


# room activities cleared when the recipient reads the room up to them
ROOM_READ_KINDS = (
    ActivityKind.MENTIONED_IN_CHAT,
    ActivityKind.CHAT_MESSAGE,
    ActivityKind.CHAT_REPLY,
)
