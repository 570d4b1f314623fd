from django.db import models
from django.conf import settings
from django.db.models import Q
User = settings.AUTH_USER_MODEL

DELETED_PLACEHOLDER = "[deleted]"


class Room(models.Model):
    book = models.OneToOneField("books.Book", on_delete=models.PROTECT, related_name="room")

    created_at = models.DateTimeField(auto_now_add=True)
    # rooms are closed, never removed
    is_active = models.BooleanField(default=True)

    message_count = models.PositiveIntegerField(default=0)
    last_activity_at = models.DateTimeField(null=True, blank=True)

    # rolling daily counter, reset by comparing against the stored date
    messages_today = models.PositiveIntegerField(default=0)
    last_message_reset_date = models.DateField(null=True, blank=True)

    def __str__(self):
        return f"room:{self.book_id}"


#Room membership & state
class Membership(models.Model):
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="room_memberships")

    joined_at = models.DateTimeField(auto_now_add=True)
    last_read_at = models.DateTimeField(null=True, blank=True)
    last_read_message_id = models.BigIntegerField(null=True, blank=True)

    is_muted = models.BooleanField(default=False)
    muted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ("room", "user")
        indexes = [models.Index(fields=["user", "room", "is_muted"], name="membership_user_muted_idx")]


#Message
class Message(models.Model):
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL)
    content = models.TextField()
    parent = models.ForeignKey(
        "self", null=True, blank=True, on_delete=models.SET_NULL, related_name="replies"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    edited_at = models.DateTimeField(null=True, blank=True)

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [models.Index(fields=["room", "-id"], name="message_room_recent_idx")]

    @property
    def display_content(self):
        return DELETED_PLACEHOLDER if self.is_deleted else self.content


class Mention(models.Model):
    # exactly one source: a chat message here or a review comment elsewhere
    message = models.ForeignKey(
        Message, null=True, blank=True, on_delete=models.CASCADE, related_name="mentions"
    )
    comment_id = models.BigIntegerField(null=True, blank=True)

    mentioned_user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="mentions")
    created_at = models.DateTimeField(auto_now_add=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["message", "mentioned_user"],
                condition=Q(message__isnull=False),
                name="uniq_mention_per_message",
            ),
            models.UniqueConstraint(
                fields=["comment_id", "mentioned_user"],
                condition=Q(comment_id__isnull=False),
                name="uniq_mention_per_comment",
            ),
        ]
        indexes = [models.Index(fields=["mentioned_user", "is_read"], name="mention_user_read_idx")]


class ReactionKind(models.TextChoices):
    THUMBS_UP = "thumbs_up", "Thumbs up"
    HEART = "heart", "Heart"
    LAUGH = "laugh", "Laugh"
    SURPRISED = "surprised", "Surprised"


class Reaction(models.Model):
    message = models.ForeignKey(Message, on_delete=models.CASCADE, related_name="reactions")
    user = models.ForeignKey(User, on_delete=models.CASCADE)
    kind = models.CharField(max_length=16, choices=ReactionKind.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("message", "user", "kind")
