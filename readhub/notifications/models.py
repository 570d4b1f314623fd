from django.db import models
from django.conf import settings
from .kinds import ActivityKind, Category, Channel
User = settings.AUTH_USER_MODEL


class Activity(models.Model):
    # who caused it / whose feed shows it
    actor = models.ForeignKey(User, on_delete=models.CASCADE, related_name="activities_caused")
    recipient = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.CASCADE, related_name="activities"
    )
    kind = models.CharField(max_length=32, choices=ActivityKind.choices)

    book = models.ForeignKey("books.Book", null=True, blank=True, on_delete=models.SET_NULL)
    review_id = models.BigIntegerField(null=True, blank=True)
    comment_id = models.BigIntegerField(null=True, blank=True)
    target_user = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    room = models.ForeignKey("chat.Room", null=True, blank=True, on_delete=models.SET_NULL)
    message = models.ForeignKey("chat.Message", null=True, blank=True, on_delete=models.SET_NULL)

    metadata = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["recipient", "is_read", "-created_at"], name="activity_feed_idx"),
            models.Index(fields=["actor", "-created_at"], name="activity_actor_idx"),
        ]


class NotificationPreferences(models.Model):
    """
    Per-user switches, one per ``Category``. Owned by the settings screen;
    the notification core only reads it.
    """
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="notification_preferences")

    new_follower = models.BooleanField(default=True)
    review_comment = models.BooleanField(default=True)
    comment_reply = models.BooleanField(default=True)
    chat_mention = models.BooleanField(default=True)
    comment_mention = models.BooleanField(default=True)
    weekly_summary = models.BooleanField(default=True)

    push_chat_message = models.BooleanField(default=True)
    push_activity = models.BooleanField(default=True)
    push_new_release = models.BooleanField(default=True)
    push_recommendation = models.BooleanField(default=True)

    updated_at = models.DateTimeField(auto_now=True)

    def is_enabled(self, category) -> bool:
        return bool(getattr(self, Category(category).value))

    def as_dict(self):
        return {c.value: self.is_enabled(c) for c in Category}


class NotificationDelivery(models.Model):
    STATUS = (
        ("pending", "Pending"),
        ("sent", "Sent"),
        ("failed", "Failed"),
        ("coalesced", "Coalesced"),
    )
    FINAL = ("sent", "failed", "coalesced")

    activity = models.ForeignKey(
        Activity, null=True, blank=True, on_delete=models.CASCADE, related_name="deliveries"
    )
    recipient = models.ForeignKey(User, on_delete=models.CASCADE)
    category = models.CharField(max_length=32, choices=Category.choices)
    channel = models.CharField(max_length=8, choices=Channel.choices)
    burst_key = models.CharField(max_length=128, blank=True)

    status = models.CharField(max_length=10, choices=STATUS, default="pending")
    attempts = models.PositiveSmallIntegerField(default=0)
    last_error = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["activity", "channel"], name="uniq_delivery_per_channel"),
        ]
        indexes = [models.Index(fields=["recipient", "category", "burst_key", "-finished_at"], name="delivery_burst_idx")]
