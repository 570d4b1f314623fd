import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


KIND_CHOICES = [
    ("mentioned_in_chat", "Mentioned in chat"),
    ("mentioned_in_comment", "Mentioned in a comment"),
    ("chat_message", "New chat message"),
    ("chat_reply", "Reply to your message"),
    ("chat_reaction", "Reaction to your message"),
    ("review_comment", "Comment on your review"),
    ("comment_reply", "Reply to your comment"),
    ("liked_review", "Liked a review"),
    ("new_follower", "New follower"),
    ("finished_book", "Finished a book"),
    ("wrote_review", "Wrote a review"),
    ("joined_room", "Joined a book chat"),
    ("new_release", "New release"),
    ("recommendation", "Recommendation"),
]

CATEGORY_CHOICES = [
    ("new_follower", "New Follower"),
    ("review_comment", "Review Comment"),
    ("comment_reply", "Comment Reply"),
    ("chat_mention", "Chat Mention"),
    ("comment_mention", "Comment Mention"),
    ("weekly_summary", "Weekly Summary"),
    ("push_chat_message", "Push Chat Message"),
    ("push_activity", "Push Activity"),
    ("push_new_release", "Push New Release"),
    ("push_recommendation", "Push Recommendation"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("books", "0001_initial"),
        ("chat", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Activity",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("kind", models.CharField(choices=KIND_CHOICES, max_length=32)),
                ("review_id", models.BigIntegerField(blank=True, null=True)),
                ("comment_id", models.BigIntegerField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("is_read", models.BooleanField(default=False)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("actor", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="activities_caused", to=settings.AUTH_USER_MODEL)),
                ("book", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="books.book")),
                ("message", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="chat.message")),
                ("recipient", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="activities", to=settings.AUTH_USER_MODEL)),
                ("room", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="chat.room")),
                ("target_user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["recipient", "is_read", "-created_at"], name="activity_feed_idx"),
                    models.Index(fields=["actor", "-created_at"], name="activity_actor_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="NotificationPreferences",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("new_follower", models.BooleanField(default=True)),
                ("review_comment", models.BooleanField(default=True)),
                ("comment_reply", models.BooleanField(default=True)),
                ("chat_mention", models.BooleanField(default=True)),
                ("comment_mention", models.BooleanField(default=True)),
                ("weekly_summary", models.BooleanField(default=True)),
                ("push_chat_message", models.BooleanField(default=True)),
                ("push_activity", models.BooleanField(default=True)),
                ("push_new_release", models.BooleanField(default=True)),
                ("push_recommendation", models.BooleanField(default=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="notification_preferences", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="NotificationDelivery",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("category", models.CharField(choices=CATEGORY_CHOICES, max_length=32)),
                ("channel", models.CharField(choices=[("email", "Email"), ("push", "Push")], max_length=8)),
                ("burst_key", models.CharField(blank=True, max_length=128)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("sent", "Sent"), ("failed", "Failed"), ("coalesced", "Coalesced")], default="pending", max_length=10)),
                ("attempts", models.PositiveSmallIntegerField(default=0)),
                ("last_error", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                ("activity", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="deliveries", to="notifications.activity")),
                ("recipient", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["recipient", "category", "burst_key", "-finished_at"], name="delivery_burst_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("activity", "channel"), name="uniq_delivery_per_channel"),
                ],
            },
        ),
    ]
