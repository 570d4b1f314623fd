from rest_framework import serializers

from chat.serializers import user_summary
from .models import Activity


class ActivitySerializer(serializers.ModelSerializer):
    actor = serializers.SerializerMethodField()

    class Meta:
        model = Activity
        fields = (
            "id",
            "kind",
            "actor",
            "recipient_id",
            "book_id",
            "review_id",
            "comment_id",
            "target_user_id",
            "room_id",
            "message_id",
            "metadata",
            "is_read",
            "read_at",
            "created_at",
        )

    def get_actor(self, obj):
        return user_summary(obj.actor)
