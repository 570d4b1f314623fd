from rest_framework import serializers
from .models import Membership, Message, ReactionKind, Room
from . import services_rooms


def user_summary(u):
    if not u:
        return None
    return {
        "id": u.id,
        "handle": u.handle,
        "name": u.name,
    }


class RoomSerializer(serializers.ModelSerializer):
    book_title = serializers.CharField(source="book.title", read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Room
        fields = (
            "id",
            "book_id",
            "book_title",
            "is_active",
            "created_at",
            "message_count",
            "messages_today",
            "last_activity_at",
            "member_count",
        )

    def get_member_count(self, obj):
        return services_rooms.member_count(obj.id)


class MembershipSerializer(serializers.ModelSerializer):
    user = serializers.SerializerMethodField()

    class Meta:
        model = Membership
        fields = (
            "room_id",
            "user",
            "joined_at",
            "last_read_at",
            "last_read_message_id",
            "is_muted",
            "muted_at",
        )

    def get_user(self, obj):
        return user_summary(obj.user)


class MessageSerializer(serializers.ModelSerializer):
    content = serializers.CharField(source="display_content", read_only=True)
    sender = serializers.SerializerMethodField()
    reactions = serializers.SerializerMethodField()
    my_reactions = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = (
            "id",
            "room_id",
            "content",
            "is_deleted",
            "created_at",
            "edited_at",
            "parent_id",
            "sender",
            "reactions",
            "my_reactions",
        )

    def get_sender(self, obj):
        return user_summary(obj.sender)

    def get_reactions(self, obj):
        # iterates the prefetched rows instead of one count query per kind
        counts = {k: 0 for k in ReactionKind.values}
        for r in obj.reactions.all():
            counts[r.kind] += 1
        return counts

    def get_my_reactions(self, obj):
        req = self.context.get("request")
        if not req or req.user.is_anonymous:
            return []
        mine = {r.kind for r in obj.reactions.all() if r.user_id == req.user.id}
        return [k for k in ReactionKind.values if k in mine]


class PostMessageSerializer(serializers.Serializer):
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)
    parent_message_id = serializers.IntegerField(required=False, allow_null=True)


class EditMessageSerializer(serializers.Serializer):
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)


class MarkReadSerializer(serializers.Serializer):
    last_message_id = serializers.IntegerField()


class ReactSerializer(serializers.Serializer):
    # validated by the service so the error code stays INVALID_REACTION
    kind = serializers.CharField()
