from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from .conf import chat_setting
from .exceptions import ServiceError
from .serializers import (
    EditMessageSerializer, MarkReadSerializer, MembershipSerializer, MessageSerializer,
    PostMessageSerializer, ReactSerializer, RoomSerializer,
)
from . import services_messages, services_reactions, services_rooms


class ServiceAPIView(APIView):
    """Answers ServiceError with the standard error payload."""
    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, ServiceError):
            return Response(exc.as_payload(), status=exc.status)
        return super().handle_exception(exc)


def _int_param(request, name, default=None):
    raw = request.GET.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ---- ROOMS ----
class BookRoomView(ServiceAPIView):
    def post(self, request, book_id):
        room = services_rooms.get_or_create_room(book_id)
        return Response(RoomSerializer(room).data)


class JoinBookRoomView(ServiceAPIView):
    def post(self, request, book_id):
        membership = services_rooms.join_book_room(book_id, request.user.id)
        return Response(MembershipSerializer(membership).data, status=status.HTTP_200_OK)


class RoomDetailView(ServiceAPIView):
    def get(self, request, room_id):
        room = services_rooms.get_room(room_id)
        data = RoomSerializer(room).data
        if services_rooms.is_member(room.id, request.user.id):
            data["unread_messages"] = services_rooms.unread_message_count(room.id, request.user.id)
        return Response(data)


class JoinRoomView(ServiceAPIView):
    def post(self, request, room_id):
        membership = services_rooms.join(room_id, request.user.id)
        return Response(MembershipSerializer(membership).data)


class LeaveRoomView(ServiceAPIView):
    def post(self, request, room_id):
        services_rooms.leave(room_id, request.user.id)
        return Response({"success": True})


class MuteRoomView(ServiceAPIView):
    def post(self, request, room_id):
        membership = services_rooms.mute(room_id, request.user.id)
        return Response(MembershipSerializer(membership).data)


class UnmuteRoomView(ServiceAPIView):
    def post(self, request, room_id):
        membership = services_rooms.unmute(room_id, request.user.id)
        return Response(MembershipSerializer(membership).data)


class MarkRoomReadView(ServiceAPIView):
    def post(self, request, room_id):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        moved = services_rooms.mark_read(
            room_id, request.user.id, serializer.validated_data["last_message_id"]
        )
        return Response({"success": True, "advanced": moved})


class RoomMembersView(ServiceAPIView):
    def get(self, request, room_id):
        services_rooms.get_membership(room_id, request.user.id)
        members = services_rooms.list_members(room_id)
        return Response({
            "count": len(members),
            "results": MembershipSerializer(members, many=True).data,
        })


# ---- MESSAGES ----
class MessageListView(ServiceAPIView):
    def get(self, request, room_id):
        services_rooms.get_membership(room_id, request.user.id)

        limit = max(1, min(_int_param(request, "limit", chat_setting("LIST_PAGE_SIZE")), 200))
        before = _int_param(request, "before")
        messages = list(services_messages.list_messages(room_id, before, limit))

        return Response({
            "results": MessageSerializer(messages, many=True, context={"request": request}).data,
            "next_before": messages[-1].id if len(messages) == limit else None,
        })


class SendMessageView(ServiceAPIView):
    def post(self, request, room_id):
        serializer = PostMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        msg = services_messages.post(
            room_id,
            request.user.id,
            serializer.validated_data["content"],
            serializer.validated_data.get("parent_message_id"),
        )
        return Response(
            {"success": True, "message": MessageSerializer(msg, context={"request": request}).data},
            status=status.HTTP_201_CREATED,
        )


class MessageDetailView(ServiceAPIView):
    def patch(self, request, message_id):
        serializer = EditMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        msg = services_messages.edit(message_id, request.user.id, serializer.validated_data["content"])
        return Response({"success": True, "message": MessageSerializer(msg, context={"request": request}).data})

    def delete(self, request, message_id):
        msg = services_messages.soft_delete(
            message_id, request.user.id, as_moderator=request.user.is_staff
        )
        return Response({"success": True, "message": MessageSerializer(msg, context={"request": request}).data})


# ---- REACTIONS ----
class MessageReactionsView(ServiceAPIView):
    def get(self, request, message_id):
        return Response(services_reactions.get_reactions(message_id, request.user.id))

    def post(self, request, message_id):
        serializer = ReactSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        summary = services_reactions.react(message_id, request.user.id, serializer.validated_data["kind"])
        return Response(summary)

    def delete(self, request, message_id):
        serializer = ReactSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        summary = services_reactions.unreact(message_id, request.user.id, serializer.validated_data["kind"])
        return Response(summary)
