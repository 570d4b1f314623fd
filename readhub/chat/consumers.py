from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from chat.exceptions import ServiceError
from chat.models import Membership
from chat.realtime import room_group, user_group
from chat.services_rooms import mark_read

CLOSE_UNAUTHENTICATED = 4401
CLOSE_FORBIDDEN = 4403


@database_sync_to_async
def can_user_connect(user, room_id):
    return Membership.objects.filter(room_id=room_id, user=user, room__is_active=True).exists()


@database_sync_to_async
def mark_read_upto(room_id, user, message_id):
    try:
        return mark_read(room_id, user.id, message_id)
    except ServiceError:
        # left the room or sent a stale id
        return False


def _is_anonymous(user):
    return not user or isinstance(user, AnonymousUser) or not user.is_authenticated


class GroupConsumer(AsyncJsonWebsocketConsumer):
    """Authenticated socket bound to a single channel-layer group."""

    group_name = None

    async def join_group(self, name):
        self.group_name = name
        await self.channel_layer.group_add(name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)


class ChatRoomConsumer(GroupConsumer):
    """
    Live view of one room.

    Clients receive ``message``, ``message_edited``, ``message_deleted``,
    ``reaction`` and ``typing`` frames and may send ``typing`` or
    ``{"type": "read", "message_id": ...}``. The first new message delivered
    after connecting moves the read watermark up to that message.
    """

    async def connect(self):
        user = self.scope.get("user")
        if _is_anonymous(user):
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        self.room_id = int(self.scope["url_route"]["kwargs"]["room_id"])
        if not await can_user_connect(user, self.room_id):
            await self.close(code=CLOSE_FORBIDDEN)
            return

        self._marked_read = False
        await self.join_group(room_group(self.room_id))
        await self.send_json({"type": "connected", "room_id": self.room_id})

    async def receive_json(self, data):
        user = self.scope["user"]
        kind = data.get("type")

        if kind == "typing":
            await self.channel_layer.group_send(self.group_name, {
                "type": "typing_event",
                "user_id": user.id,
                "handle": user.handle,
            })
        elif kind == "read":
            try:
                message_id = int(data.get("message_id"))
            except (TypeError, ValueError):
                await self.send_json({"type": "error", "code": "INVALID_MESSAGE_ID"})
                return
            moved = await mark_read_upto(self.room_id, user, message_id)
            await self.send_json({"type": "read", "advanced": moved})

    async def message_event(self, event):
        name = event.get("event", "message")
        await self.send_json({"type": name, "data": event["message"]})

        if name == "message" and not self._marked_read:
            self._marked_read = True
            await mark_read_upto(self.room_id, self.scope["user"], event["message"]["id"])

    async def typing_event(self, event):
        if event["user_id"] == self.scope["user"].id:
            return
        await self.send_json({"type": "typing", "user_id": event["user_id"], "handle": event["handle"]})

    async def reaction_event(self, event):
        await self.send_json({
            "type": "reaction",
            "message_id": event["message_id"],
            "reactions": event["reactions"],
            "user_id": event["user_id"],
            "reaction": event["reaction"],
        })


class NotificationConsumer(GroupConsumer):
    """Push channel: one group per user, fed by the delivery backend."""

    async def connect(self):
        user = self.scope.get("user")
        if _is_anonymous(user):
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return
        await self.join_group(user_group(user.id))

    async def notification_event(self, event):
        await self.send_json({
            "type": "notification",
            "category": event["category"],
            "summary": event["summary"],
        })
