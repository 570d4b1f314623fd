"""
Tests for the room and notification websockets: handshake rules, JWT query
auth, typing and read frames, and the read watermark on first delivery.
"""

import pytest
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.tokens import AccessToken

from chat import routing, services_messages
from chat.consumers import CLOSE_FORBIDDEN, CLOSE_UNAUTHENTICATED
from chat.models import Membership, Mention
from chat.realtime import user_group
from chat.ws_jwt import JwtAuthMiddleware


pytestmark = pytest.mark.django_db(transaction=True)

TIMEOUT = 5


@pytest.fixture(autouse=True)
def fresh_layer():
    layer = get_channel_layer()
    async_to_sync(layer.flush)()
    yield layer
    async_to_sync(layer.flush)()


def _room_socket(room, user):
    communicator = WebsocketCommunicator(
        URLRouter(routing.websocket_urlpatterns), f"/ws/rooms/{room.id}/"
    )
    communicator.scope["user"] = user
    return communicator


def _token_socket(path, token=None):
    if token is not None:
        path = f"{path}?token={token}"
    return WebsocketCommunicator(JwtAuthMiddleware(URLRouter(routing.websocket_urlpatterns)), path)


# ============================================================================
# Handshake
# ============================================================================

class TestRoomHandshake:

    def test_anonymous_rejected(self, room):
        async def scenario():
            socket = _room_socket(room, AnonymousUser())
            connected, code = await socket.connect(timeout=TIMEOUT)
            await socket.disconnect()
            return connected, code

        assert async_to_sync(scenario)() == (False, CLOSE_UNAUTHENTICATED)

    def test_non_member_rejected(self, room, members, carol):
        async def scenario():
            socket = _room_socket(room, carol)
            connected, code = await socket.connect(timeout=TIMEOUT)
            await socket.disconnect()
            return connected, code

        assert async_to_sync(scenario)() == (False, CLOSE_FORBIDDEN)

    def test_inactive_room_rejected(self, room, members):
        alice, _ = members
        room.is_active = False
        room.save(update_fields=["is_active"])

        async def scenario():
            socket = _room_socket(room, alice)
            connected, code = await socket.connect(timeout=TIMEOUT)
            await socket.disconnect()
            return connected, code

        assert async_to_sync(scenario)() == (False, CLOSE_FORBIDDEN)

    def test_member_connects(self, room, members):
        alice, _ = members

        async def scenario():
            socket = _room_socket(room, alice)
            connected, _ = await socket.connect(timeout=TIMEOUT)
            frame = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.disconnect()
            return connected, frame

        connected, frame = async_to_sync(scenario)()

        assert connected is True
        assert frame == {"type": "connected", "room_id": room.id}


class TestTokenAuth:

    def test_token_in_query_string(self, room, members):
        alice, _ = members
        token = str(AccessToken.for_user(alice))

        async def scenario():
            socket = _token_socket(f"/ws/rooms/{room.id}/", token)
            connected, _ = await socket.connect(timeout=TIMEOUT)
            frame = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.disconnect()
            return connected, frame

        connected, frame = async_to_sync(scenario)()

        assert connected is True
        assert frame["type"] == "connected"

    def test_bad_token_is_anonymous(self, room, members):
        async def scenario():
            socket = _token_socket(f"/ws/rooms/{room.id}/", "not-a-jwt")
            connected, code = await socket.connect(timeout=TIMEOUT)
            await socket.disconnect()
            return connected, code

        assert async_to_sync(scenario)() == (False, CLOSE_UNAUTHENTICATED)

    def test_missing_token_is_anonymous(self):
        async def scenario():
            socket = _token_socket("/ws/notifications/")
            connected, code = await socket.connect(timeout=TIMEOUT)
            await socket.disconnect()
            return connected, code

        assert async_to_sync(scenario)() == (False, CLOSE_UNAUTHENTICATED)


# ============================================================================
# Client Frames
# ============================================================================

class TestClientFrames:

    def test_typing_reaches_others_only(self, room, members):
        alice, bob = members

        async def scenario():
            sender = _room_socket(room, alice)
            other = _room_socket(room, bob)
            await sender.connect(timeout=TIMEOUT)
            await sender.receive_json_from(timeout=TIMEOUT)
            await other.connect(timeout=TIMEOUT)
            await other.receive_json_from(timeout=TIMEOUT)

            await sender.send_json_to({"type": "typing"})
            frame = await other.receive_json_from(timeout=TIMEOUT)
            echoed = not await sender.receive_nothing(timeout=0.3)

            await sender.disconnect()
            await other.disconnect()
            return frame, echoed

        frame, echoed = async_to_sync(scenario)()

        assert frame == {"type": "typing", "user_id": alice.id, "handle": "alice"}
        assert echoed is False

    def test_read_frame_moves_watermark(self, room, members):
        alice, bob = members
        message = services_messages.post(room.id, alice.id, "hello")

        async def scenario():
            socket = _room_socket(room, bob)
            await socket.connect(timeout=TIMEOUT)
            await socket.receive_json_from(timeout=TIMEOUT)
            await socket.send_json_to({"type": "read", "message_id": message.id})
            first = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.send_json_to({"type": "read", "message_id": message.id})
            again = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.disconnect()
            return first, again

        first, again = async_to_sync(scenario)()

        assert first == {"type": "read", "advanced": True}
        assert again == {"type": "read", "advanced": False}
        assert Membership.objects.get(room=room, user=bob).last_read_message_id == message.id

    def test_read_frame_with_bad_id_keeps_socket_open(self, room, members):
        alice, bob = members
        message = services_messages.post(room.id, alice.id, "hello")

        async def scenario():
            socket = _room_socket(room, bob)
            await socket.connect(timeout=TIMEOUT)
            await socket.receive_json_from(timeout=TIMEOUT)
            await socket.send_json_to({"type": "read", "message_id": "latest"})
            error = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.send_json_to({"type": "read"})
            missing = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.send_json_to({"type": "read", "message_id": str(message.id)})
            after = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.disconnect()
            return error, missing, after

        error, missing, after = async_to_sync(scenario)()

        assert error == {"type": "error", "code": "INVALID_MESSAGE_ID"}
        assert missing == {"type": "error", "code": "INVALID_MESSAGE_ID"}
        assert after == {"type": "read", "advanced": True}

    def test_read_frame_for_unknown_message(self, room, members):
        _, bob = members

        async def scenario():
            socket = _room_socket(room, bob)
            await socket.connect(timeout=TIMEOUT)
            await socket.receive_json_from(timeout=TIMEOUT)
            await socket.send_json_to({"type": "read", "message_id": 987654})
            frame = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.disconnect()
            return frame

        assert async_to_sync(scenario)() == {"type": "read", "advanced": False}


# ============================================================================
# Server Frames
# ============================================================================

class TestDelivery:

    def test_first_delivery_reads_up_to_that_message(self, room, members):
        alice, bob = members
        post = database_sync_to_async(services_messages.post)

        async def scenario():
            socket = _room_socket(room, bob)
            await socket.connect(timeout=TIMEOUT)
            await socket.receive_json_from(timeout=TIMEOUT)

            first = await post(room.id, alice.id, "first")
            second = await post(room.id, alice.id, "second @bob")
            frames = [
                await socket.receive_json_from(timeout=TIMEOUT),
                await socket.receive_json_from(timeout=TIMEOUT),
            ]
            await socket.disconnect()
            return first, second, frames

        first, second, frames = async_to_sync(scenario)()

        assert [f["type"] for f in frames] == ["message", "message"]
        assert [f["data"]["id"] for f in frames] == [first.id, second.id]

        membership = Membership.objects.get(room=room, user=bob)
        assert membership.last_read_message_id == first.id
        assert Mention.objects.filter(mentioned_user=bob, message=second, is_read=False).exists()

    def test_edit_frame(self, room, members):
        alice, bob = members
        message = services_messages.post(room.id, alice.id, "draft")

        async def scenario():
            socket = _room_socket(room, bob)
            await socket.connect(timeout=TIMEOUT)
            await socket.receive_json_from(timeout=TIMEOUT)
            await database_sync_to_async(services_messages.edit)(message.id, alice.id, "final")
            frame = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.disconnect()
            return frame

        frame = async_to_sync(scenario)()

        assert frame["type"] == "message_edited"
        assert frame["data"]["content"] == "final"
        # edits never count as a first delivery
        assert Membership.objects.get(room=room, user=bob).last_read_message_id is None


class TestNotificationSocket:

    def test_push_frame(self, bob):
        token = str(AccessToken.for_user(bob))

        async def scenario():
            socket = _token_socket("/ws/notifications/", token)
            connected, _ = await socket.connect(timeout=TIMEOUT)
            await get_channel_layer().group_send(user_group(bob.id), {
                "type": "notification_event",
                "category": "mentions",
                "summary": "alice mentioned you",
            })
            frame = await socket.receive_json_from(timeout=TIMEOUT)
            await socket.disconnect()
            return connected, frame

        connected, frame = async_to_sync(scenario)()

        assert connected is True
        assert frame == {"type": "notification", "category": "mentions", "summary": "alice mentioned you"}

    def test_other_users_push_not_delivered(self, alice, bob):
        token = str(AccessToken.for_user(bob))

        async def scenario():
            socket = _token_socket("/ws/notifications/", token)
            await socket.connect(timeout=TIMEOUT)
            await get_channel_layer().group_send(user_group(alice.id), {
                "type": "notification_event",
                "category": "mentions",
                "summary": "for alice",
            })
            quiet = await socket.receive_nothing(timeout=0.3)
            await socket.disconnect()
            return quiet

        assert async_to_sync(scenario)() is True
