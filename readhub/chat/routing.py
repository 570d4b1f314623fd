from django.urls import path

from .consumers import ChatRoomConsumer, NotificationConsumer

websocket_urlpatterns = [
    path("ws/rooms/<int:room_id>/", ChatRoomConsumer.as_asgi()),
    path("ws/notifications/", NotificationConsumer.as_asgi()),
]
