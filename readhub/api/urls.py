from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from chat.views import (
    BookRoomView, JoinBookRoomView, RoomDetailView, JoinRoomView, LeaveRoomView,
    MuteRoomView, UnmuteRoomView, MarkRoomReadView, RoomMembersView,
    MessageListView, SendMessageView, MessageDetailView, MessageReactionsView,
)
from notifications.views import (
    ActivityListView, UnreadCountView, ActivityMarkReadView, ActivityMarkAllReadView,
    ProfileActivityView, NotificationPreferencesView,
)

urlpatterns = [
    path("token/", TokenObtainPairView.as_view()),
    path("token/refresh/", TokenRefreshView.as_view()),

    path("books/<int:book_id>/room/", BookRoomView.as_view()),
    path("books/<int:book_id>/room/join/", JoinBookRoomView.as_view()),

    path("rooms/<int:room_id>/", RoomDetailView.as_view()),
    path("rooms/<int:room_id>/join/", JoinRoomView.as_view()),
    path("rooms/<int:room_id>/leave/", LeaveRoomView.as_view()),
    path("rooms/<int:room_id>/mute/", MuteRoomView.as_view()),
    path("rooms/<int:room_id>/unmute/", UnmuteRoomView.as_view()),
    path("rooms/<int:room_id>/read/", MarkRoomReadView.as_view()),
    path("rooms/<int:room_id>/members/", RoomMembersView.as_view()),
    path("rooms/<int:room_id>/messages/", MessageListView.as_view()),
    path("rooms/<int:room_id>/send/", SendMessageView.as_view()),

    path("messages/<int:message_id>/", MessageDetailView.as_view()),
    path("messages/<int:message_id>/reactions/", MessageReactionsView.as_view()),

    path("activities/", ActivityListView.as_view()),
    path("activities/unread-count/", UnreadCountView.as_view()),
    path("activities/read-all/", ActivityMarkAllReadView.as_view()),
    path("activities/<int:activity_id>/read/", ActivityMarkReadView.as_view()),
    path("users/<int:user_id>/activities/", ProfileActivityView.as_view()),

    path("notifications/preferences/", NotificationPreferencesView.as_view()),
]
