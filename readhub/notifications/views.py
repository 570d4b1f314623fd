from rest_framework.response import Response

from chat.views import ServiceAPIView
from .fanout import get_preferences
from .serializers import ActivitySerializer
from . import services_activity

PAGE_SIZE = 20


def _page_params(request):
    try:
        limit = int(request.GET.get("limit") or PAGE_SIZE)
    except ValueError:
        limit = PAGE_SIZE
    limit = max(1, min(limit, 100))

    cursor = request.GET.get("cursor")
    cursor = int(cursor) if cursor and cursor.isdigit() else None
    return limit, cursor


def _page(request, qs, limit):
    items = list(qs)
    return Response({
        "results": ActivitySerializer(items, many=True).data,
        "next_cursor": items[-1].id if len(items) == limit else None,
    })


class ActivityListView(ServiceAPIView):
    def get(self, request):
        limit, cursor = _page_params(request)
        unread_only = request.GET.get("unread") in ("1", "true", "yes")

        qs = services_activity.list_activities(
            request.user.id,
            filter=request.GET.get("filter") or "all",
            unread_only=unread_only,
            cursor=cursor,
            limit=limit,
        )
        return _page(request, qs, limit)


class UnreadCountView(ServiceAPIView):
    def get(self, request):
        return Response({"unread": services_activity.unread_count(request.user.id)})


class ActivityMarkReadView(ServiceAPIView):
    def post(self, request, activity_id):
        activity = services_activity.mark_read(activity_id, request.user.id)
        return Response(ActivitySerializer(activity).data)


class ActivityMarkAllReadView(ServiceAPIView):
    def post(self, request):
        updated = services_activity.mark_all_read(request.user.id)
        return Response({"success": True, "updated": updated})


class ProfileActivityView(ServiceAPIView):
    def get(self, request, user_id):
        limit, cursor = _page_params(request)
        qs = services_activity.profile_activities(user_id, cursor=cursor, limit=limit)
        return _page(request, qs, limit)


class NotificationPreferencesView(ServiceAPIView):
    # read-only here; the settings screen owns writes
    def get(self, request):
        return Response(get_preferences(request.user.id).as_dict())
