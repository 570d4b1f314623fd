"""
Turns recorded activities into e-mail or push notifications.

In-app visibility never depends on this module: the activity is already
committed when ``on_activity`` runs, and every failure here ends as a logged,
stored delivery status.

Suppression rules, in order:

1. no recipient, or a kind with no preference category
2. the recipient switched the category off
3. the recipient muted the room and the kind is room chatter (mentions still
   go through)
4. a delivery with the same recipient, category and burst key was sent within
   the burst window; stored as ``coalesced``
"""
import logging
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db.models import Count
from django.utils import timezone

from chat.models import Membership
from .conf import notification_setting
from .delivery import load_backend
from .kinds import CATEGORY_CHANNEL, Category, rule_for
from .models import Activity, NotificationDelivery, NotificationPreferences

logger = logging.getLogger(__name__)


def get_preferences(user_id: int) -> NotificationPreferences:
    # unsaved defaults when the user never opened their settings
    prefs = NotificationPreferences.objects.filter(user_id=user_id).first()
    return prefs or NotificationPreferences(user_id=user_id)


def is_room_muted(user_id: int, room_id: int) -> bool:
    return Membership.objects.filter(room_id=room_id, user_id=user_id, is_muted=True).exists()


def render_summary(activity: Activity) -> str:
    rule = rule_for(activity.kind)
    return rule.summary.format(
        actor=activity.actor.handle,
        excerpt=(activity.metadata or {}).get("excerpt", ""),
    )


def burst_key(activity: Activity) -> str:
    if activity.room_id:
        return f"room:{activity.room_id}:{activity.kind}"
    return f"actor:{activity.actor_id}:{activity.kind}"


class NotificationFanout:
    def __init__(self, backend=None):
        self.backend = backend or load_backend()
        self.max_attempts = max(1, int(notification_setting("MAX_ATTEMPTS")))
        self.timeout = notification_setting("ATTEMPT_TIMEOUT_SECONDS")
        self.burst_window = int(notification_setting("BURST_WINDOW_SECONDS"))

    def on_activity(self, activity: Activity):
        if activity.recipient_id is None:
            return None

        rule = rule_for(activity.kind)
        category = rule.category
        if category is None:
            return None

        prefs = get_preferences(activity.recipient_id)
        if not prefs.is_enabled(category):
            logger.debug("activity %s suppressed: %s disabled", activity.id, category)
            return None

        if rule.muted_by_room and activity.room_id and is_room_muted(activity.recipient_id, activity.room_id):
            logger.debug("activity %s suppressed: room %s muted", activity.id, activity.room_id)
            return None

        delivery, _ = NotificationDelivery.objects.get_or_create(
            activity=activity,
            channel=CATEGORY_CHANNEL[category],
            defaults={
                "recipient_id": activity.recipient_id,
                "category": category,
                "burst_key": burst_key(activity),
            },
        )
        if delivery.status in NotificationDelivery.FINAL:
            # redelivered by the queue
            return delivery

        if self._in_burst(delivery):
            logger.debug("activity %s coalesced into a recent %s notification", activity.id, category)
            return self._finish(delivery, "coalesced")

        return self.attempt(delivery, activity.recipient, render_summary(activity))

    def send_direct(self, recipient, category, summary):
        """Deliver something that isn't tied to one activity (digests)."""
        delivery = NotificationDelivery.objects.create(
            recipient=recipient,
            category=category,
            channel=CATEGORY_CHANNEL[category],
        )
        return self.attempt(delivery, recipient, summary)

    def _in_burst(self, delivery) -> bool:
        if self.burst_window <= 0:
            return False
        since = timezone.now() - timedelta(seconds=self.burst_window)
        return (
            NotificationDelivery.objects.filter(
                recipient_id=delivery.recipient_id,
                category=delivery.category,
                burst_key=delivery.burst_key,
                status="sent",
                finished_at__gte=since,
            )
            .exclude(id=delivery.id)
            .exists()
        )

    def attempt(self, delivery, recipient, summary):
        while delivery.attempts < self.max_attempts:
            delivery.attempts += 1
            try:
                ok = self.backend.send(
                    recipient=recipient,
                    category=delivery.category,
                    channel=delivery.channel,
                    summary=summary,
                    timeout=self.timeout,
                )
                error = "" if ok else "backend reported failure"
            except Exception as e:
                ok = False
                error = f"{type(e).__name__}: {e}"

            if ok:
                delivery.last_error = ""
                return self._finish(delivery, "sent")

            logger.warning(
                "delivery %s attempt %s/%s failed: %s",
                delivery.id, delivery.attempts, self.max_attempts, error,
            )
            delivery.last_error = error
            delivery.save(update_fields=["attempts", "last_error"])

        logger.warning(
            "giving up on %s notification for user %s after %s attempts",
            delivery.category, delivery.recipient_id, delivery.attempts,
        )
        return self._finish(delivery, "failed")

    def _finish(self, delivery, status):
        delivery.status = status
        delivery.finished_at = timezone.now()
        delivery.save(update_fields=["status", "attempts", "last_error", "finished_at"])
        return delivery


def deliver_activity(activity_id: int, backend=None):
    activity = (
        Activity.objects.select_related("actor", "recipient")
        .filter(id=activity_id)
        .first()
    )
    if not activity:
        return None
    return NotificationFanout(backend).on_activity(activity)


def send_weekly_summaries(now=None, backend=None) -> int:
    """E-mail everyone with unread activity from the last seven days."""
    User = get_user_model()
    now = now or timezone.now()
    since = now - timedelta(days=7)

    rows = (
        Activity.objects.filter(
            is_read=False,
            created_at__gte=since,
            recipient__isnull=False,
            recipient__is_active=True,
        )
        .values("recipient_id")
        .annotate(n=Count("id"))
        .order_by("recipient_id")
    )

    fanout = NotificationFanout(backend)
    sent = 0
    for row in rows:
        if not get_preferences(row["recipient_id"]).is_enabled(Category.WEEKLY_SUMMARY):
            continue
        recipient = User.objects.get(id=row["recipient_id"])
        n = row["n"]
        summary = f"You have {n} unread update{'s' if n != 1 else ''} on readhub this week"
        delivery = fanout.send_direct(recipient, Category.WEEKLY_SUMMARY, summary)
        if delivery.status == "sent":
            sent += 1

    logger.info("weekly summaries sent: %s", sent)
    return sent
