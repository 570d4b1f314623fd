"""
Out-of-band delivery backends.

A backend gets the recipient, the preference category, the channel and a
rendered one-line summary, and answers True when the notification left the
building. Raising is allowed; the fan-out counts it as a failed attempt.
"""
import asyncio
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.mail import get_connection, send_mail
from django.utils.module_loading import import_string

from chat.realtime import user_group
from .conf import notification_setting
from .kinds import Channel

logger = logging.getLogger(__name__)


class BaseDeliveryBackend:
    def send(self, *, recipient, category, channel, summary, timeout) -> bool:
        raise NotImplementedError


class DefaultDeliveryBackend(BaseDeliveryBackend):
    """E-mail through Django's mail backend, push through the channel layer."""

    subject_prefix = "[readhub] "

    def send(self, *, recipient, category, channel, summary, timeout) -> bool:
        if channel == Channel.EMAIL:
            return self.send_email(recipient, category, summary, timeout)
        return self.send_push(recipient, category, summary, timeout)

    def send_email(self, recipient, category, summary, timeout) -> bool:
        if not recipient.email:
            logger.debug("user %s has no e-mail address; skipping", recipient.id)
            return False

        connection = get_connection(timeout=timeout)
        sent = send_mail(
            subject=self.subject_prefix + summary[:120],
            message=summary,
            from_email=None,
            recipient_list=[recipient.email],
            connection=connection,
        )
        return sent == 1

    def send_push(self, recipient, category, summary, timeout) -> bool:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.debug("no channel layer configured; skipping push")
            return False

        async def _push():
            await asyncio.wait_for(
                channel_layer.group_send(
                    user_group(recipient.id),
                    {
                        "type": "notification_event",
                        "category": str(category),
                        "summary": summary,
                    },
                ),
                timeout,
            )

        async_to_sync(_push)()
        return True


def load_backend() -> BaseDeliveryBackend:
    return import_string(notification_setting("DELIVERY_BACKEND"))()
