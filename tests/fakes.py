"""Delivery backend stand-in that records what would have been sent."""
from notifications.delivery import BaseDeliveryBackend


class RecordingBackend(BaseDeliveryBackend):
    outbox = []
    # number of upcoming send() calls that raise
    fail_next = 0

    @classmethod
    def reset(cls):
        cls.outbox = []
        cls.fail_next = 0

    def send(self, *, recipient, category, channel, summary, timeout) -> bool:
        if RecordingBackend.fail_next > 0:
            RecordingBackend.fail_next -= 1
            raise TimeoutError("delivery timed out")
        RecordingBackend.outbox.append({
            "recipient_id": recipient.id,
            "category": str(category),
            "channel": str(channel),
            "summary": summary,
        })
        return True

    @classmethod
    def sent_to(cls, user):
        return [n for n in cls.outbox if n["recipient_id"] == user.id]
