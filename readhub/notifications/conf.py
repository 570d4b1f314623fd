from django.conf import settings

DEFAULTS = {
    "DELIVERY_BACKEND": "notifications.delivery.DefaultDeliveryBackend",
    "MAX_ATTEMPTS": 3,
    "ATTEMPT_TIMEOUT_SECONDS": 10.0,
    "BURST_WINDOW_SECONDS": 60,
}


def notification_setting(name):
    return getattr(settings, "NOTIFICATIONS", {}).get(name, DEFAULTS[name])
