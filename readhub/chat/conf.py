from django.conf import settings

DEFAULTS = {
    "MESSAGE_MAX_LENGTH": 2000,
    "EDIT_WINDOW_SECONDS": 300,
    "LIST_PAGE_SIZE": 50,
}


def chat_setting(name):
    return getattr(settings, "CHAT", {}).get(name, DEFAULTS[name])
