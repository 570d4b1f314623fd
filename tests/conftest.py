"""
Pytest configuration and fixtures shared by the readhub tests.

Provides:
- Users with handles, a book and its room with members
- A recording delivery backend in place of e-mail/push
- Settings pinned for deterministic fan-out (no burst window)
"""

import pytest
from rest_framework.test import APIClient

from accounts.models import User, UserBlock
from books.models import Book
from chat.models import Membership, Room
from tests.fakes import RecordingBackend


# ============================================================================
# Settings
# ============================================================================

@pytest.fixture(autouse=True)
def readhub_settings(settings):
    """Celery off, in-memory transports, recording delivery backend."""
    settings.CELERY_ENABLED = False
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}
    settings.CHAT = {
        "MESSAGE_MAX_LENGTH": 2000,
        "EDIT_WINDOW_SECONDS": 300,
        "LIST_PAGE_SIZE": 50,
    }
    settings.NOTIFICATIONS = {
        "DELIVERY_BACKEND": "tests.fakes.RecordingBackend",
        "MAX_ATTEMPTS": 3,
        "ATTEMPT_TIMEOUT_SECONDS": 1.0,
        "BURST_WINDOW_SECONDS": 0,
    }
    return settings


@pytest.fixture(autouse=True)
def outbox():
    RecordingBackend.reset()
    yield RecordingBackend
    RecordingBackend.reset()


# ============================================================================
# Data Factories
# ============================================================================

@pytest.fixture
def make_user(db):
    """Factory for users; the handle doubles as the e-mail local part."""
    def _create(handle, **extra):
        return User.objects.create_user(
            email=f"{handle}@example.com",
            password="pass1234",
            handle=handle,
            **extra,
        )
    return _create


@pytest.fixture
def alice(make_user):
    return make_user("alice", display_name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol")


@pytest.fixture
def book(db):
    return Book.objects.create(title="The Left Hand of Darkness", author="Ursula K. Le Guin")


@pytest.fixture
def room(book):
    return Room.objects.create(book=book)


@pytest.fixture
def members(room, alice, bob):
    """alice and bob are members of ``room``."""
    Membership.objects.create(room=room, user=alice)
    Membership.objects.create(room=room, user=bob)
    return alice, bob


@pytest.fixture
def block(db):
    def _block(blocker, blocked):
        return UserBlock.objects.create(blocker=blocker, blocked=blocked)
    return _block


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(api_client):
    def _as(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _as
