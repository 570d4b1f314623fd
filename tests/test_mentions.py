"""
Tests for @mention extraction and indexing.
"""

import pytest

from chat import services_messages
from chat.models import Mention, Message
from chat.services_mentions import MentionSource, extract_handles, scan
from notifications.kinds import ActivityKind
from notifications.models import Activity


class TestExtractHandles:

    def test_order_of_first_appearance_lowercased(self):
        assert extract_handles("@Bob and @alice, then @bob again") == ["bob", "alice"]

    def test_email_addresses_are_not_mentions(self):
        assert extract_handles("write to bob@example.com") == []

    def test_handle_edges(self):
        assert extract_handles("hi @j.r.r_t. and @_x_") == ["j.r.r_t", "_x_"]

    def test_empty(self):
        assert extract_handles("") == []
        assert extract_handles(None) == []


# ============================================================================
# Scanning
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestScanChatMessages:

    def test_scenario_mention_in_room(self, room, members):
        """Posting "hello @bob" gives one message, one mention and one unread activity."""
        alice, bob = members

        msg = services_messages.post(room.id, alice.id, "hello @bob")

        assert Message.objects.filter(room=room).count() == 1
        mention = Mention.objects.get()
        assert (mention.message_id, mention.mentioned_user_id) == (msg.id, bob.id)

        activity = Activity.objects.get(kind=ActivityKind.MENTIONED_IN_CHAT)
        assert activity.actor_id == alice.id
        assert activity.recipient_id == bob.id
        assert activity.is_read is False

    def test_blocked_recipient_gets_nothing(self, room, members, block):
        alice, bob = members
        block(bob, alice)

        msg = services_messages.post(room.id, alice.id, "hello @bob")

        assert Message.objects.filter(id=msg.id).exists()
        assert Mention.objects.count() == 0
        assert not Activity.objects.filter(kind=ActivityKind.MENTIONED_IN_CHAT).exists()

    def test_blocking_author_side_too(self, room, members, block):
        alice, bob = members
        block(alice, bob)

        services_messages.post(room.id, alice.id, "hello @bob")

        assert Mention.objects.count() == 0

    def test_self_and_unknown_handles_skipped(self, room, members):
        alice, _ = members

        services_messages.post(room.id, alice.id, "@alice talking to @nobody_here")

        assert Mention.objects.count() == 0
        assert not Activity.objects.filter(kind=ActivityKind.MENTIONED_IN_CHAT).exists()

    def test_inactive_user_not_resolved(self, room, members, make_user):
        alice, _ = members
        make_user("ghost", is_active=False)

        services_messages.post(room.id, alice.id, "@ghost?")

        assert Mention.objects.count() == 0

    def test_mentions_do_not_need_membership(self, room, members, carol):
        alice, _ = members

        services_messages.post(room.id, alice.id, "@carol you should read this")

        assert Mention.objects.filter(mentioned_user=carol).exists()

    def test_repeated_handle_mentions_once(self, room, members):
        alice, bob = members

        services_messages.post(room.id, alice.id, "@bob @BOB @bob!")

        assert Mention.objects.filter(mentioned_user=bob).count() == 1
        assert Activity.objects.filter(recipient=bob, kind=ActivityKind.MENTIONED_IN_CHAT).count() == 1

    def test_edit_adds_new_mentions_and_keeps_old(self, room, members, carol):
        alice, bob = members
        msg = services_messages.post(room.id, alice.id, "@bob hi")

        services_messages.edit(msg.id, alice.id, "hi @carol")

        assert set(Mention.objects.filter(message=msg).values_list("mentioned_user_id", flat=True)) == {
            bob.id, carol.id,
        }
        assert Activity.objects.filter(recipient=bob, kind=ActivityKind.MENTIONED_IN_CHAT).count() == 1


@pytest.mark.django_db(transaction=True)
class TestScanComments:

    def test_comment_mentions(self, alice, bob, book):
        source = MentionSource.for_comment(501, alice.id, review_id=77, book_id=book.id)

        created = scan("great point @bob", source)

        assert [m.mentioned_user_id for m in created] == [bob.id]
        assert created[0].comment_id == 501
        activity = Activity.objects.get(recipient=bob)
        assert activity.kind == ActivityKind.MENTIONED_IN_COMMENT
        assert (activity.comment_id, activity.review_id, activity.book_id) == (501, 77, book.id)

    def test_rescan_is_idempotent(self, alice, bob):
        source = MentionSource.for_comment(502, alice.id)

        scan("@bob", source)
        again = scan("@bob", source)

        assert again == []
        assert Mention.objects.filter(comment_id=502).count() == 1
        assert Activity.objects.filter(recipient=bob).count() == 1

    def test_source_without_host_is_swallowed(self, alice, bob, caplog):
        assert scan("@bob", MentionSource(author_id=alice.id)) == []
        assert "mention scan failed" in caplog.text
