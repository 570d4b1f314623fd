"""
Tests for reaction aggregation.
"""

import pytest

from chat import services_messages, services_reactions, services_rooms
from chat.exceptions import InvalidReactionKind, MessageNotFound, NotMember
from chat.models import Reaction
from notifications.kinds import ActivityKind
from notifications.models import Activity


@pytest.fixture
def message(room, members):
    alice, _ = members
    return services_messages.post(room.id, alice.id, "what did everyone think?")


@pytest.mark.django_db
class TestReact:

    def test_react_twice_counts_once(self, message, members):
        _, bob = members

        services_reactions.react(message.id, bob.id, "heart")
        summary = services_reactions.react(message.id, bob.id, "heart")

        assert Reaction.objects.filter(message=message, user=bob, kind="heart").count() == 1
        assert summary["counts"]["heart"] == 1
        assert summary["mine"] == ["heart"]

    def test_react_unreact_react(self, message, members):
        """thumbs_up, remove it, thumbs_up again: one row, count one."""
        alice, _ = members

        services_reactions.react(message.id, alice.id, "thumbs_up")
        services_reactions.unreact(message.id, alice.id, "thumbs_up")
        summary = services_reactions.react(message.id, alice.id, "thumbs_up")

        assert Reaction.objects.filter(message=message, user=alice, kind="thumbs_up").count() == 1
        assert summary["counts"]["thumbs_up"] == 1

    def test_unreact_absent_is_noop(self, message, members):
        alice, _ = members

        summary = services_reactions.unreact(message.id, alice.id, "laugh")

        assert summary["counts"]["laugh"] == 0
        assert summary["mine"] == []

    def test_unknown_kind(self, message, members):
        alice, _ = members
        with pytest.raises(InvalidReactionKind):
            services_reactions.react(message.id, alice.id, "party_parrot")
        with pytest.raises(InvalidReactionKind):
            services_reactions.unreact(message.id, alice.id, "party_parrot")

    def test_deleted_message(self, message, members):
        alice, bob = members
        services_messages.soft_delete(message.id, alice.id)

        with pytest.raises(MessageNotFound):
            services_reactions.react(message.id, bob.id, "heart")

    def test_non_member(self, message, carol):
        with pytest.raises(NotMember):
            services_reactions.react(message.id, carol.id, "heart")

    def test_counts_and_mine(self, message, members, room, carol):
        alice, bob = members
        services_rooms.join(room.id, carol.id)

        services_reactions.react(message.id, bob.id, "heart")
        services_reactions.react(message.id, carol.id, "heart")
        services_reactions.react(message.id, bob.id, "laugh")

        summary = services_reactions.get_reactions(message.id, bob.id)
        assert summary["counts"] == {"thumbs_up": 0, "heart": 2, "laugh": 1, "surprised": 0}
        assert summary["mine"] == ["heart", "laugh"]
        assert services_reactions.get_reactions(message.id, alice.id)["mine"] == []

    def test_get_reactions_unknown_message(self, alice):
        with pytest.raises(MessageNotFound):
            services_reactions.get_reactions(987654, alice.id)


@pytest.mark.django_db(transaction=True)
class TestReactionActivity:

    def test_author_is_told_once(self, message, members):
        alice, bob = members

        services_reactions.react(message.id, bob.id, "heart")
        services_reactions.react(message.id, bob.id, "heart")

        activity = Activity.objects.get(kind=ActivityKind.CHAT_REACTION)
        assert (activity.actor_id, activity.recipient_id) == (bob.id, alice.id)
        assert activity.metadata == {"reaction": "heart"}

    def test_own_reaction_is_silent(self, message, members):
        alice, _ = members

        services_reactions.react(message.id, alice.id, "heart")

        assert not Activity.objects.filter(kind=ActivityKind.CHAT_REACTION).exists()
