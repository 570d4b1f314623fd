"""
Read-only user directory used by the chat core.

Handle resolution and block lookups go through here so the mention indexer
never touches the account tables directly.
"""

from .models import User, UserBlock


def resolve_handles(handles):
    """
    Map lowercase handles to active user ids.

    Unknown or inactive handles are simply missing from the result.
    """
    wanted = {h.lower() for h in handles if h}
    if not wanted:
        return {}
    rows = User.objects.filter(handle__in=wanted, is_active=True).values_list("handle", "id")
    return dict(rows)


def blocked_among(user_id: int, candidate_ids) -> set[int]:
    """Ids in ``candidate_ids`` that block, or are blocked by, ``user_id``."""
    candidate_ids = set(candidate_ids)
    if not candidate_ids:
        return set()

    made = UserBlock.objects.filter(
        blocker_id=user_id, blocked_id__in=candidate_ids
    ).values_list("blocked_id", flat=True)
    received = UserBlock.objects.filter(
        blocked_id=user_id, blocker_id__in=candidate_ids
    ).values_list("blocker_id", flat=True)
    return set(made) | set(received)


def is_active_user(user_id) -> bool:
    return User.objects.filter(id=user_id, is_active=True).exists()
