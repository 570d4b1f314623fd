"""
Entry points for the review, comment and follow subsystems.

Those subsystems own their own tables; they call in here after their write
is committed and pass plain ids.
"""
from chat.services_mentions import MentionSource, scan
from .kinds import ActivityKind
from .services_activity import record


def user_followed(follower_id: int, followed_id: int):
    return record(
        follower_id,
        ActivityKind.NEW_FOLLOWER,
        recipient_id=followed_id,
        target_user_id=followed_id,
    )


def review_written(author_id: int, review_id: int, book_id: int):
    return record(author_id, ActivityKind.WROTE_REVIEW, review_id=review_id, book_id=book_id)


def review_liked(liker_id: int, review_id: int, review_author_id: int, book_id: int | None = None):
    if liker_id == review_author_id:
        return None
    return record(
        liker_id,
        ActivityKind.LIKED_REVIEW,
        recipient_id=review_author_id,
        review_id=review_id,
        book_id=book_id,
    )


def book_finished(reader_id: int, book_id: int):
    return record(reader_id, ActivityKind.FINISHED_BOOK, book_id=book_id)


def review_commented(commenter_id: int, comment_id: int, text: str, *,
                     review_id: int, review_author_id: int, book_id: int | None = None):
    """
    A new comment on a review: notify the review's author and index the
    comment's @mentions.
    """
    activity = None
    if commenter_id != review_author_id:
        activity = record(
            commenter_id,
            ActivityKind.REVIEW_COMMENT,
            recipient_id=review_author_id,
            review_id=review_id,
            comment_id=comment_id,
            book_id=book_id,
        )
    scan(text, MentionSource.for_comment(comment_id, commenter_id, review_id=review_id, book_id=book_id))
    return activity


def comment_replied(replier_id: int, comment_id: int, text: str, *,
                    parent_author_id: int, review_id: int | None = None, book_id: int | None = None):
    activity = None
    if replier_id != parent_author_id:
        activity = record(
            replier_id,
            ActivityKind.COMMENT_REPLY,
            recipient_id=parent_author_id,
            review_id=review_id,
            comment_id=comment_id,
            book_id=book_id,
        )
    scan(text, MentionSource.for_comment(comment_id, replier_id, review_id=review_id, book_id=book_id))
    return activity


def new_release(recipient_id: int, book_id: int, announcer_id: int):
    return record(announcer_id, ActivityKind.NEW_RELEASE, recipient_id=recipient_id, book_id=book_id)


def recommendation(recipient_id: int, book_id: int, recommender_id: int):
    return record(recommender_id, ActivityKind.RECOMMENDATION, recipient_id=recipient_id, book_id=book_id)
