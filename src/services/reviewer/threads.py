"""Review comment threading: which conversations are waiting on the bot."""

from dataclasses import dataclass

from src.services.reviewer.schemas import ExistingReviewComment


@dataclass(frozen=True)
class PendingThread:
    """A bot-started thread whose most recent reply came from someone else."""

    top_level: ExistingReviewComment
    replies: list[ExistingReviewComment]


def split_top_level(
    comments: list[ExistingReviewComment],
) -> tuple[list[ExistingReviewComment], list[ExistingReviewComment]]:
    """Partition comments into (top_level, replies), keeping host order."""
    top_level = [c for c in comments if not c.in_reply_to_id]
    replies = [c for c in comments if c.in_reply_to_id]
    return top_level, replies


def build_replies_map(
    comments: list[ExistingReviewComment],
) -> dict[int, list[ExistingReviewComment]]:
    """Map each top-level comment id to its replies, in host order.

    Replies pointing at something other than a top-level comment in the list
    are dropped.
    """
    top_level, replies = split_top_level(comments)
    replies_map: dict[int, list[ExistingReviewComment]] = {c.id: [] for c in top_level}

    for reply in replies:
        if reply.in_reply_to_id in replies_map:
            replies_map[reply.in_reply_to_id].append(reply)

    return replies_map


def find_pending_threads(
    comments: list[ExistingReviewComment],
    bot_login: str,
) -> list[PendingThread]:
    """Threads the bot should answer.

    A thread is pending when the bot wrote the top-level comment, it has at
    least one reply, and the last reply was not written by the bot.
    """
    top_level, _ = split_top_level(comments)
    replies_map = build_replies_map(comments)

    pending = []
    for comment in top_level:
        if comment.user_login != bot_login:
            continue

        thread_replies = replies_map[comment.id]
        if not thread_replies:
            continue

        if thread_replies[-1].user_login == bot_login:
            continue

        pending.append(PendingThread(top_level=comment, replies=thread_replies))

    return pending


def format_conversation(thread: PendingThread, bot_login: str) -> str:
    """Render a thread as "- AI: ..." / "- Human(login): ..." lines."""
    lines = [f"- AI: {thread.top_level.body}"]
    for reply in thread.replies:
        speaker = "AI" if reply.user_login == bot_login else f"Human({reply.user_login})"
        lines.append(f"- {speaker}: {reply.body}")
    return "\n".join(lines)
