import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from models.post import Comment, PollOption, Post
from utils.timestamps import now_iso, parse_timestamp

POST_TYPES = ("text", "image", "poll")
SORT_LATEST = "latest"
SORT_POPULAR = "popular"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _int(value: Any) -> int:
    # bool is an int subclass but never a count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)


def normalize_comment(raw: Any) -> Comment:
    if not isinstance(raw, dict):
        raw = {}
    return Comment(
        id=_str(raw.get("id")),
        text=_str(raw.get("text")),
        author=_str(raw.get("author"), "Anonymous"),
        timestamp=_str(raw.get("timestamp")) or now_iso(),
    )


def normalize_post(raw: Any) -> Post:
    """
    Coerce an API record into a Post.
    Missing or wrongly typed fields fall back to safe defaults, so a
    malformed record never breaks the feed.
    """
    if not isinstance(raw, dict):
        raw = {}

    comments = raw.get("comments")
    tags = raw.get("tags")
    poll_options = raw.get("pollOptions")
    post_type = raw.get("postType")
    user_vote = raw.get("userVote")

    return Post(
        id=_str(raw.get("_id")) or _str(raw.get("id")),
        title=_str(raw.get("title")),
        description=_str(raw.get("description")),
        image=_str(raw.get("image")),
        author=_str(raw.get("author"), "Anonymous"),
        timestamp=_str(raw.get("timestamp")) or now_iso(),
        likes=_int(raw.get("likes")),
        comments=[normalize_comment(c) for c in comments] if isinstance(comments, list) else [],
        tags=[t for t in tags if isinstance(t, str)] if isinstance(tags, list) else [],
        postType=post_type if post_type in POST_TYPES else "text",
        pollOptions=[
            PollOption(text=_str(o.get("text")), votes=_int(o.get("votes")))
            for o in poll_options if isinstance(o, dict)
        ] if isinstance(poll_options, list) else [],
        totalVotes=_int(raw.get("totalVotes")),
        userVote=user_vote if isinstance(user_vote, int) and not isinstance(user_vote, bool) else None,
    )


def filter_posts(posts: Iterable[Post], search: str = "", tags: Iterable[str] = ()) -> List[Post]:
    """
    Keep posts whose title or description contains the search text
    (case-insensitive) and which carry at least one of the selected tags.
    No selected tags matches every post.
    """
    query = search.lower()
    selected = set(tags)

    results = []
    for post in posts:
        matches_search = query in post.title.lower() or query in post.description.lower()
        matches_tags = not selected or any(tag in selected for tag in post.tags)
        if matches_search and matches_tags:
            results.append(post)
    return results


def sort_posts(posts: Iterable[Post], sort_by: str = SORT_LATEST) -> List[Post]:
    if sort_by == SORT_POPULAR:
        return sorted(posts, key=lambda p: p.likes, reverse=True)
    if sort_by == SORT_LATEST:
        return sorted(posts, key=lambda p: parse_timestamp(p.timestamp) or _EPOCH, reverse=True)
    raise ValueError(f"Unknown sort order: {sort_by}")


def collect_tags(posts: Iterable[Post]) -> List[str]:
    """Unique tags in first-seen order"""
    seen: Dict[str, None] = {}
    for post in posts:
        for tag in post.tags:
            seen.setdefault(tag, None)
    return list(seen)
