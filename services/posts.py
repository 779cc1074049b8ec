import html
import logging
import uuid
from typing import Any, Dict, List, Optional

import bleach

from errors import NotFound, ValidationFailure
from models.post import PostAction
from models.user import User
from services.firestore import FirestoreDB
from utils.timestamps import now_iso

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"

# Fields owned by the server; caller-supplied values are discarded on create
SERVER_FIELDS = ("_id", "id", "timestamp", "likes", "comments")


def resolve_author(user: Optional[User], fallback: Any = None) -> str:
    """Authenticated name first, then a non-empty fallback string, then Anonymous"""
    if user is not None and user.name:
        return user.name
    if isinstance(fallback, str) and fallback.strip():
        return fallback
    return ANONYMOUS


class PostService:
    """
    Every post read and mutation goes through here, whichever endpoint
    the request arrived on, so there is one like counter and one
    comment representation.
    """

    def __init__(self, db: FirestoreDB):
        self.db = db

    def list_posts(self) -> List[Dict[str, Any]]:
        return self.db.get_all_posts()

    def get_post(self, post_id: str) -> Dict[str, Any]:
        post = self.db.get_post(post_id)
        if post is None:
            raise NotFound("Post not found")
        return post

    def create_post(self, data: Dict[str, Any], user: Optional[User] = None) -> Dict[str, Any]:
        post_data = {k: v for k, v in data.items() if k not in SERVER_FIELDS}
        post_data.update({
            "author": resolve_author(user, data.get("author")),
            "timestamp": now_iso(),
            "likes": 0,
            "comments": [],
        })

        created = self.db.create_post(post_data)
        logger.info("Created post %s by %s", created["_id"], created["author"])
        return created

    def like(self, post_id: str) -> int:
        return self.db.update_post_likes(post_id, 1)

    def unlike(self, post_id: str) -> int:
        return self.db.update_post_likes(post_id, -1)

    def add_comment(self, post_id: str, text: Optional[str], author: str) -> Dict[str, Any]:
        if not isinstance(text, str) or not text.strip():
            raise ValidationFailure("Comment text is required")

        # bleach escapes &, < and > in what it keeps; store the plain text
        sanitized_text = html.unescape(bleach.clean(text.strip(), strip=True))

        comment = {
            "id": uuid.uuid4().hex,
            "text": sanitized_text,
            "author": author,
            "timestamp": now_iso(),
        }
        self.db.append_comment(post_id, comment)
        return comment

    def apply_action(
            self,
            post_id: str,
            action: str,
            payload: Dict[str, Any],
            user: Optional[User] = None
    ) -> Dict[str, Any]:
        """
        Apply a PATCH action to a post.
        Unknown actions are rejected rather than treated as an empty update.
        """
        try:
            post_action = PostAction(action)
        except ValueError:
            raise ValidationFailure(f"Unsupported action: {action}")

        if post_action is PostAction.LIKE:
            return {"success": True, "likes": self.like(post_id)}
        elif post_action is PostAction.UNLIKE:
            return {"success": True, "likes": self.unlike(post_id)}
        elif post_action is PostAction.ADD_COMMENT:
            author = resolve_author(user, payload.get("userId"))
            comment = self.add_comment(post_id, payload.get("text"), author)
            return {"success": True, "comment": comment}
        else:
            raise ValidationFailure(f"Unsupported action: {action}")
