import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import GoogleAPIError, NotFound as DocumentNotFound
from google.cloud import firestore

from errors import NotFound, StoreError

logger = logging.getLogger(__name__)

POSTS = "posts"


@contextmanager
def _store_call(message: str):
    """Log Google API failures and re-raise them as a StoreError carrying a generic message"""
    try:
        yield
    except GoogleAPIError as e:
        logger.exception("%s: %s", message, e)
        raise StoreError(message) from e


def _to_post(snapshot) -> Dict[str, Any]:
    post_data = snapshot.to_dict() or {}
    post_data["_id"] = snapshot.id
    return post_data


class FirestoreDB:
    def __init__(self, client: firestore.Client):
        self.db = client

    def collection(self, name: str):
        return self.db.collection(name)

    def close(self):
        self.db.close()

    def get_all_posts(self) -> List[Dict[str, Any]]:
        """Get all posts sorted by timestamp descending"""
        with _store_call("Failed to fetch posts"):
            posts_ref = self.collection(POSTS).order_by(
                "timestamp", direction=firestore.Query.DESCENDING
            ).stream()
            return [_to_post(doc) for doc in posts_ref]

    def create_post(self, post_data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a post and return it merged with its generated ID"""
        new_post_ref = self.collection(POSTS).document()
        with _store_call("Failed to create post"):
            new_post_ref.set(post_data)
        return {**post_data, "_id": new_post_ref.id}

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        """Get a post by ID, or None if it doesn't exist"""
        with _store_call("Failed to fetch post"):
            snapshot = self.collection(POSTS).document(post_id).get()
        if not snapshot.exists:
            return None
        return _to_post(snapshot)

    def update_post_likes(self, post_id: str, increment: int = 1) -> int:
        """
        Update the like count for a post inside a transaction.
        No lower bound is applied, so repeated decrements can go negative.
        :return: the like count after this update
        :raises NotFound: if the post doesn't exist
        """
        post_ref = self.collection(POSTS).document(post_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def update_in_transaction(transaction, post_ref):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                return None

            current_likes = snapshot.to_dict().get("likes", 0)
            if not isinstance(current_likes, int):
                current_likes = 0
            new_likes = current_likes + increment

            transaction.update(post_ref, {"likes": new_likes})
            return new_likes

        with _store_call("Failed to update likes"):
            new_likes = update_in_transaction(transaction, post_ref)

        if new_likes is None:
            raise NotFound("Post not found")
        return new_likes

    def append_comment(self, post_id: str, comment: Dict[str, Any]) -> None:
        """
        Atomically append a comment to a post's comments array
        :raises NotFound: if the post doesn't exist
        """
        post_ref = self.collection(POSTS).document(post_id)
        with _store_call("Failed to add comment"):
            try:
                post_ref.update({"comments": firestore.ArrayUnion([comment])})
            except DocumentNotFound:
                raise NotFound("Post not found")
