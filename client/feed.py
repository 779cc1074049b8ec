import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import aiohttp

from client.normalize import (
    SORT_LATEST,
    collect_tags,
    filter_posts,
    normalize_comment,
    normalize_post,
    sort_posts,
)
from models.post import Post

logger = logging.getLogger(__name__)


class CommunityFeed:
    """
    Local mirror of the community post list.

    Mutations are sent to the API first; local state only changes once the
    API accepts them, and then from the result the server computed (the
    true like count, the stored comment). When a response carries no such
    result the feed refetches instead of guessing.
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str):
        self._session = session
        self._base_url = base_url.rstrip("/")
        self.posts: List[Post] = []

    @property
    def tags(self) -> List[str]:
        return collect_tags(self.posts)

    def view(self, search: str = "", tags: Iterable[str] = (), sort_by: str = SORT_LATEST) -> List[Post]:
        return sort_posts(filter_posts(self.posts, search, tags), sort_by)

    def get(self, post_id: str) -> Optional[Post]:
        for post in self.posts:
            if post.id == post_id:
                return post
        return None

    async def _send(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """
        Call the API and return the decoded JSON body.
        Failures are logged and reported as None.
        """
        url = f"{self._base_url}{path}"
        try:
            async with self._session.request(method, url, json=payload) as response:
                if response.status != 200:
                    logger.error("%s %s failed with HTTP %s", method, path, response.status)
                    return None
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("%s %s failed: %s", method, path, e)
            return None

    async def refresh(self) -> bool:
        """Replace local posts with the server's list; keep the old list on failure"""
        data = await self._send("GET", "/posts")
        if not isinstance(data, list):
            return False

        self.posts = [normalize_post(raw) for raw in data]
        return True

    def _replace(self, post_id: str, **changes) -> bool:
        for i, post in enumerate(self.posts):
            if post.id == post_id:
                self.posts[i] = post.model_copy(update=changes)
                return True
        return False

    async def create_post(self, post_data: Dict[str, Any]) -> Optional[Post]:
        data = await self._send("POST", "/posts", post_data)
        if not isinstance(data, dict):
            return None

        post = normalize_post(data)
        self.posts.insert(0, post)
        return post

    async def like(self, post_id: str) -> bool:
        data = await self._send("POST", f"/posts/{post_id}/like")
        if data is None:
            return False

        likes = data.get("likes") if isinstance(data, dict) else None
        if not isinstance(likes, int) or not self._replace(post_id, likes=likes):
            return await self.refresh()
        return True

    async def unlike(self, post_id: str) -> bool:
        data = await self._send("PATCH", f"/posts/{post_id}", {"action": "unlike"})
        if data is None:
            return False

        likes = data.get("likes") if isinstance(data, dict) else None
        if not isinstance(likes, int) or not self._replace(post_id, likes=likes):
            return await self.refresh()
        return True

    async def comment(self, post_id: str, text: str) -> bool:
        data = await self._send("POST", f"/posts/{post_id}/comment", {"text": text})
        if not isinstance(data, dict):
            return False

        post = self.get(post_id)
        if post is None:
            return await self.refresh()

        comments = [*post.comments, normalize_comment(data)]
        return self._replace(post_id, comments=comments)
