from typing import List, Dict, Any

from fastapi import APIRouter, Body

from dependencies import Posts, CurrentUser, OptionalUser
from models.post import PostPatch, CommentRequest
from services.posts import resolve_author

router = APIRouter()


@router.get("")
def get_posts(posts: Posts) -> List[Dict[str, Any]]:
    """Get all posts, newest first"""
    return posts.list_posts()


@router.post("")
def create_post(
        posts: Posts,
        current_user: OptionalUser,
        post_data: Dict[str, Any] = Body(...),
) -> Dict[str, Any]:
    """Create a new post"""
    return posts.create_post(post_data, current_user)


@router.get("/{post_id}")
def get_post(posts: Posts, post_id: str) -> Dict[str, Any]:
    return posts.get_post(post_id)


@router.patch("/{post_id}")
def update_post(
        posts: Posts,
        post_id: str,
        patch: PostPatch,
        current_user: OptionalUser,
) -> Dict[str, Any]:
    """Like, unlike or comment on a post"""
    return posts.apply_action(post_id, patch.action, patch.model_dump(), current_user)


@router.post("/{post_id}/like")
def like_post(posts: Posts, post_id: str) -> Dict[str, Any]:
    """Like a post and return its new like count"""
    return {"id": post_id, "likes": posts.like(post_id)}


@router.post("/{post_id}/comment")
def add_comment(
        posts: Posts,
        post_id: str,
        comment: CommentRequest,
        current_user: CurrentUser,
) -> Dict[str, Any]:
    """Add a comment to a post"""
    return posts.add_comment(post_id, comment.text, resolve_author(current_user))
