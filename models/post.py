from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel


class PostAction(Enum):
    LIKE = "like"
    UNLIKE = "unlike"
    ADD_COMMENT = "addComment"


class Comment(BaseModel):
    id: str
    text: str
    author: str
    timestamp: str


class PollOption(BaseModel):
    text: str = ""
    votes: int = 0


class Post(BaseModel):
    """A post as held by the client feed, with every field defaulted"""
    id: str = ""
    title: str = ""
    description: str = ""
    image: str = ""
    author: str = "Anonymous"
    timestamp: str
    likes: int = 0
    comments: List[Comment] = []
    tags: List[str] = []
    postType: Literal["text", "image", "poll"] = "text"
    pollOptions: List[PollOption] = []
    totalVotes: int = 0
    userVote: Optional[int] = None


class PostPatch(BaseModel):
    action: str
    userId: Optional[str] = None
    text: Optional[str] = None


class CommentRequest(BaseModel):
    text: Optional[str] = None
