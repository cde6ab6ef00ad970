from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from forum_api.schemas.user_schemas import UserOut


def _not_blank(v: Optional[str]) -> Optional[str]:
    if v is not None and not v.strip():
        raise ValueError("must not be blank")
    return v


# ------------------------------
# Categories
# ------------------------------
class CategoryRef(BaseModel):
    id: int
    name: str
    slug: str


class CategoryOut(CategoryRef):
    threads_count: int = 0
    created_at: str


class CreateCategoryIn(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=120, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        return _not_blank(v)


class CategoryResponse(BaseModel):
    data: CategoryOut


class CategoryListResponse(BaseModel):
    data: List[CategoryOut]


# ------------------------------
# Replies
# ------------------------------
class ReplyOut(BaseModel):
    id: int
    thread_id: int
    user_id: int
    content: str
    creator: Optional[UserOut] = None
    ago: str
    created_at: str
    updated_at: str
    is_best: bool = False
    favorites_count: int = 0
    is_favorited: bool = False


class CreateReplyIn(BaseModel):
    content: str = Field(min_length=1)
    thread_id: int

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v):
        return _not_blank(v)


class UpdateReplyIn(BaseModel):
    content: str = Field(min_length=1)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v):
        return _not_blank(v)


class ReplyResponse(BaseModel):
    data: ReplyOut


class ReplyListResponse(BaseModel):
    data: List[ReplyOut]


class BestReplyIn(BaseModel):
    reply_id: int


class BestReplyOut(BaseModel):
    thread_id: int
    best_reply_id: Optional[int] = None


class BestReplyResponse(BaseModel):
    data: BestReplyOut


# ------------------------------
# Threads
# ------------------------------
class ThreadOut(BaseModel):
    id: int
    slug: str
    title: str
    body: str
    category: Optional[CategoryRef] = None
    creator: Optional[UserOut] = None
    best_reply_id: Optional[int] = None
    replies_count: int = 0
    favorites_count: int = 0
    is_favorited: bool = False
    ago: str
    created_at: str
    updated_at: str


class CreateThreadIn(BaseModel):
    category_id: int
    title: str = Field(min_length=3, max_length=200)
    body: str = Field(min_length=1)

    @field_validator("title", "body")
    @classmethod
    def text_not_blank(cls, v):
        return _not_blank(v)


class UpdateThreadIn(BaseModel):
    # All optional so the client can send only what changed
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    body: Optional[str] = Field(default=None, min_length=1)

    @field_validator("title", "body")
    @classmethod
    def text_not_blank(cls, v):
        return _not_blank(v)


class ThreadResponse(BaseModel):
    data: ThreadOut


class PageMeta(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    has_prev: bool
    has_next: bool


class ThreadPageResponse(BaseModel):
    data: List[ThreadOut]
    meta: PageMeta


# ------------------------------
# Favorites
# ------------------------------
class FavoriteOut(BaseModel):
    favorited: bool
    favorites_count: int


class FavoriteResponse(BaseModel):
    data: FavoriteOut
