import html
from enum import Enum
from typing import List, Optional

import bleach
from pydantic import BaseModel, Field, field_validator


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


MAX_TAGS = 10
MAX_TAG_LENGTH = 30


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    # bleach escapes &, < and > in the text it keeps; store what the user typed
    return html.unescape(bleach.clean(value, tags=[], strip=True)).strip()


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
    if len(cleaned) > MAX_TAGS:
        raise ValueError(f"A post can have at most {MAX_TAGS} tags")
    for tag in cleaned:
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tags cannot be more than {MAX_TAG_LENGTH} characters")
    return cleaned


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    category: str = Field(..., min_length=1, max_length=50)
    tags: List[str] = []
    status: PostStatus = PostStatus.DRAFT

    @field_validator("title", "category", mode="before")
    @classmethod
    def strip_markup(cls, value):
        return _clean_text(value) if isinstance(value, str) else value

    @field_validator("content", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: List[str]) -> List[str]:
        return _clean_tags(value)


class PostUpdate(BaseModel):
    """Partial update; only fields sent by the client are written"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    tags: Optional[List[str]] = None
    status: Optional[PostStatus] = None

    @field_validator("title", "category", mode="before")
    @classmethod
    def strip_markup(cls, value):
        return _clean_text(value) if isinstance(value, str) else value

    @field_validator("content", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(value)

    def changes(self) -> dict:
        """Fields explicitly provided in the request, ready for storage"""
        data = self.model_dump(exclude_unset=True)
        # title/content/category are required on a post, so null cannot clear them
        for field in ("title", "content", "category", "status", "tags"):
            if field in data and data[field] is None:
                data.pop(field)
        if "status" in data:
            data["status"] = data["status"].value
        return data


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)

    @field_validator("content", mode="before")
    @classmethod
    def sanitize(cls, value):
        return _clean_text(value) if isinstance(value, str) else value
