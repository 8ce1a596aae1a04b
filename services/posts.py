import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from errors import ForbiddenError, NotFoundError
from models.user import User

AUTHOR_FIELDS = ("name", "email", "avatar")
AUTHOR_DETAIL_FIELDS = ("name", "email", "avatar", "bio")
COMMENTER_FIELDS = ("name", "avatar")

# (fields to write back to the post, value returned to the caller)
Mutation = Tuple[Dict[str, Any], Any]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_post_document(data: Dict[str, Any], author_id: str) -> Dict[str, Any]:
    """Build a post document; the author is always the caller"""
    now = utc_now()
    return {
        "title": data["title"],
        "content": data["content"],
        "excerpt": data.get("excerpt"),
        "category": data["category"],
        "tags": list(data.get("tags") or []),
        "status": data.get("status", "draft"),
        "author": author_id,
        "likes": [],
        "comments": [],
        "viewCount": 0,
        "createdAt": now,
        "updatedAt": now,
    }


def is_owner_or_admin(post: Dict[str, Any], user: User) -> bool:
    return post.get("author") == user.user_id or user.is_admin


def ensure_can_modify(post: Dict[str, Any], user: User, action: str) -> None:
    if not is_owner_or_admin(post, user):
        raise ForbiddenError(f"Not authorized to {action} this post")


def ensure_visible(post: Dict[str, Any], user: Optional[User]) -> None:
    """Non-published posts exist only for their author; everyone else gets a 404"""
    if post.get("status") == "published":
        return
    if user is None or user.user_id != post.get("author"):
        raise NotFoundError("Post not found")


def toggle_like(post: Dict[str, Any], user_id: str) -> Mutation:
    likes = list(post.get("likes") or [])
    index = next((i for i, like in enumerate(likes) if like.get("user") == user_id), None)

    if index is not None:
        del likes[index]
        liked = False
    else:
        likes.insert(0, {"user": user_id, "createdAt": utc_now()})
        liked = True

    return {"likes": likes}, {"liked": liked, "likeCount": len(likes)}


def add_comment(post: Dict[str, Any], user_id: str, content: str) -> Mutation:
    comment = {
        "id": uuid.uuid4().hex,
        "user": user_id,
        "content": content,
        "createdAt": utc_now(),
    }
    comments = [comment] + list(post.get("comments") or [])
    return {"comments": comments}, comment


def remove_comment(post: Dict[str, Any], comment_id: str, user: User) -> Mutation:
    """
    Remove one comment by id.

    Allowed for the comment's author, the post's author, or an admin.
    """
    comments = list(post.get("comments") or [])
    comment = next((c for c in comments if c.get("id") == comment_id), None)
    if comment is None:
        raise NotFoundError("Comment not found")

    if (comment.get("user") != user.user_id
            and post.get("author") != user.user_id
            and not user.is_admin):
        raise ForbiddenError("Not authorized to delete this comment")

    remaining = [c for c in comments if c.get("id") != comment_id]
    return {"comments": remaining}, comment


def referenced_user_ids(posts: Iterable[Dict[str, Any]], include_likes: bool = False) -> set:
    """Every user id a set of posts points at (authors, commenters, optionally likers)"""
    ids = set()
    for post in posts:
        if post.get("author"):
            ids.add(post["author"])
        for comment in post.get("comments") or []:
            ids.add(comment.get("user"))
        if include_likes:
            for like in post.get("likes") or []:
                ids.add(like.get("user"))
    ids.discard(None)
    return ids


def user_summary(user_id: str, users: Dict[str, Dict[str, Any]], fields: Sequence[str]) -> Dict[str, Any]:
    user = users.get(user_id) or {}
    summary = {"id": user_id}
    for field in fields:
        summary[field] = user.get(field)
    return summary


def populate_comment(comment: Dict[str, Any], users: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {**comment, "user": user_summary(comment.get("user"), users, COMMENTER_FIELDS)}


def populate_post(
        post: Dict[str, Any],
        users: Dict[str, Dict[str, Any]],
        author_fields: Sequence[str] = AUTHOR_FIELDS,
        include_likes: bool = False,
) -> Dict[str, Any]:
    """Replace user ids on a post with display fields and add likeCount"""
    likes = post.get("likes") or []
    populated = {
        **post,
        "author": user_summary(post.get("author"), users, author_fields),
        "comments": [populate_comment(c, users) for c in post.get("comments") or []],
        "likeCount": len(likes),
    }
    if include_likes:
        populated["likes"] = [
            {**like, "user": user_summary(like.get("user"), users, COMMENTER_FIELDS)}
            for like in likes
        ]
    return populated


def populate_posts(posts: List[Dict[str, Any]], users: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [populate_post(post, users) for post in posts]
