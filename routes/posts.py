from typing import Any, Dict, Optional

from fastapi import APIRouter

from dependencies import CurrentUser, Firestore, OptionalUser
from errors import NotFoundError
from models.post import CommentCreate, PostCreate, PostStatus, PostUpdate
from services.firestore import FirestoreDB
from services.post_query import PostQuery
from services import posts as post_rules
from utils.pagination import Page

router = APIRouter()


def run_listing(db: FirestoreDB, query: PostQuery) -> Dict[str, Any]:
    """Execute a listing query and shape the paginated envelope"""
    if query.can_push_down:
        page_posts, total = db.find_posts_page(query.equals, query.page.start_index, query.page.limit)
    else:
        page_posts, total = query.apply(db.find_posts(query.equals))
    users = db.get_users(post_rules.referenced_user_ids(page_posts))

    return {
        "success": True,
        "count": len(page_posts),
        "total": total,
        "pagination": query.page.descriptor(total),
        "posts": post_rules.populate_posts(page_posts, users),
    }


def get_post_or_404(db: FirestoreDB, post_id: str) -> Dict[str, Any]:
    post = db.get_post(post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


@router.get("")
async def list_posts(
        db: Firestore,
        page: Optional[str] = None,
        limit: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[str] = None,
        search: Optional[str] = None,
        author: Optional[str] = None,
        sortBy: Optional[str] = None,
) -> Dict[str, Any]:
    """Published posts, filtered, sorted and paginated"""
    query = PostQuery.public_listing(
        Page(page, limit),
        category=category,
        tags=tags,
        search=search,
        author=author,
        sort_by=sortBy,
    )
    return run_listing(db, query)


@router.get("/my/posts")
async def list_my_posts(
        db: Firestore,
        current_user: CurrentUser,
        page: Optional[str] = None,
        limit: Optional[str] = None,
        status: Optional[PostStatus] = None,
) -> Dict[str, Any]:
    """The caller's own posts in every status, drafts included"""
    query = PostQuery.owned_by(
        Page(page, limit),
        current_user.user_id,
        status=status.value if status else None,
    )
    return run_listing(db, query)


@router.get("/category/{category}")
async def list_posts_by_category(
        db: Firestore,
        category: str,
        page: Optional[str] = None,
        limit: Optional[str] = None,
) -> Dict[str, Any]:
    """Published posts whose category contains the given text"""
    response = run_listing(db, PostQuery.in_category(Page(page, limit), category))
    response["category"] = category
    return response


@router.get("/{post_id}")
async def get_post(db: Firestore, post_id: str, current_user: OptionalUser) -> Dict[str, Any]:
    """
    Get a single post and count the view

    Posts that are not published are reported as missing to everyone except
    their author.
    """
    post = get_post_or_404(db, post_id)
    post_rules.ensure_visible(post, current_user)

    db.increment_view_count(post_id)
    post["viewCount"] = post.get("viewCount", 0) + 1

    users = db.get_users(post_rules.referenced_user_ids([post], include_likes=True))
    return {
        "success": True,
        "post": post_rules.populate_post(
            post, users, author_fields=post_rules.AUTHOR_DETAIL_FIELDS, include_likes=True
        ),
    }


@router.post("", status_code=201)
async def create_post(db: Firestore, post_data: PostCreate, current_user: CurrentUser) -> Dict[str, Any]:
    """Create a post owned by the caller"""
    data = post_data.model_dump()
    data["status"] = post_data.status.value
    post = db.create_post(post_rules.new_post_document(data, current_user.user_id))

    users = db.get_users([current_user.user_id])
    return {
        "success": True,
        "message": "Post created successfully",
        "post": post_rules.populate_post(post, users),
    }


@router.put("/{post_id}")
async def update_post(
        db: Firestore,
        post_id: str,
        post_data: PostUpdate,
        current_user: CurrentUser,
) -> Dict[str, Any]:
    """Replace the provided fields of a post (author or admin only)"""
    post = get_post_or_404(db, post_id)
    post_rules.ensure_can_modify(post, current_user, "update")

    changes = post_data.changes()
    updated = db.update_post(post_id, changes) if changes else post

    users = db.get_users(post_rules.referenced_user_ids([updated]))
    return {
        "success": True,
        "message": "Post updated successfully",
        "post": post_rules.populate_post(updated, users),
    }


@router.delete("/{post_id}")
async def delete_post(db: Firestore, post_id: str, current_user: CurrentUser) -> Dict[str, Any]:
    """Delete a post (author or admin only)"""
    post = get_post_or_404(db, post_id)
    post_rules.ensure_can_modify(post, current_user, "delete")

    db.delete_post(post_id)
    return {"success": True, "message": "Post deleted successfully"}


@router.put("/{post_id}/like")
async def toggle_like(db: Firestore, post_id: str, current_user: CurrentUser) -> Dict[str, Any]:
    """Like the post, or unlike it if the caller already did"""
    result = db.mutate_post(
        post_id, lambda post: post_rules.toggle_like(post, current_user.user_id)
    )
    message = "Post liked successfully" if result["liked"] else "Post unliked successfully"
    return {"success": True, "message": message, **result}


@router.post("/{post_id}/comments", status_code=201)
async def add_comment(
        db: Firestore,
        post_id: str,
        comment_data: CommentCreate,
        current_user: CurrentUser,
) -> Dict[str, Any]:
    """Add a comment to a post"""
    comment = db.mutate_post(
        post_id,
        lambda post: post_rules.add_comment(post, current_user.user_id, comment_data.content),
    )
    users = db.get_users([current_user.user_id])
    return {
        "success": True,
        "message": "Comment added successfully",
        "comment": post_rules.populate_comment(comment, users),
    }


@router.delete("/{post_id}/comments/{comment_id}")
async def delete_comment(
        db: Firestore,
        post_id: str,
        comment_id: str,
        current_user: CurrentUser,
) -> Dict[str, Any]:
    """Delete a comment (comment author, post author or admin)"""
    db.mutate_post(
        post_id, lambda post: post_rules.remove_comment(post, comment_id, current_user)
    )
    return {"success": True, "message": "Comment deleted successfully"}
