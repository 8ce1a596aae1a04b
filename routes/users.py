from typing import Optional

from fastapi import APIRouter

from dependencies import AdminUser, Firestore
from models.user import public_user
from utils.pagination import Page

router = APIRouter()


@router.get("")
async def list_users(
        db: Firestore,
        admin: AdminUser,
        page: Optional[str] = None,
        limit: Optional[str] = None,
):
    """All users, newest first (admins only)"""
    pager = Page(page, limit)
    users = db.list_users()
    page_users = pager.slice(users)

    return {
        "success": True,
        "count": len(page_users),
        "total": len(users),
        "pagination": pager.descriptor(len(users)),
        "users": [public_user(user) for user in page_users],
    }
