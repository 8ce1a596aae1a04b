import logging

from fastapi import APIRouter

from dependencies import CurrentUser, Firestore
from errors import BadRequestError, UnauthorizedError
from models.user import LoginRequest, RegisterRequest, UserRole, public_user
from services.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", status_code=201)
async def register(request: RegisterRequest, db: Firestore):
    """Create an account with the default role and return a token for it"""
    email = request.email.lower()
    if db.get_user_by_email(email) is not None:
        raise BadRequestError("User already exists with this email")

    user = db.create_user({
        "name": request.name,
        "email": email,
        "password": hash_password(request.password),
        "role": UserRole.USER.value,
        "isActive": True,
        "avatar": None,
        "bio": None,
    })

    token = create_access_token(user["id"], user["role"])
    return {"success": True, "token": token, "user": public_user(user)}


@router.post("/login")
async def login(request: LoginRequest, db: Firestore):
    user = db.get_user_by_email(request.email)

    if user is None or not verify_password(request.password, user.get("password")):
        logger.info("Failed login for %s", request.email)
        raise UnauthorizedError("Invalid credentials")

    if not user.get("isActive", True):
        raise UnauthorizedError("Invalid credentials")

    token = create_access_token(user["id"], user.get("role", UserRole.USER.value))
    return {"success": True, "token": token, "user": public_user(user)}


@router.get("/me")
async def me(current_user: CurrentUser, db: Firestore):
    user = db.get_user(current_user.user_id)
    return {"success": True, "user": public_user(user)}
