import logging
from contextlib import asynccontextmanager

import firebase_admin
from fastapi import FastAPI
from firebase_admin import credentials
from starlette.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS, FIREBASE_CREDENTIALS, LOG_LEVEL
from context import RequestContextMiddleware, RequestIdFilter
from errors import register_exception_handlers
from routes.auth import router as auth_router
from routes.posts import router as posts_router
from routes.users import router as users_router
from services.firestore import FirestoreDB

# ─── logging ────────────────────────────────────────────────
logging.basicConfig(level=LOG_LEVEL,
                    format="%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s")
for handler in logging.getLogger().handlers:
    handler.addFilter(RequestIdFilter())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Firebase Admin SDK
    cred = credentials.Certificate(FIREBASE_CREDENTIALS)
    firebase_app = firebase_admin.initialize_app(cred)

    app.state.firestore = FirestoreDB(firebase_app)
    logger.info("Connected to Firestore project %s", firebase_app.project_id)

    yield
    # Cleanup resources
    firebase_admin.delete_app(firebase_app)


app = FastAPI(title="Blog Posts API", lifespan=lifespan)

register_exception_handlers(app)

# middleware to set request context
app.add_middleware(RequestContextMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(posts_router, prefix="/api/posts", tags=["posts"])
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(users_router, prefix="/api/users", tags=["users"])
