"""
Shared pytest fixtures: an in-memory post/user store standing in for
Firestore, a TestClient wired to it, and a few registered users.
"""
import copy
import threading
import uuid

import pytest
from fastapi.testclient import TestClient

from dependencies import get_firestore
from errors import NotFoundError
from main import app
from services.posts import utc_now
from services.security import create_access_token, hash_password


class InMemoryFirestore:
    """Dict-backed store with the same public methods as FirestoreDB"""

    def __init__(self):
        self.users = {}
        self.posts = {}
        self.view_increments = 0
        self.full_scans = 0
        self.paged_queries = 0
        self._lock = threading.Lock()

    @staticmethod
    def _with_id(doc_id, data):
        return {**copy.deepcopy(data), "id": doc_id}

    # users
    def create_user(self, data):
        user_id = uuid.uuid4().hex
        now = utc_now()
        self.users[user_id] = {**data, "createdAt": now, "updatedAt": now}
        return self._with_id(user_id, self.users[user_id])

    def get_user(self, user_id):
        if user_id not in self.users:
            return None
        return self._with_id(user_id, self.users[user_id])

    def get_user_by_email(self, email):
        for user_id, data in self.users.items():
            if data.get("email") == email.lower():
                return self._with_id(user_id, data)
        return None

    def get_users(self, user_ids):
        return {uid: self._with_id(uid, self.users[uid]) for uid in set(user_ids) if uid in self.users}

    def list_users(self):
        users = [self._with_id(uid, data) for uid, data in self.users.items()]
        return sorted(users, key=lambda u: u["createdAt"], reverse=True)

    # posts
    def create_post(self, data):
        post_id = uuid.uuid4().hex
        self.posts[post_id] = copy.deepcopy(data)
        return self._with_id(post_id, data)

    def get_post(self, post_id):
        if post_id not in self.posts:
            return None
        return self._with_id(post_id, self.posts[post_id])

    def find_posts(self, equals):
        self.full_scans += 1
        return [
            self._with_id(pid, data)
            for pid, data in self.posts.items()
            if all(data.get(field) == value for field, value in equals.items())
        ]

    def find_posts_page(self, equals, offset, limit):
        self.paged_queries += 1
        matched = [
            self._with_id(pid, data)
            for pid, data in self.posts.items()
            if all(data.get(field) == value for field, value in equals.items())
        ]
        matched.sort(key=lambda post: post["createdAt"], reverse=True)
        return matched[offset:offset + limit], len(matched)

    def update_post(self, post_id, fields):
        self.posts[post_id].update(copy.deepcopy(fields))
        self.posts[post_id]["updatedAt"] = utc_now()
        return self.get_post(post_id)

    def delete_post(self, post_id):
        self.posts.pop(post_id, None)

    def increment_view_count(self, post_id):
        self.view_increments += 1
        self.posts[post_id]["viewCount"] = self.posts[post_id].get("viewCount", 0) + 1

    def mutate_post(self, post_id, mutation):
        with self._lock:
            if post_id not in self.posts:
                raise NotFoundError("Post not found")
            updates, result = mutation(self.get_post(post_id))
            self.posts[post_id].update(copy.deepcopy(updates))
            self.posts[post_id]["updatedAt"] = utc_now()
            return result

    # test helpers
    def seed_post(self, author, **fields):
        now = utc_now()
        data = {
            "title": "Untitled",
            "content": "Body",
            "excerpt": None,
            "category": "General",
            "tags": [],
            "status": "published",
            "author": author,
            "likes": [],
            "comments": [],
            "viewCount": 0,
            "createdAt": now,
            "updatedAt": now,
        }
        data.update(fields)
        return self.create_post(data)["id"]


@pytest.fixture
def store():
    return InMemoryFirestore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_firestore] = lambda: store
    # not used as a context manager, so the Firebase lifespan never runs
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(store, name, role="user", is_active=True):
    user = store.create_user({
        "name": name,
        "email": f"{name.lower()}@example.com",
        "password": hash_password("secret123"),
        "role": role,
        "isActive": is_active,
        "avatar": None,
        "bio": f"{name}'s bio",
    })
    token = create_access_token(user["id"], role)
    return {"id": user["id"], "token": token, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
def alice(store):
    return _make_user(store, "Alice")


@pytest.fixture
def bob(store):
    return _make_user(store, "Bob")


@pytest.fixture
def admin(store):
    return _make_user(store, "Admin", role="admin")


@pytest.fixture
def inactive_user(store):
    return _make_user(store, "Dormant", is_active=False)
