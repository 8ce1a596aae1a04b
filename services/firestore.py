import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import firebase_admin
from firebase_admin import firestore as fs
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

from errors import NotFoundError
from services.posts import Mutation, utc_now

logger = logging.getLogger(__name__)

USERS = "users"
POSTS = "posts"


class FirestoreDB:
    def __init__(self, app: firebase_admin.App):
        self.db = fs.client(app)

    def collection(self, name: str):
        return self.db.collection(name)

    @staticmethod
    def _to_dict(snapshot) -> Dict[str, Any]:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return data

    def _get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return self._to_dict(snapshot)

    # ─── users ──────────────────────────────────────────────

    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a user document and return it with its generated ID"""
        user_ref = self.collection(USERS).document()
        now = utc_now()
        user_data = {**data, "createdAt": now, "updatedAt": now}
        user_ref.set(user_data)
        logger.info("Created user %s", user_ref.id)
        return {**user_data, "id": user_ref.id}

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._get(USERS, user_id)

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        users_ref = self.collection(USERS).where(
            filter=FieldFilter("email", "==", email.lower())
        ).limit(1).stream()
        for doc in users_ref:
            return self._to_dict(doc)
        return None

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Batch fetch users, keyed by ID; unknown IDs are simply absent"""
        refs = [self.collection(USERS).document(user_id) for user_id in set(user_ids) if user_id]
        if not refs:
            return {}
        users = {}
        for snapshot in self.db.get_all(refs):
            if snapshot.exists:
                users[snapshot.id] = self._to_dict(snapshot)
        return users

    def list_users(self) -> List[Dict[str, Any]]:
        users_ref = self.collection(USERS).order_by(
            "createdAt", direction=firestore.Query.DESCENDING
        ).stream()
        return [self._to_dict(doc) for doc in users_ref]

    # ─── posts ──────────────────────────────────────────────

    def create_post(self, data: Dict[str, Any]) -> Dict[str, Any]:
        post_ref = self.collection(POSTS).document()
        post_ref.set(data)
        logger.info("Created post %s by %s", post_ref.id, data.get("author"))
        return {**data, "id": post_ref.id}

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        return self._get(POSTS, post_id)

    def _posts_where(self, equals: Dict[str, Any]):
        query = self.collection(POSTS)
        for field, value in equals.items():
            query = query.where(filter=FieldFilter(field, "==", value))
        return query

    def find_posts(self, equals: Dict[str, Any]) -> List[Dict[str, Any]]:
        """All posts whose fields equal the given values"""
        return [self._to_dict(doc) for doc in self._posts_where(equals).stream()]

    def find_posts_page(self, equals: Dict[str, Any], offset: int, limit: int) -> Tuple[List[Dict[str, Any]], int]:
        """
        One page of matching posts, newest first, plus the total match count

        Ordering, offset/limit and the count all run in Firestore (needs a
        composite index on the equality fields + createdAt).
        """
        query = self._posts_where(equals)
        total = query.count().get()[0][0].value
        posts_ref = query.order_by(
            "createdAt", direction=firestore.Query.DESCENDING
        ).offset(offset).limit(limit).stream()
        return [self._to_dict(doc) for doc in posts_ref], int(total)

    def update_post(self, post_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        post_ref = self.collection(POSTS).document(post_id)
        post_ref.update({**fields, "updatedAt": utc_now()})
        return self._to_dict(post_ref.get())

    def delete_post(self, post_id: str) -> None:
        self.collection(POSTS).document(post_id).delete()
        logger.info("Deleted post %s", post_id)

    def increment_view_count(self, post_id: str) -> None:
        """Server-side atomic increment, safe under concurrent reads"""
        self.collection(POSTS).document(post_id).update({"viewCount": firestore.Increment(1)})

    def mutate_post(self, post_id: str, mutation: Callable[[Dict[str, Any]], Mutation]) -> Any:
        """
        Read-modify-write a post inside a transaction

        The mutation receives the current post and returns (fields to write,
        result). Firestore reruns the transaction on contention, so concurrent
        like toggles or comment edits on the same post are never lost.

        Raises:
            NotFoundError: if the post does not exist
        """
        post_ref = self.collection(POSTS).document(post_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def update_in_transaction(transaction, post_ref):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError("Post not found")

            updates, result = mutation(self._to_dict(snapshot))
            transaction.update(post_ref, {**updates, "updatedAt": utc_now()})
            return result

        return update_in_transaction(transaction, post_ref)
