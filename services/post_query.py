"""
Listing queries for posts.

Each optional query parameter contributes one independent predicate. All
predicates must hold for a post to match, except inside the search
predicate where a title match OR a content match is enough.

Equality filters (status, author) are also exposed separately so the store
can push them down to Firestore; the rest run in Python because Firestore
has no case-insensitive substring matching. A query with only equality
filters and the default order is paged and counted by Firestore itself.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

from utils.pagination import Page

Predicate = Callable[[Dict[str, Any]], bool]

# sortBy value -> (key function, descending)
SORT_OPTIONS: Dict[str, Tuple[Callable[[Dict[str, Any]], Any], bool]] = {
    "newest": (lambda post: post.get("createdAt") or "", True),
    "oldest": (lambda post: post.get("createdAt") or "", False),
    "popular": (lambda post: post.get("viewCount", 0), True),
    "mostLiked": (lambda post: len(post.get("likes") or []), True),
    "title": (lambda post: post.get("title") or "", False),
}
DEFAULT_SORT = "newest"


def _contains(field: str, needle: str) -> Predicate:
    needle = needle.lower()

    def predicate(post: Dict[str, Any]) -> bool:
        return needle in str(post.get(field) or "").lower()

    return predicate


def _equals(field: str, value: Any) -> Predicate:
    return lambda post: post.get(field) == value


def _any_tag(tags: set) -> Predicate:
    return lambda post: any(tag in tags for tag in post.get("tags") or [])


def _any_of(*predicates: Predicate) -> Predicate:
    return lambda post: any(predicate(post) for predicate in predicates)


def split_tags(raw: Optional[str]) -> set:
    if not raw:
        return set()
    return {tag.strip() for tag in raw.split(",") if tag.strip()}


class PostQuery:
    """Filter + sort + pagination for a post listing"""

    def __init__(self, page: Page, sort_by: Optional[str] = None):
        self.page = page
        self.sort_by = sort_by if sort_by in SORT_OPTIONS else DEFAULT_SORT
        self.equals: Dict[str, Any] = {}
        self.predicates: List[Predicate] = []
        # set once a predicate needs Python (substring, tag set, search)
        self.scans = False

    def where_equals(self, field: str, value: Any) -> "PostQuery":
        self.equals[field] = value
        self.predicates.append(_equals(field, value))
        return self

    def category(self, category: Optional[str]) -> "PostQuery":
        if category:
            self.predicates.append(_contains("category", category))
            self.scans = True
        return self

    def tags(self, raw_tags: Optional[str]) -> "PostQuery":
        tags = split_tags(raw_tags)
        if tags:
            self.predicates.append(_any_tag(tags))
            self.scans = True
        return self

    def search(self, term: Optional[str]) -> "PostQuery":
        if term:
            self.predicates.append(_any_of(_contains("title", term), _contains("content", term)))
            self.scans = True
        return self

    def author(self, author_id: Optional[str]) -> "PostQuery":
        if author_id:
            self.where_equals("author", author_id)
        return self

    @property
    def can_push_down(self) -> bool:
        """True when Firestore alone can filter, order, page and count"""
        return not self.scans and self.sort_by == DEFAULT_SORT

    def matches(self, post: Dict[str, Any]) -> bool:
        return all(predicate(post) for predicate in self.predicates)

    def sort(self, posts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        key, descending = SORT_OPTIONS[self.sort_by]
        return sorted(posts, key=key, reverse=descending)

    def apply(self, candidates: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
        """Return (posts on the requested page, total matching posts)"""
        matched = self.sort([post for post in candidates if self.matches(post)])
        return self.page.slice(matched), len(matched)

    @classmethod
    def public_listing(
            cls,
            page: Page,
            category: Optional[str] = None,
            tags: Optional[str] = None,
            search: Optional[str] = None,
            author: Optional[str] = None,
            sort_by: Optional[str] = None,
    ) -> "PostQuery":
        return (
            cls(page, sort_by)
            .where_equals("status", "published")
            .category(category)
            .tags(tags)
            .search(search)
            .author(author)
        )

    @classmethod
    def owned_by(cls, page: Page, author_id: str, status: Optional[str] = None) -> "PostQuery":
        query = cls(page).where_equals("author", author_id)
        if status:
            query.where_equals("status", status)
        return query

    @classmethod
    def in_category(cls, page: Page, category: str) -> "PostQuery":
        return cls(page).where_equals("status", "published").category(category)
