import pytest

from errors import ForbiddenError, NotFoundError
from models.user import User, UserRole
from services import posts as post_rules

AUTHOR = User(user_id="author", name="Author", email="author@example.com")
OTHER = User(user_id="other", name="Other", email="other@example.com")
ADMIN = User(user_id="root", name="Root", email="root@example.com", role=UserRole.ADMIN)


def make_post(**fields):
    post = {"id": "p1", "author": "author", "status": "published", "likes": [], "comments": []}
    post.update(fields)
    return post


class TestOwnership:
    """Test owner-or-admin checks"""

    def test_author_and_admin_can_modify(self):
        post = make_post()
        post_rules.ensure_can_modify(post, AUTHOR, "update")
        post_rules.ensure_can_modify(post, ADMIN, "delete")

    def test_other_user_is_forbidden(self):
        """Test a non-owner non-admin is rejected with the action in the message"""
        with pytest.raises(ForbiddenError) as exc_info:
            post_rules.ensure_can_modify(make_post(), OTHER, "update")
        assert exc_info.value.message == "Not authorized to update this post"

    def test_new_post_document_forces_author(self):
        """Test the author comes from the caller, not the payload"""
        doc = post_rules.new_post_document(
            {"title": "A", "content": "B", "category": "Tech", "author": "someone-else"}, "author"
        )
        assert doc["author"] == "author"
        assert doc["viewCount"] == 0
        assert doc["likes"] == [] and doc["comments"] == []
        assert doc["status"] == "draft"


class TestVisibility:
    """Test non-published posts are hidden as not found"""

    def test_published_is_visible_to_anyone(self):
        post_rules.ensure_visible(make_post(), None)

    @pytest.mark.parametrize("viewer", [None, OTHER, ADMIN])
    def test_draft_hidden_from_non_authors(self, viewer):
        """Test drafts are a 404 for anonymous users, other users and admins"""
        with pytest.raises(NotFoundError):
            post_rules.ensure_visible(make_post(status="draft"), viewer)

    def test_draft_visible_to_author(self):
        post_rules.ensure_visible(make_post(status="draft"), AUTHOR)


class TestToggleLike:
    """Test the like toggle"""

    def test_like_prepends_entry(self):
        post = make_post(likes=[{"user": "x", "createdAt": "t"}])
        updates, result = post_rules.toggle_like(post, "other")
        assert result == {"liked": True, "likeCount": 2}
        assert updates["likes"][0]["user"] == "other"

    def test_toggle_twice_restores_state(self):
        """Test liking twice is its own inverse"""
        post = make_post(likes=[{"user": "x", "createdAt": "t"}])
        updates, first = post_rules.toggle_like(post, "other")
        post["likes"] = updates["likes"]
        updates, second = post_rules.toggle_like(post, "other")
        assert first["liked"] is True
        assert second == {"liked": False, "likeCount": 1}
        assert updates["likes"] == [{"user": "x", "createdAt": "t"}]

    def test_does_not_mutate_input(self):
        post = make_post()
        post_rules.toggle_like(post, "other")
        assert post["likes"] == []


class TestComments:
    """Test comment add/remove rules"""

    def comment_post(self):
        return make_post(comments=[
            {"id": "c1", "user": "other", "content": "hi", "createdAt": "t1"},
            {"id": "c2", "user": "third", "content": "yo", "createdAt": "t2"},
        ])

    def test_add_prepends_with_id(self):
        updates, comment = post_rules.add_comment(self.comment_post(), "other", "new")
        assert updates["comments"][0] is comment
        assert comment["user"] == "other"
        assert comment["id"]
        assert len(updates["comments"]) == 3

    def test_remove_missing_comment(self):
        with pytest.raises(NotFoundError) as exc_info:
            post_rules.remove_comment(self.comment_post(), "nope", ADMIN)
        assert exc_info.value.message == "Comment not found"

    def test_comment_author_can_remove(self):
        """Test a commenter who does not own the post can delete their comment"""
        updates, removed = post_rules.remove_comment(self.comment_post(), "c1", OTHER)
        assert removed["id"] == "c1"
        assert [c["id"] for c in updates["comments"]] == ["c2"]

    def test_post_author_and_admin_can_remove(self):
        for user in (AUTHOR, ADMIN):
            updates, _ = post_rules.remove_comment(self.comment_post(), "c2", user)
            assert [c["id"] for c in updates["comments"]] == ["c1"]

    def test_other_user_cannot_remove(self):
        """Test deleting someone else's comment on someone else's post is rejected"""
        with pytest.raises(ForbiddenError):
            post_rules.remove_comment(self.comment_post(), "c2", OTHER)


class TestPopulate:
    """Test user references are expanded to display fields"""

    def test_populate_post(self):
        users = {
            "author": {"id": "author", "name": "Author", "email": "a@x.io", "avatar": None, "bio": "hey",
                       "password": "hash"},
            "other": {"id": "other", "name": "Other", "email": "o@x.io", "avatar": "img.png"},
        }
        post = make_post(
            likes=[{"user": "other", "createdAt": "t"}],
            comments=[{"id": "c1", "user": "other", "content": "hi", "createdAt": "t"}],
        )
        populated = post_rules.populate_post(post, users, include_likes=True)

        assert populated["author"] == {"id": "author", "name": "Author", "email": "a@x.io", "avatar": None}
        assert populated["comments"][0]["user"] == {"id": "other", "name": "Other", "avatar": "img.png"}
        assert populated["likes"][0]["user"]["name"] == "Other"
        assert populated["likeCount"] == 1

    def test_referenced_user_ids(self):
        post = make_post(
            likes=[{"user": "liker"}],
            comments=[{"id": "c1", "user": "commenter"}],
        )
        assert post_rules.referenced_user_ids([post]) == {"author", "commenter"}
        assert post_rules.referenced_user_ids([post], include_likes=True) == {"author", "commenter", "liker"}
