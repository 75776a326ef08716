"""
relmodel Reducer -- Detach Tests

Covers:
  - Missing source record is a no-op
  - Attachment that does not exist is a no-op
  - Normal case: both sides removed (ONE → None, MANY → last matching entry removed)
  - Invalid attachment state: whatever side remains is removed
      when only one record exists
      when both exist but only one side is attached
"""

from relmodel.tests.schemas import ACCOUNT, ARTICLE, AUTHOR, BLOG_STATE, CATEGORY, POST, PROFILE

# ============================================================================
# 1. No-ops
# ============================================================================


class TestDetachNoop:
    def test_missing_source_is_noop(self, blog):
        result = blog.reduce(BLOG_STATE, blog.creators.detach(AUTHOR, "a9", "article_ids", "r1"))
        assert result is BLOG_STATE

    def test_missing_attachment_is_noop(self, blog):
        state = {
            AUTHOR: {"a1": {"article_ids": ["r1"]}, "a2": {"article_ids": []}},
            ARTICLE: {"r1": {"author_id": "a1"}},
        }
        result = blog.reduce(state, blog.creators.detach(AUTHOR, "a2", "article_ids", "r1"))
        assert result is state

    def test_both_records_missing_target_is_noop(self, blog):
        state = {AUTHOR: {"a1": {"article_ids": []}}, ARTICLE: {}}
        result = blog.reduce(state, blog.creators.detach(AUTHOR, "a1", "article_ids", "r1"))
        assert result is state

    def test_unknown_rel_is_noop(self, blog):
        action = {
            "type": "author.detach",
            "payload": {"entity": AUTHOR, "id": "a1", "rel": "nope", "target": "r1"},
        }
        assert blog.reduce(BLOG_STATE, action) is BLOG_STATE


# ============================================================================
# 2. Normal case
# ============================================================================


class TestDetachNormal:
    def test_many_to_one(self, blog):
        result = blog.reduce(BLOG_STATE, blog.creators.detach(AUTHOR, "a1", "article_ids", "r1"))
        assert result == {
            AUTHOR: {"a1": {"article_ids": ["r2"]}},
            ARTICLE: {
                "r1": {"author_id": None},
                "r2": {"author_id": "a1"},
            },
        }

    def test_one_to_many(self, blog):
        result = blog.reduce(BLOG_STATE, blog.creators.detach(ARTICLE, "r2", "author_id", "a1"))
        assert result[AUTHOR]["a1"]["article_ids"] == ["r1"]
        assert result[ARTICLE]["r2"]["author_id"] is None
        assert result[ARTICLE]["r1"] is BLOG_STATE[ARTICLE]["r1"]

    def test_one_to_one(self, forum):
        state = {
            **forum.empty_state,
            ACCOUNT: {"a1": {"profile_id": "p1"}},
            PROFILE: {"p1": {"account_id": "a1", "post_ids": []}},
        }
        result = forum.reduce(state, forum.creators.detach(PROFILE, "p1", "account_id", "a1"))
        assert result[ACCOUNT]["a1"] == {"profile_id": None}
        assert result[PROFILE]["p1"] == {"account_id": None, "post_ids": []}

    def test_many_to_many_preserves_order(self, forum):
        state = {
            **forum.empty_state,
            POST: {"o1": {"profile_id": None, "category_ids": ["c1", "c2", "c3"]}},
            CATEGORY: {
                "c1": {"post_ids": ["o1"]},
                "c2": {"post_ids": ["o0", "o1", "o2"]},
                "c3": {"post_ids": ["o1"]},
            },
        }
        result = forum.reduce(state, forum.creators.detach(POST, "o1", "category_ids", "c2"))
        assert result[POST]["o1"]["category_ids"] == ["c1", "c3"]
        assert result[CATEGORY]["c2"]["post_ids"] == ["o0", "o2"]

    def test_duplicate_entries_lose_only_the_last(self, forum):
        state = {
            **forum.empty_state,
            POST: {"o1": {"profile_id": None, "category_ids": ["c1", "c2", "c1"]}},
            CATEGORY: {
                "c1": {"post_ids": ["o1", "o0", "o1"]},
                "c2": {"post_ids": ["o1"]},
            },
        }
        result = forum.reduce(state, forum.creators.detach(POST, "o1", "category_ids", "c1"))
        assert result[POST]["o1"]["category_ids"] == ["c1", "c2"]
        assert result[CATEGORY]["c1"]["post_ids"] == ["o1", "o0"]

    def test_one_field_holding_other_id_is_kept(self, forum):
        # a1 points at p2, p1 still (stale) points at a1
        state = {
            **forum.empty_state,
            ACCOUNT: {"a1": {"profile_id": "p2"}},
            PROFILE: {
                "p1": {"account_id": "a1"},
                "p2": {"account_id": "a1"},
            },
        }
        result = forum.reduce(state, forum.creators.detach(ACCOUNT, "a1", "profile_id", "p1"))
        assert result[ACCOUNT]["a1"] == {"profile_id": "p2"}
        assert result[PROFILE]["p1"] == {"account_id": None}
        assert result[PROFILE]["p2"] == {"account_id": "a1"}


# ============================================================================
# 3. Invalid attachment state
# ============================================================================


class TestDetachInvalidAttachmentState:
    def test_only_source_exists(self, blog):
        state = {AUTHOR: {"a1": {"article_ids": ["r1", "r2"]}}, ARTICLE: {"r2": {"author_id": "a1"}}}
        result = blog.reduce(state, blog.creators.detach(AUTHOR, "a1", "article_ids", "r1"))
        assert result == {AUTHOR: {"a1": {"article_ids": ["r2"]}}, ARTICLE: {"r2": {"author_id": "a1"}}}

    def test_only_forward_side_attached(self, blog):
        state = {
            AUTHOR: {"a1": {"article_ids": ["r1"]}},
            ARTICLE: {"r1": {"author_id": None}},
        }
        result = blog.reduce(state, blog.creators.detach(AUTHOR, "a1", "article_ids", "r1"))
        assert result == {
            AUTHOR: {"a1": {"article_ids": []}},
            ARTICLE: {"r1": {"author_id": None}},
        }
        assert result[ARTICLE]["r1"] is state[ARTICLE]["r1"]

    def test_only_reciprocal_side_attached(self, blog):
        state = {
            AUTHOR: {"a1": {"article_ids": []}},
            ARTICLE: {"r1": {"author_id": "a1"}},
        }
        result = blog.reduce(state, blog.creators.detach(AUTHOR, "a1", "article_ids", "r1"))
        assert result == {
            AUTHOR: {"a1": {"article_ids": []}},
            ARTICLE: {"r1": {"author_id": None}},
        }
        assert result[AUTHOR]["a1"] is state[AUTHOR]["a1"]

    def test_reciprocal_key_missing(self, forum):
        state = {
            **forum.empty_state,
            POST: {"o1": {"profile_id": None, "category_ids": ["c1"]}},
            CATEGORY: {"c1": {}},
        }
        result = forum.reduce(state, forum.creators.detach(POST, "o1", "category_ids", "c1"))
        assert result[POST]["o1"]["category_ids"] == []
        assert result[CATEGORY]["c1"] == {}
