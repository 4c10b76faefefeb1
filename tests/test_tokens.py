"""Tests for whosin.services.tokens."""

import pytest

from whosin.errors import InvalidInput
from whosin.services.tokens import token_for_named, token_for_self


class TestTokenForSelf:
    def test_is_stable(self):
        assert token_for_self(7) == token_for_self(7)

    def test_has_self_prefix_and_sha256_digest(self):
        token = token_for_self(7)
        assert token.startswith("self:")
        assert len(token) == len("self:") + 64

    def test_different_users_differ(self):
        assert token_for_self(7) != token_for_self(8)

    @pytest.mark.parametrize("user_id", [0, -1])
    def test_rejects_non_positive_ids(self, user_id):
        with pytest.raises(InvalidInput):
            token_for_self(user_id)


class TestTokenForNamed:
    def test_is_case_insensitive(self):
        assert token_for_named("Dave") == token_for_named("dave") == token_for_named("DAVE")

    def test_has_for_prefix(self):
        assert token_for_named("Dave").startswith("for:")

    def test_different_names_differ(self):
        assert token_for_named("Dave") != token_for_named("David")

    def test_rejects_empty_name(self):
        with pytest.raises(InvalidInput):
            token_for_named("")


def test_self_and_named_namespaces_never_collide():
    """A user id and a name that hash the same input still get distinct tokens."""
    assert token_for_self(7) != token_for_named("7")
    assert token_for_self(7)[len("self:"):] == token_for_named("7")[len("for:"):]
