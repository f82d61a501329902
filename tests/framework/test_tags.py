"""Tests for hook tag filters."""

import pytest

from stepglue.framework.tags import TagFilter


class TestParse:
    def test_empty_filter_matches_everything(self):
        tag_filter = TagFilter.parse(())
        assert tag_filter.matches([])
        assert tag_filter.matches(["@anything"])

    def test_keeps_expressions(self):
        assert TagFilter.parse(["@web,@mobile", "~@wip"]).expressions == ("@web,@mobile", "~@wip")

    def test_rejects_tag_without_at_sign(self):
        with pytest.raises(ValueError, match="must start with '@'"):
            TagFilter.parse(["web"])

    def test_rejects_empty_expression(self):
        with pytest.raises(ValueError):
            TagFilter.parse([" , "])

    def test_rejects_non_string(self):
        with pytest.raises(TypeError):
            TagFilter.parse([42])


class TestMatches:
    @pytest.mark.parametrize(
        "tags, expected",
        [
            (["@web"], True),
            (["@mobile"], True),
            (["@web", "@wip"], False),
            (["@desktop"], False),
            ([], False),
        ],
    )
    def test_or_within_and_across_expressions(self, tags, expected):
        tag_filter = TagFilter.parse(["@web,@mobile", "~@wip"])
        assert tag_filter.matches(tags) is expected

    def test_negation_alone_matches_untagged(self):
        assert TagFilter.parse(["~@wip"]).matches([])

    def test_active_tags_without_at_sign(self):
        assert TagFilter.parse(["@belly"]).matches(["belly"])
