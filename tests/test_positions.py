"""Tests for setlist_planner.positions module."""

from setlist_planner.positions import (
    adjusted_target_index,
    catalog_token,
    container_token,
    parse_drag_token,
    resolve_source,
    resolve_target,
)


class TestParseDragToken:
    """Tests for parse_drag_token function."""

    def test_catalog_token(self):
        source = parse_drag_token("playbook-song123")
        assert source.is_from_catalog
        assert source.song_id == "song123"

    def test_entry_token(self):
        source = parse_drag_token("song456")
        assert not source.is_from_catalog
        assert source.song_id == "song456"

    def test_edge_cases(self):
        assert parse_drag_token("playbook-").song_id == ""
        assert parse_drag_token("playbook-").is_from_catalog
        assert not parse_drag_token("").is_from_catalog

    def test_token_builders(self):
        assert parse_drag_token(catalog_token("c1")).song_id == "c1"
        assert container_token("setA") == "set-container-setA"


class TestResolveTarget:
    """Tests for resolve_target function."""

    def test_container_appends(self, sample_setlist):
        """Test that dropping on a set body targets the end of the set."""
        target = resolve_target("set-container-setA", sample_setlist)
        assert target.set_id == "setA"
        assert target.index == 3

    def test_empty_container(self, sample_setlist):
        target = resolve_target("set-container-setB", sample_setlist)
        assert target.set_id == "setB"
        assert target.index == 0

    def test_entry_inserts_before(self, sample_setlist):
        target = resolve_target("e2", sample_setlist)
        assert target.set_id == "setA"
        assert target.index == 1

    def test_unknown_token(self, sample_setlist):
        target = resolve_target("somewhere-else", sample_setlist)
        assert target.set_id is None
        assert not target.resolved

    def test_unknown_set_container(self, sample_setlist):
        assert not resolve_target("set-container-nope", sample_setlist).resolved

    def test_no_setlist(self):
        assert not resolve_target("e1", None).resolved


class TestResolveSource:
    """Tests for resolve_source function."""

    def test_finds_entry(self, sample_setlist):
        source = resolve_source("e3", sample_setlist)
        assert source.set_id == "setA"
        assert source.index == 2
        assert source.entry.title == "Praise You"

    def test_missing_entry(self, sample_setlist):
        source = resolve_source("ghost", sample_setlist)
        assert source.set_id is None
        assert source.index == -1
        assert source.entry is None

    def test_no_setlist(self):
        assert not resolve_source("e1", None).resolved


class TestAdjustedTargetIndex:
    """Tests for adjusted_target_index function."""

    def test_different_sets(self):
        assert adjusted_target_index("a", "b", 0, 2) == 2

    def test_same_set_moving_down(self):
        assert adjusted_target_index("a", "a", 0, 2) == 1

    def test_same_set_moving_up(self):
        assert adjusted_target_index("a", "a", 2, 0) == 0
