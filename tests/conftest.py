"""Shared pytest fixtures for setlist-planner tests."""

import itertools
import tempfile
from pathlib import Path

import pytest

from setlist_planner.gateway import JsonFileGateway, PersistenceError, SetlistGateway
from setlist_planner.models import CatalogSong, Entry, Setlist, SetlistSet


class FakeGateway(SetlistGateway):
    """In-memory gateway that records calls and can be told to fail."""

    def __init__(self, setlist: Setlist, catalog: list[CatalogSong]):
        self.setlist = setlist
        self.catalog = catalog
        self.saves: list[dict] = []
        self.fail_save = False

    async def load_setlist(self, artist_id, setlist_id):
        return self.setlist

    async def load_catalog(self, artist_id):
        return list(self.catalog)

    async def save_setlist(self, artist_id, setlist_id, updates):
        if self.fail_save:
            raise PersistenceError("HTTP 503: Service Unavailable")
        self.saves.append(updates)
        self.setlist = Setlist.from_dict(
            {**self.setlist.to_dict(), **updates, "updated_at": "2026-01-31T20:00:00"}
        )
        return self.setlist

    async def list_setlists(self, artist_id):
        return [self.setlist]

    async def create_setlist(self, artist_id, name, set_names=("Set 1",)):
        raise NotImplementedError

    async def delete_setlist(self, artist_id, setlist_id):
        raise NotImplementedError

    async def duplicate_setlist(self, artist_id, setlist_id, name):
        raise NotImplementedError


@pytest.fixture
def catalog():
    """A small catalog of songs."""
    return [
        CatalogSong(id="c1", title="Around the World", artist="Daft Punk", duration=240),
        CatalogSong(id="c2", title="Block Rockin' Beats", artist="The Chemical Brothers", duration=300),
        CatalogSong(id="c3", title="Praise You", artist="Fatboy Slim", duration=320, tuning="drop D"),
        CatalogSong(id="c4", title="99 Problems", artist="Jay-Z", duration=234, key="Bb"),
    ]


@pytest.fixture
def sample_setlist():
    """Set A holds three songs, Set B is empty."""
    return Setlist(
        id="sl1",
        name="Friday at the Crown",
        artist_id="band1",
        sets=(
            SetlistSet(
                id="setA",
                name="Set A",
                target_duration=900,
                entries=(
                    Entry(id="e1", song_id="c1", title="Around the World", duration=240, position=0),
                    Entry(id="e2", song_id="c2", title="Block Rockin' Beats", duration=300, position=1),
                    Entry(
                        id="e3",
                        song_id="c3",
                        title="Praise You",
                        duration=320,
                        position=2,
                        tuning="drop D",
                    ),
                ),
            ),
            SetlistSet(id="setB", name="Set B"),
        ),
        created_at="2026-01-30T18:00:00",
        updated_at="2026-01-30T18:00:00",
    )


@pytest.fixture
def id_factory():
    """Deterministic entry id generator."""
    counter = itertools.count(1)
    return lambda: f"new{next(counter)}"


@pytest.fixture
def fake_gateway(sample_setlist, catalog):
    return FakeGateway(sample_setlist, catalog)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def json_gateway(temp_dir, sample_setlist, catalog):
    """A JsonFileGateway seeded with the sample setlist and catalog."""
    gateway = JsonFileGateway(temp_dir)
    gateway._write(gateway._setlist_path("band1", "sl1"), sample_setlist.to_dict())
    gateway._write(gateway._catalog_path("band1"), [song.to_dict() for song in catalog])
    return gateway


def positions(setlist: Setlist, set_id: str) -> list[tuple[str, int]]:
    """(entry id, position) pairs of a set, for compact assertions."""
    return [(e.id, e.position) for e in setlist.find_set(set_id).entries]


def assert_contiguous(setlist: Setlist) -> None:
    for setlist_set in setlist.sets:
        assert [e.position for e in setlist_set.entries] == list(range(len(setlist_set.entries)))
