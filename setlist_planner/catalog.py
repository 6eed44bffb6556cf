"""Grouping and filtering helpers for the catalog panel."""

from typing import Iterable

from setlist_planner.models import CatalogSong


def group_by_letter(songs: Iterable[CatalogSong]) -> dict[str, list[CatalogSong]]:
    """Group songs by the first letter of their title; non A-Z goes under '#'."""
    groups: dict[str, list[CatalogSong]] = {}
    for song in songs:
        if not song or not song.title:
            continue
        first = song.title[0].upper()
        letter = first if "A" <= first <= "Z" else "#"
        groups.setdefault(letter, []).append(song)
    return groups


def sorted_letters(groups: dict[str, list[CatalogSong]]) -> list[str]:
    """Letters in alphabetical order with '#' last."""
    return sorted(groups, key=lambda letter: (letter == "#", letter))


def filter_catalog(
    songs: Iterable[CatalogSong],
    query: str = "",
    show_all: bool = False,
    in_use: Iterable[str] = (),
) -> list[CatalogSong]:
    """
    Filter catalog songs for display.

    Args:
        songs: Catalog songs.
        query: Case-insensitive substring matched against title and artist.
        show_all: Also show songs that are already in the setlist.
        in_use: Catalog ids already placed in the setlist.

    Returns:
        Matching songs in their original order.
    """
    needle = query.strip().lower()
    used = set(in_use)
    result = []
    for song in songs:
        if not song or not song.title:
            continue
        if needle and needle not in song.title.lower() and needle not in song.artist.lower():
            continue
        if not show_all and song.id in used:
            continue
        result.append(song)
    return result


def find_song(songs: Iterable[CatalogSong], song_id: str) -> CatalogSong | None:
    for song in songs:
        if song.id == song_id:
            return song
    return None
