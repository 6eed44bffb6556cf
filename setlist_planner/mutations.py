"""
Pure edit operations on a setlist.

Every function takes a Setlist and returns a Setlist. When nothing changes
the very same object is returned, so callers can detect a no-op with an
identity check. Whenever entries are added, moved or removed the affected
sets are renumbered so positions run 0..n-1 in list order.
"""

import uuid
from dataclasses import replace

from setlist_planner.models import CatalogSong, Entry, Setlist, SetlistSet
from setlist_planner.positions import adjusted_target_index, resolve_source
from setlist_planner.segues import (
    clear_segue,
    should_clear_segue_on_move,
    should_clear_segue_on_reorder,
)


def new_entry_id() -> str:
    """Generate an entry id (never reused within a process)."""
    return uuid.uuid4().hex


def new_set_id() -> str:
    return f"set-{uuid.uuid4().hex[:12]}"


def renumber(entries: tuple[Entry, ...] | list[Entry]) -> tuple[Entry, ...]:
    """Rewrite positions so they match list order."""
    return tuple(
        entry if entry.position == idx else replace(entry, position=idx)
        for idx, entry in enumerate(entries)
    )


def normalize(setlist: Setlist) -> Setlist:
    """Renumber every set (used on documents coming from storage)."""
    sets = tuple(replace(s, entries=renumber(s.entries)) for s in setlist.sets)
    if sets == setlist.sets:
        return setlist
    return replace(setlist, sets=sets)


def _clamp(index: int, length: int) -> int:
    return max(0, min(index, length))


def _with_entries(setlist: Setlist, updates: dict[str, tuple[Entry, ...]]) -> Setlist:
    """Replace the entries of the given sets, renumbering them."""
    sets = tuple(
        replace(s, entries=renumber(updates[s.id])) if s.id in updates else s
        for s in setlist.sets
    )
    return replace(setlist, sets=sets)


def insert_from_catalog(
    setlist: Setlist,
    set_id: str,
    index: int,
    song: CatalogSong,
    id_factory=new_entry_id,
) -> Setlist:
    """Place a new entry for a catalog song at index in a set."""
    target_set = setlist.find_set(set_id)
    if target_set is None:
        return setlist

    index = _clamp(index, len(target_set.entries))
    entry = Entry.from_catalog(song, entry_id=id_factory(), position=index)
    entries = target_set.entries[:index] + (entry,) + target_set.entries[index:]
    return _with_entries(setlist, {set_id: entries})


def append_from_catalog(
    setlist: Setlist, set_id: str, song: CatalogSong, id_factory=new_entry_id
) -> Setlist:
    """Add a catalog song at the end of a set."""
    target_set = setlist.find_set(set_id)
    if target_set is None:
        return setlist
    return insert_from_catalog(setlist, set_id, len(target_set.entries), song, id_factory)


def move_entry(setlist: Setlist, entry_id: str, set_id: str, index: int) -> Setlist:
    """
    Move an entry to index in a set (insert-before semantics).

    Moving an entry onto its own set and index does nothing. Otherwise the
    moved entry and the entry that used to precede it both lose their
    segue flags.
    """
    source = resolve_source(entry_id, setlist)
    target_set = setlist.find_set(set_id)
    if not source.resolved or target_set is None:
        return setlist

    index = _clamp(index, len(target_set.entries))
    if source.set_id == set_id and source.index == index:
        return setlist

    moved = source.entry
    same_set = source.set_id == set_id
    if same_set:
        clear = should_clear_segue_on_reorder(source.set_id, set_id, source.index, index)
    else:
        clear = should_clear_segue_on_move(source.set_id, set_id)
    if clear:
        moved = replace(moved, segue_into=False)

    source_set = setlist.find_set(source.set_id)
    remaining = source_set.entries[: source.index] + source_set.entries[source.index + 1 :]
    if clear:
        remaining = clear_segue(remaining, source.index - 1)

    adjusted = adjusted_target_index(source.set_id, set_id, source.index, index)
    if same_set:
        entries = remaining[:adjusted] + (moved,) + remaining[adjusted:]
        return _with_entries(setlist, {set_id: entries})

    entries = target_set.entries[:adjusted] + (moved,) + target_set.entries[adjusted:]
    return _with_entries(setlist, {source.set_id: remaining, set_id: entries})


def remove_entry(setlist: Setlist, entry_id: str, set_id: str | None = None) -> Setlist:
    """Delete an entry; its predecessor no longer segues into anything."""
    if set_id is None:
        source = resolve_source(entry_id, setlist)
        if not source.resolved:
            return setlist
        set_id, idx = source.set_id, source.index
    else:
        target_set = setlist.find_set(set_id)
        if target_set is None:
            return setlist
        idx = target_set.index_of(entry_id)
        if idx == -1:
            return setlist

    entries = setlist.find_set(set_id).entries
    remaining = clear_segue(entries[:idx] + entries[idx + 1 :], idx - 1)
    return _with_entries(setlist, {set_id: remaining})


def rename_setlist(setlist: Setlist, name: str) -> Setlist:
    name = name.strip()
    if not name or name == setlist.name:
        return setlist
    return replace(setlist, name=name)


def rename_entry(setlist: Setlist, entry_id: str, title: str) -> Setlist:
    """Override the display title of one entry (the catalog song is untouched)."""
    title = title.strip()
    source = resolve_source(entry_id, setlist)
    if not title or not source.resolved or source.entry.title == title:
        return setlist

    entries = list(setlist.find_set(source.set_id).entries)
    entries[source.index] = replace(source.entry, title=title)
    return _with_entries(setlist, {source.set_id: tuple(entries)})


def set_target_duration(setlist: Setlist, set_id: str, seconds: int) -> Setlist:
    target_set = setlist.find_set(set_id)
    if target_set is None or seconds < 0 or target_set.target_duration == seconds:
        return setlist
    new_set = replace(target_set, target_duration=seconds)
    return replace(setlist, sets=tuple(new_set if s.id == set_id else s for s in setlist.sets))


def add_set(
    setlist: Setlist, name: str, target_duration: int = 0, id_factory=new_set_id
) -> Setlist:
    """Append an empty set."""
    new_set = SetlistSet(
        id=id_factory(),
        name=name.strip() or f"Set {len(setlist.sets) + 1}",
        target_duration=target_duration,
    )
    return replace(setlist, sets=setlist.sets + (new_set,))


def remove_set(setlist: Setlist, set_id: str) -> Setlist:
    """Drop a set together with its entries."""
    if setlist.find_set(set_id) is None:
        return setlist
    return replace(setlist, sets=tuple(s for s in setlist.sets if s.id != set_id))
