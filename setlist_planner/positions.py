"""
Resolve drag tokens to positions in a setlist.

The rendering layer tags every draggable and droppable region with an
opaque string token:

    playbook-<song id>        a catalog song being dragged in
    set-container-<set id>    the body of a set (drop appends)
    <entry id>                an entry already placed in a set

None of these functions mutate the setlist.
"""

from dataclasses import dataclass

from setlist_planner import CATALOG_TOKEN_PREFIX, SET_CONTAINER_PREFIX
from setlist_planner.models import Entry, Setlist


@dataclass(frozen=True)
class DragSource:
    """What the user picked up."""

    is_from_catalog: bool
    song_id: str  # catalog song id, or entry id when not from the catalog


@dataclass(frozen=True)
class SourcePosition:
    set_id: str | None
    index: int
    entry: Entry | None = None

    @property
    def resolved(self) -> bool:
        return self.set_id is not None


@dataclass(frozen=True)
class TargetPosition:
    set_id: str | None
    index: int = 0

    @property
    def resolved(self) -> bool:
        return self.set_id is not None


UNRESOLVED_SOURCE = SourcePosition(set_id=None, index=-1)
UNRESOLVED_TARGET = TargetPosition(set_id=None, index=0)


def catalog_token(song_id: str) -> str:
    return f"{CATALOG_TOKEN_PREFIX}{song_id}"


def container_token(set_id: str) -> str:
    return f"{SET_CONTAINER_PREFIX}{set_id}"


def parse_drag_token(token: str) -> DragSource:
    """Split a drag token into its origin and the id it carries."""
    if token.startswith(CATALOG_TOKEN_PREFIX):
        return DragSource(is_from_catalog=True, song_id=token[len(CATALOG_TOKEN_PREFIX) :])
    return DragSource(is_from_catalog=False, song_id=token)


def resolve_source(entry_id: str, setlist: Setlist | None) -> SourcePosition:
    """Find the set and index currently holding an entry (first match wins)."""
    if setlist is None:
        return UNRESOLVED_SOURCE

    for setlist_set in setlist.sets:
        idx = setlist_set.index_of(entry_id)
        if idx != -1:
            return SourcePosition(set_id=setlist_set.id, index=idx, entry=setlist_set.entries[idx])

    return UNRESOLVED_SOURCE


def resolve_target(token: str, setlist: Setlist | None) -> TargetPosition:
    """
    Find the set and index a drop token points at.

    Dropping on a set container appends to that set. Dropping on an entry
    inserts before it. Anything else is unresolved.
    """
    if setlist is None:
        return UNRESOLVED_TARGET

    if token.startswith(SET_CONTAINER_PREFIX):
        set_id = token[len(SET_CONTAINER_PREFIX) :]
        target_set = setlist.find_set(set_id)
        if target_set is None:
            return UNRESOLVED_TARGET
        return TargetPosition(set_id=set_id, index=len(target_set.entries))

    for setlist_set in setlist.sets:
        idx = setlist_set.index_of(token)
        if idx != -1:
            return TargetPosition(set_id=setlist_set.id, index=idx)

    return UNRESOLVED_TARGET


def adjusted_target_index(
    source_set_id: str,
    target_set_id: str,
    source_index: int,
    target_index: int,
) -> int:
    """
    Compensate for the removal when moving down within the same set.

    Taking the entry out shifts everything after it up by one, so a target
    beyond the source must be decremented.
    """
    if source_set_id != target_set_id:
        return target_index
    if source_index < target_index:
        return target_index - 1
    return target_index

