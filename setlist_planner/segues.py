"""
Segue rules.

A segue marks that an entry runs straight into the next entry of the same
set with no pause. When an entry is moved or removed, the flags that
pointed across the old adjacency no longer describe a real transition and
have to be cleared.
"""

import logging
from dataclasses import replace

from setlist_planner.models import Entry, Setlist

logger = logging.getLogger(__name__)


def should_clear_segue_on_move(source_set_id: str, target_set_id: str) -> bool:
    """
    Whether moving an entry clears its segue.

    Moving to a different set breaks the transition, and so does reordering
    within the same set. Always True.
    """
    return True


def should_clear_segue_on_reorder(
    source_set_id: str,
    target_set_id: str,
    source_index: int,
    target_index: int,
) -> bool:
    """Any reorder clears the segue, even one that lands on the same index."""
    return True


def clear_segue(entries: tuple[Entry, ...], index: int) -> tuple[Entry, ...]:
    """Return entries with the segue flag at index cleared."""
    if not 0 <= index < len(entries) or not entries[index].segue_into:
        return entries
    updated = list(entries)
    updated[index] = replace(entries[index], segue_into=False)
    return tuple(updated)


def toggle_segue(setlist: Setlist, set_id: str, entry_id: str) -> Setlist:
    """
    Flip the segue flag of an entry.

    The last entry of a set has nothing to segue into, so turning the flag
    on there is refused. Turning it off always works.
    """
    target_set = setlist.find_set(set_id)
    if target_set is None:
        return setlist

    idx = target_set.index_of(entry_id)
    if idx == -1:
        return setlist

    entry = target_set.entries[idx]
    if not entry.segue_into and idx == len(target_set.entries) - 1:
        logger.debug("Refusing segue on last entry %s of set %s", entry_id, set_id)
        return setlist

    entries = list(target_set.entries)
    entries[idx] = replace(entry, segue_into=not entry.segue_into)
    new_set = replace(target_set, entries=tuple(entries))
    return replace(
        setlist,
        sets=tuple(new_set if s.id == set_id else s for s in setlist.sets),
    )
