"""
Editor session: the working copy of a setlist and its unsaved-changes flag.

The session is the single owner of editor state. The terminal UI, the
drag controller and the persistence gateway all go through it:

    gateway --load--> persisted --seed--> working --edits--> working
    working --save--> gateway --> persisted (dirty cleared)
    persisted --cancel--> working (dirty cleared, confirmation when dirty)
"""

import logging
from typing import Awaitable, Callable

from setlist_planner.catalog import filter_catalog, find_song
from setlist_planner.drag import DragSession, DropResult, InputKind
from setlist_planner.gateway import PersistenceError, SetlistGateway, save_payload
from setlist_planner.models import CatalogSong, Setlist
from setlist_planner.mutations import (
    add_set,
    append_from_catalog,
    new_entry_id,
    normalize,
    remove_entry,
    remove_set,
    rename_entry,
    rename_setlist,
    set_target_duration,
)
from setlist_planner.segues import toggle_segue

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[], Awaitable[bool]]


class EditorSession:
    """Holds the persisted setlist, the editable working copy and the dirty flag."""

    def __init__(
        self,
        gateway: SetlistGateway,
        artist_id: str,
        setlist_id: str,
        confirm: ConfirmCallback | None = None,
        drag: DragSession | None = None,
        id_factory=new_entry_id,
    ) -> None:
        self.gateway = gateway
        self.artist_id = artist_id
        self.setlist_id = setlist_id
        self.confirm = confirm
        self.drag = drag or DragSession()
        self.id_factory = id_factory

        self.persisted: Setlist | None = None
        self.working: Setlist | None = None
        self.dirty = False
        self.saving = False
        self.catalog: list[CatalogSong] = []
        self.active_set_id: str | None = None
        # Bumped around every save; reads started under an older value are stale
        self._save_generation = 0

    # ─────────────────────────────────────────────────────────────────────
    # Loading
    # ─────────────────────────────────────────────────────────────────────

    async def load(self) -> Setlist:
        """Fetch the setlist and catalog and seed the working copy."""
        setlist = await self.gateway.load_setlist(self.artist_id, self.setlist_id)
        self.catalog = await self.gateway.load_catalog(self.artist_id)
        self.receive(setlist)
        return self.working

    async def refresh(self) -> bool:
        """
        Re-fetch the persisted setlist (e.g. on a polling timer).

        A result requested before a save started or finished is dropped.
        Returns True when the result was taken in.
        """
        generation = self._save_generation
        setlist = await self.gateway.load_setlist(self.artist_id, self.setlist_id)
        if generation != self._save_generation:
            logger.debug("Dropping refresh of %s that overlapped a save", self.setlist_id)
            return False
        self.receive(setlist)
        return True

    def receive(self, setlist: Setlist) -> None:
        """
        Take in a freshly loaded setlist.

        The working copy is seeded on first load and follows later loads
        only while there are no unsaved changes.
        """
        setlist = normalize(setlist)
        self.persisted = setlist

        if self.working is None:
            self.working = setlist
            if setlist.sets and self.active_set_id is None:
                self.active_set_id = setlist.sets[0].id
        elif not self.dirty:
            self.working = setlist
        else:
            logger.debug("Keeping unsaved working copy of %s over refreshed data", setlist.id)

    # ─────────────────────────────────────────────────────────────────────
    # Edits
    # ─────────────────────────────────────────────────────────────────────

    def apply(self, mutation: Callable[..., Setlist], *args, **kwargs) -> bool:
        """Run a mutation on the working copy. Returns True if anything changed."""
        if self.working is None:
            return False
        updated = mutation(self.working, *args, **kwargs)
        if updated is self.working or updated == self.working:
            return False
        self.working = updated
        self.dirty = True
        return True

    def rename_setlist(self, name: str) -> bool:
        return self.apply(rename_setlist, name)

    def rename_entry(self, entry_id: str, title: str) -> bool:
        return self.apply(rename_entry, entry_id, title)

    def toggle_segue(self, set_id: str, entry_id: str) -> bool:
        return self.apply(toggle_segue, set_id, entry_id)

    def remove_entry(self, entry_id: str, set_id: str | None = None) -> bool:
        return self.apply(remove_entry, entry_id, set_id)

    def set_target_duration(self, set_id: str, seconds: int) -> bool:
        return self.apply(set_target_duration, set_id, seconds)

    def add_set(self, name: str = "") -> bool:
        return self.apply(add_set, name)

    def remove_set(self, set_id: str) -> bool:
        changed = self.apply(remove_set, set_id)
        if changed and self.active_set_id == set_id:
            self.active_set_id = self.working.sets[0].id if self.working.sets else None
        return changed

    def set_active_set(self, set_id: str) -> bool:
        """Choose the set quick-add appends to."""
        if self.working is None or self.working.find_set(set_id) is None:
            return False
        self.active_set_id = set_id
        return True

    def quick_add(self, song_id: str) -> bool:
        """Append a catalog song to the active set."""
        if self.working is None or self.active_set_id is None:
            return False
        song = find_song(self.catalog, song_id)
        if song is None:
            logger.debug("Quick-add of unknown catalog song %r ignored", song_id)
            return False
        return self.apply(append_from_catalog, self.active_set_id, song, self.id_factory)

    # ─────────────────────────────────────────────────────────────────────
    # Drag and drop
    # ─────────────────────────────────────────────────────────────────────

    def begin_drag(
        self, token: str, kind: InputKind, distance: float = 0.0, held_ms: int = 0
    ) -> bool:
        return self.drag.begin(token, kind, distance, held_ms)

    def hover(self, token: str | None) -> None:
        self.drag.hover(token)

    def drop(self, token: str | None = None) -> DropResult:
        """Finish the active drag; a drop that changes the setlist marks it dirty."""
        result = self.drag.drop(self.working, self.catalog, token, self.id_factory)
        if result.changed:
            self.working = result.setlist
            self.dirty = True
        return result

    def cancel_drag(self) -> None:
        self.drag.cancel()

    # ─────────────────────────────────────────────────────────────────────
    # Commit / discard
    # ─────────────────────────────────────────────────────────────────────

    async def save(self) -> bool:
        """
        Commit the working copy.

        Returns False when there was nothing to save. On PersistenceError
        the working copy and dirty flag are kept and the error propagates.
        Edits made while the save was in flight stay dirty.
        """
        if self.working is None or not self.dirty:
            return False

        snapshot = self.working
        self.saving = True
        self._save_generation += 1
        try:
            saved = await self.gateway.save_setlist(
                self.artist_id, self.setlist_id, save_payload(snapshot)
            )
        except PersistenceError as e:
            logger.warning("Failed to save setlist %s: %s", self.setlist_id, e)
            raise
        finally:
            self.saving = False
            self._save_generation += 1

        saved = normalize(saved)
        self.persisted = saved
        if self.working is snapshot:
            self.working = saved
            self.dirty = False
        return True

    async def cancel(self, force: bool = False) -> bool:
        """
        Discard unsaved changes.

        When dirty, asks the confirm callback first (no callback means no
        confirmation, so nothing is discarded unless force is set).
        Returns True when the working copy was reverted.
        """
        if self.dirty and not force:
            if self.confirm is None or not await self.confirm():
                return False

        self.working = self.persisted
        self.dirty = False
        self.drag.cancel()
        return True

    # ─────────────────────────────────────────────────────────────────────
    # Views
    # ─────────────────────────────────────────────────────────────────────

    @property
    def differs_from_persisted(self) -> bool:
        """Structural diff of working vs persisted, ignoring timestamps."""
        if self.working is None or self.persisted is None:
            return False
        return not self.working.same_content(self.persisted)

    def filtered_catalog(self, query: str = "", show_all: bool = False) -> list[CatalogSong]:
        in_use = self.working.song_ids() if self.working is not None else set()
        return filter_catalog(self.catalog, query, show_all, in_use)
