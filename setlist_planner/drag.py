"""
Drag session state machine.

Turns gesture callbacks from the rendering layer into edits:

    IDLE --begin--> DRAGGING --hover--> DRAGGING
                        |  \\--cancel--> IDLE
                        \\--drop--> COMMITTING --> IDLE

Only one drag can be active per session. Hovering records the candidate
drop token for highlighting; the setlist is only touched on drop.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from setlist_planner.catalog import find_song
from setlist_planner.models import CatalogSong, Setlist
from setlist_planner.mutations import insert_from_catalog, move_entry, new_entry_id
from setlist_planner.positions import parse_drag_token, resolve_target

logger = logging.getLogger(__name__)


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"


class InputKind(Enum):
    POINTER = "pointer"
    TOUCH = "touch"
    KEYBOARD = "keyboard"


class DropOutcome(Enum):
    INSERTED = "inserted"
    MOVED = "moved"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ActivationConstraint:
    """Thresholds a gesture must pass before it becomes a drag."""

    pointer_distance: float = 8.0  # pixels of movement
    touch_delay_ms: int = 400  # long-press, leaves room for scrolling
    touch_tolerance: float = 10.0  # movement allowed during the long-press

    def is_activated(self, kind: InputKind, distance: float = 0.0, held_ms: int = 0) -> bool:
        if kind is InputKind.KEYBOARD:
            return True
        if kind is InputKind.POINTER:
            return distance >= self.pointer_distance
        return held_ms >= self.touch_delay_ms and distance <= self.touch_tolerance


@dataclass(frozen=True)
class DropResult:
    outcome: DropOutcome
    setlist: Setlist | None

    @property
    def changed(self) -> bool:
        return self.outcome is not DropOutcome.IGNORED


def commit_drop(
    active_token: str,
    over_token: str | None,
    setlist: Setlist | None,
    catalog: list[CatalogSong],
    id_factory=new_entry_id,
) -> DropResult:
    """
    Apply a drop to a setlist.

    Drops that cannot be resolved, or that would leave the setlist as it
    is, come back as IGNORED with the original setlist.
    """
    if over_token is None or setlist is None:
        return DropResult(DropOutcome.IGNORED, setlist)

    source = parse_drag_token(active_token)
    target = resolve_target(over_token, setlist)
    if not target.resolved:
        logger.debug("Drop target %r not recognized, ignoring", over_token)
        return DropResult(DropOutcome.IGNORED, setlist)

    if source.is_from_catalog:
        song = find_song(catalog, source.song_id)
        if song is None:
            logger.debug("Catalog song %r not found, ignoring drop", source.song_id)
            return DropResult(DropOutcome.IGNORED, setlist)
        updated = insert_from_catalog(setlist, target.set_id, target.index, song, id_factory)
        return DropResult(DropOutcome.INSERTED, updated)

    updated = move_entry(setlist, source.song_id, target.set_id, target.index)
    if updated is setlist:
        return DropResult(DropOutcome.IGNORED, setlist)
    return DropResult(DropOutcome.MOVED, updated)


class DragSession:
    """Tracks the single active drag gesture of an editor."""

    def __init__(self, constraint: ActivationConstraint | None = None) -> None:
        self.constraint = constraint or ActivationConstraint()
        self.state = DragState.IDLE
        self.active_token: str | None = None
        self.over_token: str | None = None

    @property
    def is_dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def begin(
        self, token: str, kind: InputKind, distance: float = 0.0, held_ms: int = 0
    ) -> bool:
        """Start dragging token if the gesture passes its activation threshold."""
        if self.state is not DragState.IDLE:
            return False
        if not self.constraint.is_activated(kind, distance, held_ms):
            return False
        self.state = DragState.DRAGGING
        self.active_token = token
        self.over_token = None
        return True

    def hover(self, token: str | None) -> None:
        """Record the drop target currently under the gesture."""
        if self.state is DragState.DRAGGING:
            self.over_token = token

    def drop(
        self,
        setlist: Setlist | None,
        catalog: list[CatalogSong],
        token: str | None = None,
        id_factory=new_entry_id,
    ) -> DropResult:
        """Release the drag over token (or the last hovered target)."""
        if self.state is not DragState.DRAGGING:
            return DropResult(DropOutcome.IGNORED, setlist)

        over = token if token is not None else self.over_token
        self.state = DragState.COMMITTING
        try:
            return commit_drop(self.active_token, over, setlist, catalog, id_factory)
        finally:
            self._reset()

    def cancel(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.active_token = None
        self.over_token = None
