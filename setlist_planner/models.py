"""
Setlist data model.

Setlists are stored as nested immutable records:

    Setlist -> SetlistSet (ordered) -> Entry (ordered)

An Entry points at a CatalogSong by id but carries its own copy of the
title, duration and tuning taken when it was added, so later catalog edits
never change an existing setlist.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterator


def format_duration(seconds: int) -> str:
    """Convert seconds to M:SS format."""
    minutes = seconds // 60
    secs = seconds % 60
    return f"{minutes}:{secs:02d}"


def duration_variance(actual: int, target: int) -> float:
    """Percentage difference between actual and target (positive when over)."""
    if target == 0:
        return 0.0
    return (actual - target) / target * 100


def variance_level(variance: float) -> str:
    """Bucket a variance percentage for display."""
    if abs(variance) <= 5:
        return "on-target"
    if abs(variance) <= 20:
        return "close"
    return "off"


@dataclass(frozen=True)
class CatalogSong:
    """A song in the artist's catalog (read-only for the editor)."""

    id: str
    title: str
    artist: str = ""
    duration: int = 0  # seconds
    tuning: str = "standard"
    key: str | None = None
    album: str = ""
    image_url: str | None = None
    spotify_url: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogSong":
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            artist=data.get("artist") or "",
            duration=int(data.get("duration") or 0),
            tuning=data.get("tuning") or "standard",
            key=data.get("key"),
            album=data.get("album") or "",
            image_url=data.get("imageUrl"),
            spotify_url=data.get("spotifyUrl") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "duration": self.duration,
            "tuning": self.tuning,
            "key": self.key,
            "album": self.album,
            "imageUrl": self.image_url,
            "spotifyUrl": self.spotify_url,
        }


@dataclass(frozen=True)
class Entry:
    """One placement of a catalog song inside a set."""

    id: str  # unique per placement, not the catalog id
    song_id: str
    title: str
    artist: str = ""
    duration: int = 0
    position: int = 0
    key: str | None = None
    tuning: str = "standard"
    segue_into: bool = False  # transitions straight into the next entry
    image_url: str | None = None

    @classmethod
    def from_catalog(cls, song: CatalogSong, entry_id: str, position: int = 0) -> "Entry":
        """Build a new entry with fields copied from the catalog song."""
        return cls(
            id=entry_id,
            song_id=song.id,
            title=song.title,
            artist=song.artist,
            duration=song.duration or 0,
            position=position,
            key=song.key,
            tuning=song.tuning or "standard",
            segue_into=False,
            image_url=song.image_url,
        )

    @property
    def time_str(self) -> str:
        return format_duration(self.duration)

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        return cls(
            id=str(data["id"]),
            song_id=str(data.get("song_id") or ""),
            title=data.get("title") or "",
            artist=data.get("artist") or "",
            duration=int(data.get("duration") or 0),
            position=int(data.get("position") or 0),
            key=data.get("key"),
            tuning=data.get("tuning") or "standard",
            segue_into=bool(data.get("segueInto", False)),
            image_url=data.get("imageUrl"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "song_id": self.song_id,
            "title": self.title,
            "artist": self.artist,
            "duration": self.duration,
            "position": self.position,
            "key": self.key,
            "tuning": self.tuning,
            "segueInto": self.segue_into,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class SetlistSet:
    """An ordered group of entries played back to back (e.g. "Set 1", "Encore")."""

    id: str
    name: str
    target_duration: int = 0  # seconds, display only
    entries: tuple[Entry, ...] = ()

    @property
    def total_duration(self) -> int:
        return sum(entry.duration or 0 for entry in self.entries)

    @property
    def variance(self) -> float:
        return duration_variance(self.total_duration, self.target_duration)

    def index_of(self, entry_id: str) -> int:
        """Index of the entry with this id, or -1."""
        for idx, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return idx
        return -1

    @classmethod
    def from_dict(cls, data: dict) -> "SetlistSet":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            target_duration=int(data.get("targetDuration") or 0),
            entries=tuple(Entry.from_dict(s) for s in data.get("songs") or []),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "targetDuration": self.target_duration,
            "songs": [entry.to_dict() for entry in self.entries],
        }


@dataclass(frozen=True)
class Setlist:
    """A complete performance plan made of one or more sets."""

    id: str
    name: str
    sets: tuple[SetlistSet, ...] = field(default_factory=tuple)
    artist_id: str = ""
    created_at: str | None = None
    updated_at: str | None = None

    def find_set(self, set_id: str) -> SetlistSet | None:
        for setlist_set in self.sets:
            if setlist_set.id == set_id:
                return setlist_set
        return None

    def entries(self) -> Iterator[Entry]:
        """Iterate over every entry, set by set."""
        for setlist_set in self.sets:
            yield from setlist_set.entries

    def song_ids(self) -> set[str]:
        """Catalog song ids currently placed anywhere in the setlist."""
        return {entry.song_id for entry in self.entries()}

    @property
    def total_duration(self) -> int:
        return sum(s.total_duration for s in self.sets)

    def same_content(self, other: "Setlist") -> bool:
        """Compare two setlists ignoring server-assigned timestamps."""
        return replace(self, created_at=None, updated_at=None) == replace(
            other, created_at=None, updated_at=None
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Setlist":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            sets=tuple(SetlistSet.from_dict(s) for s in data.get("sets") or []),
            artist_id=str(data.get("artist_id") or ""),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "artist_id": self.artist_id,
            "name": self.name,
            "sets": [s.to_dict() for s in self.sets],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_markdown(self) -> str:
        """Generate a printable markdown version of the setlist."""
        lines = [
            f"# Setlist: {self.name}",
            "",
            f"*Printed on {datetime.now().strftime('%Y-%m-%d %H:%M')}*",
            "",
        ]

        for setlist_set in self.sets:
            header = f"## {setlist_set.name} ({format_duration(setlist_set.total_duration)}"
            if setlist_set.target_duration:
                header += f" / target {format_duration(setlist_set.target_duration)}"
            lines.append(header + ")")
            lines.append("")

            if not setlist_set.entries:
                lines.append("*No songs*")
            for num, entry in enumerate(setlist_set.entries, 1):
                line = f"{num}. **{entry.title}** ({entry.time_str})"
                if entry.tuning and entry.tuning != "standard":
                    line += f" [{entry.tuning}]"
                if entry.segue_into:
                    line += " →"
                lines.append(line)
            lines.append("")

        return "\n".join(lines)
