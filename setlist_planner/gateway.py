"""
Persistence gateways for setlists and catalogs.

Two backends share one async interface:
    - JsonFileGateway: local JSON documents under ~/.config/setlist-planner/
    - HttpGateway: the band management REST API

Any storage failure is raised as PersistenceError. The editor keeps its
working copy when that happens so the user can retry.
"""

import asyncio
import json
import logging
import urllib.error
import urllib.request
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from setlist_planner import __version__
from setlist_planner.models import CatalogSong, Setlist, SetlistSet

logger = logging.getLogger(__name__)

DEFAULT_STORE_DIR = Path.home() / ".config" / "setlist-planner"
DEFAULT_TIMEOUT = 15


class PersistenceError(Exception):
    """Raised when loading or saving through a gateway fails."""

    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_setlist(data, source: str) -> Setlist:
    """Build a Setlist from a stored or received document, or raise PersistenceError."""
    try:
        return Setlist.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PersistenceError(f"Invalid setlist from {source}: {e!r}") from e


def save_payload(setlist: Setlist) -> dict:
    """The body sent when committing a working copy."""
    return {"name": setlist.name, "sets": [s.to_dict() for s in setlist.sets]}


class SetlistGateway(ABC):
    """Storage boundary of the editor."""

    @abstractmethod
    async def load_setlist(self, artist_id: str, setlist_id: str) -> Setlist: ...

    @abstractmethod
    async def load_catalog(self, artist_id: str) -> list[CatalogSong]: ...

    @abstractmethod
    async def save_setlist(self, artist_id: str, setlist_id: str, updates: dict) -> Setlist: ...

    @abstractmethod
    async def list_setlists(self, artist_id: str) -> list[Setlist]: ...

    @abstractmethod
    async def create_setlist(
        self, artist_id: str, name: str, set_names: tuple[str, ...] = ("Set 1",)
    ) -> Setlist: ...

    @abstractmethod
    async def delete_setlist(self, artist_id: str, setlist_id: str) -> None: ...

    @abstractmethod
    async def duplicate_setlist(self, artist_id: str, setlist_id: str, name: str) -> Setlist: ...


class JsonFileGateway(SetlistGateway):
    """
    Stores each setlist as its own JSON file.
    File access runs in a worker thread.

    Layout:
        <root>/artists/<artist_id>/catalog.json
        <root>/artists/<artist_id>/setlists/<setlist_id>.json
    """

    def __init__(self, root: Path | None = None):
        self.root = Path(root) if root is not None else DEFAULT_STORE_DIR

    def _artist_dir(self, artist_id: str) -> Path:
        return self.root / "artists" / artist_id

    def _setlist_path(self, artist_id: str, setlist_id: str) -> Path:
        return self._artist_dir(artist_id) / "setlists" / f"{setlist_id}.json"

    def _catalog_path(self, artist_id: str) -> Path:
        return self._artist_dir(artist_id) / "catalog.json"

    def _read(self, path: Path):
        try:
            with open(path) as f:
                return json.load(f)
        except FileNotFoundError as e:
            raise PersistenceError(f"Not found: {path}") from e
        except (json.JSONDecodeError, OSError) as e:
            raise PersistenceError(f"Could not read {path}: {e}") from e

    def _write(self, path: Path, data) -> None:
        # Write next to the target and swap so a crash never leaves half a file
        tmp_path = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            tmp_path.replace(path)
        except OSError as e:
            raise PersistenceError(f"Could not write {path}: {e}") from e

    def _load_catalog(self, artist_id: str) -> list[CatalogSong]:
        path = self._catalog_path(artist_id)
        if not path.exists():
            return []
        data = self._read(path)
        if not isinstance(data, list):
            return []
        try:
            songs = [CatalogSong.from_dict(item) for item in data if item and item.get("title")]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(f"Invalid catalog in {path}: {e!r}") from e
        return sorted(songs, key=lambda s: s.title.lower())

    def _save_setlist(self, artist_id: str, setlist_id: str, updates: dict) -> Setlist:
        path = self._setlist_path(artist_id, setlist_id)
        data = self._read(path)
        if not isinstance(data, dict):
            raise PersistenceError(f"Invalid setlist in {path}")
        data.update({k: v for k, v in updates.items() if k in ("name", "sets")})
        data["updated_at"] = _now()
        saved = parse_setlist(data, str(path))
        self._write(path, data)
        logger.debug("Saved setlist %s to %s", setlist_id, path)
        return saved

    def _list_setlists(self, artist_id: str) -> list[Setlist]:
        setlist_dir = self._artist_dir(artist_id) / "setlists"
        if not setlist_dir.is_dir():
            return []
        setlists = [parse_setlist(self._read(p), str(p)) for p in sorted(setlist_dir.glob("*.json"))]
        return sorted(setlists, key=lambda s: s.name.lower())

    def _store_new(self, artist_id: str, setlist: Setlist) -> Setlist:
        self._write(self._setlist_path(artist_id, setlist.id), setlist.to_dict())
        return setlist

    def _delete_setlist(self, artist_id: str, setlist_id: str) -> None:
        path = self._setlist_path(artist_id, setlist_id)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise PersistenceError(f"Not found: {path}") from e
        except OSError as e:
            raise PersistenceError(f"Could not delete {path}: {e}") from e
        logger.debug("Deleted setlist %s", path)

    async def load_setlist(self, artist_id: str, setlist_id: str) -> Setlist:
        path = self._setlist_path(artist_id, setlist_id)
        return parse_setlist(await asyncio.to_thread(self._read, path), str(path))

    async def load_catalog(self, artist_id: str) -> list[CatalogSong]:
        return await asyncio.to_thread(self._load_catalog, artist_id)

    async def save_catalog(self, artist_id: str, songs: list[CatalogSong]) -> None:
        await asyncio.to_thread(
            self._write, self._catalog_path(artist_id), [song.to_dict() for song in songs]
        )

    async def save_setlist(self, artist_id: str, setlist_id: str, updates: dict) -> Setlist:
        return await asyncio.to_thread(self._save_setlist, artist_id, setlist_id, updates)

    async def list_setlists(self, artist_id: str) -> list[Setlist]:
        return await asyncio.to_thread(self._list_setlists, artist_id)

    async def create_setlist(
        self, artist_id: str, name: str, set_names: tuple[str, ...] = ("Set 1",)
    ) -> Setlist:
        now = _now()
        setlist = Setlist(
            id=uuid.uuid4().hex,
            name=name,
            artist_id=artist_id,
            sets=tuple(SetlistSet(id=f"set{i}", name=n) for i, n in enumerate(set_names, 1)),
            created_at=now,
            updated_at=now,
        )
        return await asyncio.to_thread(self._store_new, artist_id, setlist)

    async def delete_setlist(self, artist_id: str, setlist_id: str) -> None:
        await asyncio.to_thread(self._delete_setlist, artist_id, setlist_id)

    async def duplicate_setlist(self, artist_id: str, setlist_id: str, name: str) -> Setlist:
        source = await self.load_setlist(artist_id, setlist_id)
        now = _now()
        copy = replace(
            source,
            id=uuid.uuid4().hex,
            name=name,
            artist_id=source.artist_id or artist_id,
            created_at=now,
            updated_at=now,
        )
        return await asyncio.to_thread(self._store_new, artist_id, copy)


def catalog_from_payload(items) -> list[CatalogSong]:
    """
    Flatten the API's artist song list into catalog songs.

    Each item wraps a shared "globalSong" record; items without one are
    skipped. Result is sorted by title.
    """
    if not isinstance(items, list):
        return []

    songs = []
    for item in items:
        if not item or not item.get("globalSong"):
            continue
        global_song = item["globalSong"]
        songs.append(
            CatalogSong(
                id=str(item["id"]),
                title=global_song.get("title") or "Unknown",
                artist=global_song.get("artistName") or "Unknown",
                album=global_song.get("album") or "",
                spotify_url=global_song.get("spotifyUrl") or "",
                image_url=global_song.get("albumImageUrl"),
                duration=int(global_song.get("duration") or 0),
                key=(global_song.get("metadata") or {}).get("key"),
                tuning=item.get("tuning") or "standard",
            )
        )
    return sorted(songs, key=lambda s: s.title.lower())


class HttpGateway(SetlistGateway):
    """REST client; blocking requests run in a worker thread."""

    def __init__(self, base_url: str, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, payload: dict | None = None):
        url = f"{self.base_url}{endpoint}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(
            url,
            data=data,
            method=method,
            headers={
                "Content-Type": "application/json",
                "User-Agent": f"setlist-planner/{__version__}",
            },
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                body = response.read()
        except urllib.error.HTTPError as e:
            raise PersistenceError(f"HTTP {e.code}: {e.reason}") from e
        except (urllib.error.URLError, OSError) as e:
            raise PersistenceError(f"Request to {url} failed: {e}") from e

        if not body:
            return {}
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Invalid JSON from {url}") from e

    async def _call(self, method: str, endpoint: str, payload: dict | None = None):
        return await asyncio.to_thread(self._request, method, endpoint, payload)

    async def load_setlist(self, artist_id: str, setlist_id: str) -> Setlist:
        endpoint = f"/api/artists/{artist_id}/setlists/{setlist_id}"
        return parse_setlist(await self._call("GET", endpoint), endpoint)

    async def load_catalog(self, artist_id: str) -> list[CatalogSong]:
        endpoint = f"/api/artists/{artist_id}/songs"
        data = await self._call("GET", endpoint)
        try:
            return catalog_from_payload(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(f"Invalid catalog from {endpoint}: {e!r}") from e

    async def save_setlist(self, artist_id: str, setlist_id: str, updates: dict) -> Setlist:
        endpoint = f"/api/artists/{artist_id}/setlists/{setlist_id}"
        return parse_setlist(await self._call("PUT", endpoint, updates), endpoint)

    async def list_setlists(self, artist_id: str) -> list[Setlist]:
        endpoint = f"/api/artists/{artist_id}/setlists"
        data = await self._call("GET", endpoint)
        if not isinstance(data, list):
            raise PersistenceError(f"Invalid setlist list from {endpoint}")
        return [parse_setlist(item, endpoint) for item in data]

    async def create_setlist(
        self, artist_id: str, name: str, set_names: tuple[str, ...] = ("Set 1",)
    ) -> Setlist:
        endpoint = f"/api/artists/{artist_id}/setlists"
        payload = {
            "name": name,
            "sets": [
                {"id": f"set{i}", "name": n, "targetDuration": 0, "songs": []}
                for i, n in enumerate(set_names, 1)
            ],
        }
        return parse_setlist(await self._call("POST", endpoint, payload), endpoint)

    async def delete_setlist(self, artist_id: str, setlist_id: str) -> None:
        await self._call("DELETE", f"/api/artists/{artist_id}/setlists/{setlist_id}")

    async def duplicate_setlist(self, artist_id: str, setlist_id: str, name: str) -> Setlist:
        endpoint = f"/api/artists/{artist_id}/setlists/{setlist_id}/duplicate"
        return parse_setlist(await self._call("POST", endpoint, {"name": name}), endpoint)
