"""Tests for setlist_planner.gateway module."""

import asyncio
import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from setlist_planner.gateway import (
    HttpGateway,
    JsonFileGateway,
    PersistenceError,
    catalog_from_payload,
    save_payload,
)


def _mock_response(payload) -> MagicMock:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    mock_response = MagicMock()
    mock_response.read.return_value = body
    mock_response.__enter__ = lambda s: s
    mock_response.__exit__ = MagicMock(return_value=False)
    return mock_response


class TestSavePayload:
    """Tests for save_payload function."""

    def test_contains_name_and_sets(self, sample_setlist):
        payload = save_payload(sample_setlist)

        assert set(payload) == {"name", "sets"}
        assert payload["sets"][0]["songs"][2]["title"] == "Praise You"


class TestJsonFileGateway:
    """Tests for the local JSON store."""

    def test_load_setlist(self, json_gateway, sample_setlist):
        assert asyncio.run(json_gateway.load_setlist("band1", "sl1")) == sample_setlist

    def test_load_missing_setlist(self, json_gateway):
        with pytest.raises(PersistenceError):
            asyncio.run(json_gateway.load_setlist("band1", "nope"))

    def test_load_corrupt_setlist(self, json_gateway):
        json_gateway._setlist_path("band1", "sl1").write_text("{not json")
        with pytest.raises(PersistenceError):
            asyncio.run(json_gateway.load_setlist("band1", "sl1"))

    def test_load_catalog_sorted(self, json_gateway):
        songs = asyncio.run(json_gateway.load_catalog("band1"))
        assert [s.title for s in songs] == [
            "99 Problems",
            "Around the World",
            "Block Rockin' Beats",
            "Praise You",
        ]

    def test_load_catalog_missing_is_empty(self, temp_dir):
        assert asyncio.run(JsonFileGateway(temp_dir).load_catalog("band9")) == []

    def test_save_round_trip(self, json_gateway, sample_setlist):
        """Saving then loading gives back the same sets and positions."""
        updates = {"name": "Saturday", "sets": [s.to_dict() for s in sample_setlist.sets[::-1]]}

        saved = asyncio.run(json_gateway.save_setlist("band1", "sl1", updates))
        loaded = asyncio.run(json_gateway.load_setlist("band1", "sl1"))

        assert loaded == saved
        assert loaded.name == "Saturday"
        assert [s.id for s in loaded.sets] == ["setB", "setA"]
        assert loaded.updated_at != sample_setlist.updated_at
        assert loaded.created_at == sample_setlist.created_at

    def test_save_ignores_other_fields(self, json_gateway):
        saved = asyncio.run(json_gateway.save_setlist("band1", "sl1", {"id": "hijack"}))
        assert saved.id == "sl1"

    def test_save_missing_setlist(self, json_gateway):
        with pytest.raises(PersistenceError):
            asyncio.run(json_gateway.save_setlist("band1", "nope", {"name": "x"}))

    def test_create_and_list(self, temp_dir):
        gateway = JsonFileGateway(temp_dir)
        created = asyncio.run(gateway.create_setlist("band2", "Wedding", ("Set 1", "Set 2")))

        setlists = asyncio.run(gateway.list_setlists("band2"))

        assert [s.id for s in setlists] == [created.id]
        assert [s.name for s in setlists[0].sets] == ["Set 1", "Set 2"]
        assert setlists[0].artist_id == "band2"

    def test_list_unknown_artist(self, temp_dir):
        assert asyncio.run(JsonFileGateway(temp_dir).list_setlists("nobody")) == []

    def test_save_catalog(self, temp_dir, catalog):
        gateway = JsonFileGateway(temp_dir)
        asyncio.run(gateway.save_catalog("band3", catalog))
        assert len(asyncio.run(gateway.load_catalog("band3"))) == 4


    def test_file_access_runs_in_worker_thread(self, json_gateway):
        calls = []
        to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args):
            calls.append(func.__name__)
            return await to_thread(func, *args)

        with patch("setlist_planner.gateway.asyncio.to_thread", recording_to_thread):
            asyncio.run(json_gateway.load_setlist("band1", "sl1"))
            asyncio.run(json_gateway.save_setlist("band1", "sl1", {"name": "x"}))
            asyncio.run(json_gateway.list_setlists("band1"))

        assert calls == ["_read", "_save_setlist", "_list_setlists"]

    def test_load_setlist_without_id(self, json_gateway):
        path = json_gateway._setlist_path("band1", "sl1")
        json_gateway._write(path, {"name": "No id", "sets": []})
        with pytest.raises(PersistenceError, match="Invalid setlist"):
            asyncio.run(json_gateway.load_setlist("band1", "sl1"))

    def test_list_with_malformed_setlist(self, json_gateway):
        json_gateway._write(json_gateway._setlist_path("band1", "broken"), ["not", "a", "setlist"])
        with pytest.raises(PersistenceError):
            asyncio.run(json_gateway.list_setlists("band1"))

    def test_delete_setlist(self, json_gateway):
        asyncio.run(json_gateway.delete_setlist("band1", "sl1"))

        assert asyncio.run(json_gateway.list_setlists("band1")) == []
        with pytest.raises(PersistenceError):
            asyncio.run(json_gateway.load_setlist("band1", "sl1"))

    def test_delete_missing_setlist(self, json_gateway):
        with pytest.raises(PersistenceError, match="Not found"):
            asyncio.run(json_gateway.delete_setlist("band1", "nope"))

    def test_duplicate_setlist(self, json_gateway, sample_setlist):
        copy = asyncio.run(json_gateway.duplicate_setlist("band1", "sl1", "Saturday at the Crown"))

        assert copy.id != "sl1"
        assert copy.name == "Saturday at the Crown"
        assert copy.sets == sample_setlist.sets
        names = [s.name for s in asyncio.run(json_gateway.list_setlists("band1"))]
        assert names == ["Friday at the Crown", "Saturday at the Crown"]

    def test_duplicate_missing_setlist(self, json_gateway):
        with pytest.raises(PersistenceError):
            asyncio.run(json_gateway.duplicate_setlist("band1", "nope", "Copy"))


class TestCatalogFromPayload:

    """Tests for catalog_from_payload function."""

    def test_flattens_and_sorts(self):
        payload = [
            {
                "id": "s2",
                "tuning": "drop D",
                "globalSong": {
                    "title": "Zombie",
                    "artistName": "The Cranberries",
                    "duration": 306,
                    "metadata": {"key": "Em"},
                },
            },
            {"id": "s1", "globalSong": {"title": "Africa", "artistName": "Toto"}},
        ]

        songs = catalog_from_payload(payload)

        assert [s.id for s in songs] == ["s1", "s2"]
        assert songs[1].tuning == "drop D"
        assert songs[1].key == "Em"
        assert songs[1].duration == 306
        assert songs[0].tuning == "standard"

    def test_skips_items_without_global_song(self):
        assert catalog_from_payload([{"id": "x"}, None]) == []

    def test_non_list(self):
        assert catalog_from_payload({"error": "nope"}) == []


class TestHttpGateway:
    """Tests for the REST gateway."""

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_load_setlist(self, mock_urlopen, sample_setlist):
        mock_urlopen.return_value = _mock_response(sample_setlist.to_dict())
        gateway = HttpGateway("https://bands.example.com/")

        setlist = asyncio.run(gateway.load_setlist("band1", "sl1"))

        assert setlist == sample_setlist
        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "https://bands.example.com/api/artists/band1/setlists/sl1"
        assert request.get_method() == "GET"

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_save_setlist_puts_payload(self, mock_urlopen, sample_setlist):
        mock_urlopen.return_value = _mock_response(sample_setlist.to_dict())
        gateway = HttpGateway("https://bands.example.com")

        asyncio.run(gateway.save_setlist("band1", "sl1", save_payload(sample_setlist)))

        request = mock_urlopen.call_args[0][0]
        assert request.get_method() == "PUT"
        assert json.loads(request.data)["name"] == "Friday at the Crown"

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_load_catalog(self, mock_urlopen):
        mock_urlopen.return_value = _mock_response(
            [{"id": "s1", "globalSong": {"title": "Africa", "artistName": "Toto"}}]
        )
        songs = asyncio.run(HttpGateway("http://x").load_catalog("band1"))
        assert songs[0].title == "Africa"

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_http_error(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.HTTPError(
            "http://x", 503, "Service Unavailable", {}, io.BytesIO(b"")
        )
        with pytest.raises(PersistenceError, match="HTTP 503"):
            asyncio.run(HttpGateway("http://x").save_setlist("band1", "sl1", {"name": "x"}))

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_connection_error(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.URLError("connection refused")
        with pytest.raises(PersistenceError):
            asyncio.run(HttpGateway("http://x").load_setlist("band1", "sl1"))

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_invalid_json(self, mock_urlopen):
        mock_urlopen.return_value = _mock_response(b"<html>oops</html>")
        with pytest.raises(PersistenceError, match="Invalid JSON"):
            asyncio.run(HttpGateway("http://x").load_setlist("band1", "sl1"))

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_save_with_empty_reply(self, mock_urlopen):
        """A 204-style empty body is not a setlist."""
        mock_urlopen.return_value = _mock_response(b"")
        with pytest.raises(PersistenceError, match="Invalid setlist"):
            asyncio.run(HttpGateway("http://x").save_setlist("band1", "sl1", {"name": "x"}))

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_load_document_without_id(self, mock_urlopen):
        mock_urlopen.return_value = _mock_response({"name": "Friday", "sets": []})
        with pytest.raises(PersistenceError):
            asyncio.run(HttpGateway("http://x").load_setlist("band1", "sl1"))

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_list_setlists_wrong_shape(self, mock_urlopen):
        mock_urlopen.return_value = _mock_response({"error": "nope"})
        with pytest.raises(PersistenceError):
            asyncio.run(HttpGateway("http://x").list_setlists("band1"))

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_catalog_item_without_id(self, mock_urlopen):
        mock_urlopen.return_value = _mock_response([{"globalSong": {"title": "Africa"}}])
        with pytest.raises(PersistenceError, match="Invalid catalog"):
            asyncio.run(HttpGateway("http://x").load_catalog("band1"))

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_delete_setlist(self, mock_urlopen):
        mock_urlopen.return_value = _mock_response(b"")

        asyncio.run(HttpGateway("http://x").delete_setlist("band1", "sl1"))

        request = mock_urlopen.call_args[0][0]
        assert request.get_method() == "DELETE"
        assert request.full_url == "http://x/api/artists/band1/setlists/sl1"

    @patch("setlist_planner.gateway.urllib.request.urlopen")
    def test_duplicate_setlist(self, mock_urlopen, sample_setlist):
        reply = {**sample_setlist.to_dict(), "id": "sl2", "name": "Saturday"}
        mock_urlopen.return_value = _mock_response(reply)

        copy = asyncio.run(HttpGateway("http://x").duplicate_setlist("band1", "sl1", "Saturday"))

        assert copy.id == "sl2"
        request = mock_urlopen.call_args[0][0]
        assert request.get_method() == "POST"
        assert request.full_url == "http://x/api/artists/band1/setlists/sl1/duplicate"
        assert json.loads(request.data) == {"name": "Saturday"}
