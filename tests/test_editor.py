"""Tests for setlist_planner.editor module."""

import asyncio

import pytest

from setlist_planner.editor import ConfirmScreen, SetlistEditorApp
from setlist_planner.session import EditorSession


@pytest.fixture
def session(fake_gateway, id_factory):
    """A loaded session over the in-memory gateway."""
    session = EditorSession(fake_gateway, "band1", "sl1", id_factory=id_factory)
    asyncio.run(session.load())
    return session


def entry_ids(session, set_id="setA"):
    return [e.id for e in session.working.find_set(set_id).entries]


class TestSetlistEditorApp:
    """Keyboard-driven tests of the editor."""

    def test_remove_song_under_cursor(self, session):
        """Row 0 is the Set A header, row 1 its first song."""

        async def run():
            app = SetlistEditorApp(session)
            async with app.run_test() as pilot:
                await pilot.press("down", "x")

        asyncio.run(run())
        assert entry_ids(session) == ["e2", "e3"]
        assert session.dirty

    def test_keyboard_move(self, session):
        """Pick up the last song and drop it before the first."""

        async def run():
            app = SetlistEditorApp(session)
            async with app.run_test() as pilot:
                await pilot.press("down", "down", "down", "m")
                assert session.drag.is_dragging
                await pilot.press("up", "up", "m")
                assert not session.drag.is_dragging

        asyncio.run(run())
        assert entry_ids(session) == ["e3", "e1", "e2"]
        assert [e.position for e in session.working.find_set("setA").entries] == [0, 1, 2]

    def test_escape_cancels_move(self, session):
        async def run():
            app = SetlistEditorApp(session)
            async with app.run_test() as pilot:
                await pilot.press("down", "m", "down", "escape")
                assert not session.drag.is_dragging

        asyncio.run(run())
        assert entry_ids(session) == ["e1", "e2", "e3"]
        assert not session.dirty

    def test_save(self, session, fake_gateway):
        async def run():
            app = SetlistEditorApp(session)
            async with app.run_test() as pilot:
                await pilot.press("down", "x", "s")
                await app.workers.wait_for_complete()
                await pilot.pause()

        asyncio.run(run())
        assert len(fake_gateway.saves) == 1
        assert not session.dirty

    def test_failed_save_keeps_editing(self, session, fake_gateway):
        fake_gateway.fail_save = True

        async def run():
            app = SetlistEditorApp(session)
            async with app.run_test() as pilot:
                await pilot.press("down", "x", "s")
                await app.workers.wait_for_complete()
                await pilot.pause()
                assert app.is_running

        asyncio.run(run())
        assert entry_ids(session) == ["e2", "e3"]
        assert session.dirty

    def test_quit_with_unsaved_changes_asks_first(self, session):
        async def run():
            app = SetlistEditorApp(session)
            async with app.run_test() as pilot:
                await pilot.press("down", "x", "q")
                await pilot.pause()
                assert isinstance(app.screen, ConfirmScreen)

                await pilot.press("escape")
                await pilot.pause()
                assert not isinstance(app.screen, ConfirmScreen)

        asyncio.run(run())
        # Kept editing, so the working copy survives
        assert entry_ids(session) == ["e2", "e3"]
        assert session.dirty
