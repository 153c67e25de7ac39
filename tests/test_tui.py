"""
Tests for p3drum/tui/app.py: driven headless through Textual's pilot.
"""

from p3drum.performance import ActivePerformanceSurface
from p3drum.schemas.session import PadMode
from p3drum.session.manager import SessionManager
from p3drum.tui.app import PadButton, SessionApp, SessionPickerScreen


async def test_mount_creates_grid(manager):
    app = SessionApp(manager)
    async with app.run_test() as pilot:
        await pilot.pause()
        session = manager.current_session
        assert session is not None
        assert len(app.query(PadButton)) == session.rows * session.columns
        assert "New Session | BPM: 102" in app._status_text()


async def test_edit_keys(manager):
    app = SessionApp(manager)
    async with app.run_test() as pilot:
        await pilot.pause()
        session = manager.current_session

        await pilot.press("m")
        await pilot.press("plus", "plus", "minus")
        await pilot.press("right", "down")
        await pilot.press("k")
        await pilot.press("s")
        await pilot.pause()

        assert session.pad_at(0, 0).mode is PadMode.LOOP
        assert manager.bpm == 103.0
        assert session.bpm == 103.0
        assert manager.active_performance_surface is ActivePerformanceSurface.KEYS
        assert "Pad 2,2" in app._status_text()
        assert manager.store.session_exists(session.id)


async def test_cursor_stays_in_grid(store):
    manager = SessionManager(store)
    manager.new_session(rows=2, columns=2)
    app = SessionApp(manager)
    async with app.run_test() as pilot:
        await pilot.pause()
        await pilot.press("left", "up", "right", "right", "right", "down", "down")
        assert "Pad 2,2" in app._status_text()


async def test_new_session_saves_current(manager):
    app = SessionApp(manager)
    async with app.run_test() as pilot:
        await pilot.pause()
        first = manager.current_session
        await pilot.press("n")
        await pilot.pause()
        assert manager.current_session is not first
        assert manager.store.session_exists(first.id)


async def test_open_saved_session(manager):
    saved = manager.new_session("Saved", rows=3, columns=4)
    manager.save_current_session()
    manager.close_current_session()

    app = SessionApp(manager)
    async with app.run_test() as pilot:
        await pilot.pause()
        assert manager.current_session.id != saved.id

        await pilot.press("o")
        await pilot.pause()
        assert isinstance(app.screen, SessionPickerScreen)
        await pilot.press("escape")
        await pilot.pause()
        assert not isinstance(app.screen, SessionPickerScreen)

        await app._on_session_picked(str(saved.id))
        await pilot.pause()
        assert manager.current_session.id == saved.id
        assert len(app.query(PadButton)) == 12


async def test_open_by_id_on_start(manager):
    saved = manager.new_session("Startup")
    manager.save_current_session()
    manager.close_current_session()

    app = SessionApp(manager, session_id=saved.id)
    async with app.run_test() as pilot:
        await pilot.pause()
        assert manager.current_session.id == saved.id


async def test_quit_saves(manager):
    app = SessionApp(manager)
    async with app.run_test() as pilot:
        await pilot.pause()
        session = manager.current_session
        await pilot.press("q")
        await pilot.pause()
    assert manager.current_session is None
    assert manager.store.session_exists(session.id)
