"""
P3 Drum Machine session TUI.

Textual app that shows the active session's pad grid (rows x columns),
a status bar and a session picker. All state lives in the SessionManager;
widgets only read it and call its mutators.
"""

from uuid import UUID

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Grid, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, OptionList, Static
from textual.widgets.option_list import Option

from p3drum.schemas.session import Pad, SessionSummary
from p3drum.session.manager import SessionManager

# Value returned by SessionPickerScreen when the user cancels
_PICK_NONE = ""


class PadButton(Button):
    """A single pad cell. Shows the sample name and the pad mode."""

    def __init__(self, pad: Pad, **kwargs):
        super().__init__(self._label(pad), **kwargs)
        self.row = pad.row
        self.column = pad.column
        self.set_class(not pad.is_empty, "--assigned")

    @staticmethod
    def _label(pad: Pad) -> str:
        return f"{pad.display_name}\n{pad.mode.display_name}"

    def show_pad(self, pad: Pad):
        self.label = self._label(pad)
        self.set_class(not pad.is_empty, "--assigned")

    def on_button_pressed(self) -> None:
        self.app.select_pad(self.row, self.column)


class SessionPickerScreen(ModalScreen[str]):
    """Modal list of saved sessions.

    Dismisses with the chosen session id (str), or _PICK_NONE on cancel.
    """

    CSS = """
    SessionPickerScreen {
        align: center middle;
    }
    #session-select-box {
        width: 70;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #session-select-box Label {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    #session-option-list {
        height: auto;
        max-height: 20;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, sessions: list[SessionSummary], **kwargs):
        super().__init__(**kwargs)
        self.sessions = sessions

    def compose(self) -> ComposeResult:
        options: list[Option] = []
        for s in self.sessions:
            modified = s.modified_at.strftime("%Y-%m-%d %H:%M")
            text = f"{s.name}  ({s.bpm:.0f} BPM, {s.assigned_pads_count} pads, {modified})"
            options.append(Option(text, id=str(s.id)))

        with Vertical(id="session-select-box"):
            yield Label("Open Session" if options else "No saved sessions")
            yield OptionList(*options, id="session-option-list")

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id or _PICK_NONE)

    def action_cancel(self) -> None:
        self.dismiss(_PICK_NONE)


class SessionApp(App):
    CSS = """
    #status-bar {
        dock: top;
        height: 1;
        padding: 0 1;
        background: $primary;
        color: $text;
        text-style: bold;
    }
    #pad-grid {
        grid-gutter: 1;
        padding: 1;
    }
    PadButton {
        width: 100%;
        height: 100%;
        min-height: 3;
    }
    PadButton.--assigned {
        background: $success;
    }
    PadButton.--selected {
        border: tall $accent;
        text-style: bold;
    }
    #help-bar {
        dock: bottom;
        height: 2;
        padding: 0 1;
        background: $surface;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("left", "cursor_left", "Left", show=False),
        Binding("right", "cursor_right", "Right", show=False),
        Binding("m", "cycle_mode", "Pad Mode", show=True),
        Binding("equal,plus", "bpm_up", "BPM +1", show=False),
        Binding("minus", "bpm_down", "BPM -1", show=False),
        Binding("n", "new_session", "New", show=True),
        Binding("o", "open_session", "Open", show=True),
        Binding("s", "save_session", "Save", show=True),
        Binding("k", "toggle_keys", "Keys", show=False),
        Binding("f", "toggle_fifths", "5ths", show=False),
        Binding("q", "quit", "Quit", show=True),
        Binding("Q", "quit_without_saving", "Quit (no save)", show=False),
    ]

    def __init__(self, manager: SessionManager, session_id: UUID | None = None, **kwargs):
        super().__init__(**kwargs)
        self.manager = manager
        self.session_id = session_id

        self._cursor_row = 0
        self._cursor_col = 0
        self._buttons: dict[tuple[int, int], PadButton] = {}
        self._status_label: Label | None = None

    # --- Compose UI ---

    def compose(self) -> ComposeResult:
        yield Label("", id="status-bar")
        yield Grid(id="pad-grid")
        yield Static(
            "[Arrows] Select  [M] Mode  [+/-] BPM  [N] New  [O] Open  "
            "[S] Save  [K] Keys  [F] 5ths  [Q] Save & Quit",
            id="help-bar",
        )

    async def on_mount(self) -> None:
        self._status_label = self.query_one("#status-bar", Label)
        if self.session_id is not None and not self.manager.open_session(self.session_id):
            self.notify(self.manager.last_error or "Open failed", severity="error")
        if self.manager.current_session is None:
            self.manager.new_session()
        await self._rebuild_grid()

    async def _rebuild_grid(self):
        """Recreate the pad buttons for the current session's grid size."""
        session = self.manager.current_session
        grid = self.query_one("#pad-grid", Grid)
        await grid.remove_children()
        self._buttons = {}
        if session is None:
            self._refresh_status()
            return

        grid.styles.grid_size_columns = max(session.columns, 1)
        grid.styles.grid_size_rows = max(session.rows, 1)
        buttons = []
        for pad in sorted(session.pads, key=lambda p: (p.row, p.column)):
            button = PadButton(pad)
            self._buttons[(pad.row, pad.column)] = button
            buttons.append(button)
        await grid.mount_all(buttons)

        self._cursor_row = min(self._cursor_row, max(session.rows - 1, 0))
        self._cursor_col = min(self._cursor_col, max(session.columns - 1, 0))
        self._update_cursor()
        self._refresh_status()

    # --- Status bar ---

    def _selected_pad(self) -> Pad | None:
        session = self.manager.current_session
        if session is None:
            return None
        return session.pad_at(self._cursor_row, self._cursor_col)

    def _status_text(self) -> str:
        session = self.manager.current_session
        if session is None:
            return "No session"
        pad = self._selected_pad()
        pad_text = ""
        if pad is not None:
            pad_text = (
                f" | Pad {pad.row + 1},{pad.column + 1}: "
                f"{pad.display_name} [{pad.mode.display_name}]"
            )
        surface = self.manager.active_performance_surface.display_name
        return (
            f"{session.name} | BPM: {self.manager.bpm:.0f}{pad_text} | "
            f"Surface: {surface}"
        )

    def _refresh_status(self):
        if self._status_label is not None:
            self._status_label.update(self._status_text())

    def _refresh_pad(self, pad: Pad | None):
        if pad is None:
            return
        button = self._buttons.get((pad.row, pad.column))
        if button is not None:
            button.show_pad(pad)

    # --- Cursor management ---

    def _update_cursor(self):
        for (row, col), button in self._buttons.items():
            button.set_class(
                row == self._cursor_row and col == self._cursor_col, "--selected"
            )

    def select_pad(self, row: int, column: int):
        self._cursor_row = row
        self._cursor_col = column
        self._update_cursor()
        self._refresh_status()

    def _move_cursor(self, d_row: int, d_col: int):
        session = self.manager.current_session
        if session is None or not session.pads:
            return
        row = min(max(self._cursor_row + d_row, 0), session.rows - 1)
        col = min(max(self._cursor_col + d_col, 0), session.columns - 1)
        self.select_pad(row, col)

    def action_cursor_up(self):
        self._move_cursor(-1, 0)

    def action_cursor_down(self):
        self._move_cursor(1, 0)

    def action_cursor_left(self):
        self._move_cursor(0, -1)

    def action_cursor_right(self):
        self._move_cursor(0, 1)

    # --- Pad editing ---

    def action_cycle_mode(self):
        pad = self._selected_pad()
        if pad is None:
            return
        self._refresh_pad(self.manager.set_pad_mode(pad.mode.next(), pad.id))
        self._refresh_status()

    # --- BPM ---

    def action_bpm_up(self):
        self.manager.adjust_bpm(1)
        self._refresh_status()

    def action_bpm_down(self):
        self.manager.adjust_bpm(-1)
        self._refresh_status()

    # --- Performance surfaces ---

    def action_toggle_keys(self):
        self.manager.toggle_keys()
        self._refresh_status()

    def action_toggle_fifths(self):
        self.manager.toggle_fifths()
        self._refresh_status()

    # --- Sessions ---

    def action_save_session(self):
        if self.manager.save_current_session():
            self.notify("Session saved", severity="information")
        else:
            self.notify(self.manager.last_error or "Save failed", severity="error")

    async def action_new_session(self):
        if self.manager.current_session is not None and not self.manager.save_current_session():
            self.notify(self.manager.last_error or "Save failed", severity="error")
            return
        self.manager.new_session()
        self._cursor_row = 0
        self._cursor_col = 0
        await self._rebuild_grid()

    def action_open_session(self):
        self.manager.refresh_sessions()
        self.push_screen(SessionPickerScreen(self.manager.sessions), self._on_session_picked)

    async def _on_session_picked(self, session_id: str | None) -> None:
        if not session_id:
            return
        if self.manager.open_session(UUID(session_id)):
            self._cursor_row = 0
            self._cursor_col = 0
            await self._rebuild_grid()
            self.notify(f"Opened: {self.manager.current_session.name}")
        else:
            self.notify(self.manager.last_error or "Open failed", severity="error")

    # --- Cleanup ---

    async def action_quit(self):
        if not self.manager.close_current_session():
            self.notify(
                f"{self.manager.last_error} (Shift+Q quits without saving)",
                severity="error",
            )
            return
        self.exit()

    def action_quit_without_saving(self):
        self.exit()
