"""
Interactive TUI editor for arranging setlists.

Provides a two-pane interface:
- Left: every set of the setlist, one row per song, with set header rows
- Right: the artist's catalog, grouped by letter and filterable

Songs are moved with a keyboard drag: pick up with M, move the cursor to
the drop point, put down with M again (Escape cancels). Selecting a catalog
song adds it to the end of the active set.
"""

import logging

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Footer, Header, Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from setlist_planner import SET_CONTAINER_PREFIX
from setlist_planner.catalog import group_by_letter, sorted_letters
from setlist_planner.config import EditorConfig
from setlist_planner.drag import DropOutcome, InputKind
from setlist_planner.gateway import PersistenceError
from setlist_planner.models import format_duration, variance_level
from setlist_planner.positions import (
    catalog_token,
    container_token,
    parse_drag_token,
    resolve_source,
    resolve_target,
)
from setlist_planner.session import EditorSession

logger = logging.getLogger(__name__)

VARIANCE_COLORS = {"on-target": "blue", "close": "yellow", "off": "red"}


class EditTextScreen(ModalScreen[str | None]):
    """Modal screen for editing a single line of text."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    EditTextScreen {
        align: center middle;
    }

    #edit-dialog {
        width: 60;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }

    #edit-dialog Label {
        margin-bottom: 1;
    }

    #button-row {
        margin-top: 1;
        align: center middle;
    }

    #button-row Button {
        margin: 0 1;
    }
    """

    def __init__(self, title: str, value: str, placeholder: str = "") -> None:
        super().__init__()
        self.dialog_title = title
        self.initial_value = value
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(id="edit-dialog"):
            yield Label(self.dialog_title, id="edit-title")
            yield Input(value=self.initial_value, id="text-input", placeholder=self.placeholder)
            with Horizontal(id="button-row"):
                yield Button("Save", variant="primary", id="save-btn")
                yield Button("Cancel", variant="default", id="cancel-btn")

    def on_mount(self) -> None:
        self.query_one("#text-input", Input).focus()

    @on(Button.Pressed, "#save-btn")
    @on(Input.Submitted)
    def save_changes(self) -> None:
        self.dismiss(self.query_one("#text-input", Input).value.strip())

    @on(Button.Pressed, "#cancel-btn")
    def action_cancel(self) -> None:
        self.dismiss(None)


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no confirmation, used before discarding unsaved changes."""

    BINDINGS = [
        Binding("escape", "keep", "Keep editing"),
    ]

    CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 60;
        height: auto;
        border: thick $error;
        background: $surface;
        padding: 1 2;
    }

    #button-row {
        margin-top: 1;
        align: center middle;
    }

    #button-row Button {
        margin: 0 1;
    }
    """

    def __init__(self, title: str, message: str, confirm_label: str = "Discard") -> None:
        super().__init__()
        self.dialog_title = title
        self.message = message
        self.confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(f"[bold]{self.dialog_title}[/]")
            yield Label(self.message)
            with Horizontal(id="button-row"):
                yield Button(self.confirm_label, variant="error", id="confirm-btn")
                yield Button("Keep editing", variant="default", id="keep-btn")

    @on(Button.Pressed, "#confirm-btn")
    def action_confirm(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#keep-btn")
    def action_keep(self) -> None:
        self.dismiss(False)


class SetlistEditorApp(App[None]):
    """Interactive TUI for arranging songs into sets."""

    TITLE = "Setlist Planner"

    CSS = """
    Screen {
        background: $surface;
    }

    #main-container {
        height: 100%;
    }

    #info-bar {
        height: 3;
        background: $primary-background;
        padding: 0 1;
    }

    #info-bar Label {
        margin-right: 2;
    }

    #body {
        height: 1fr;
    }

    #set-table {
        width: 2fr;
        height: 1fr;
    }

    #catalog-pane {
        width: 1fr;
        height: 1fr;
        border-left: solid $primary;
    }

    #catalog-list {
        height: 1fr;
    }

    DataTable > .datatable--cursor {
        background: $accent;
    }

    #help-bar {
        height: 1;
        background: $primary-background;
        padding: 0 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("s", "save", "Save"),
        Binding("m", "move", "Pick up/Drop"),
        Binding("escape", "cancel_drag", "Cancel move", show=False),
        Binding("a", "quick_add", "Add"),
        Binding("x", "remove", "Remove"),
        Binding("g", "toggle_segue", "Segue"),
        Binding("n", "rename_setlist", "Rename setlist"),
        Binding("d", "edit_target", "Target", show=False),
        Binding("space", "activate_set", "Active set", show=False),
        Binding("f", "toggle_show_all", "All songs", show=False),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("?", "show_help", "Help"),
    ]

    def __init__(self, session: EditorSession, config: EditorConfig | None = None) -> None:
        super().__init__()
        self.session = session
        self.editor_config = config or EditorConfig()
        self.show_all_songs = self.editor_config.show_all_songs
        self.session.confirm = self._confirm_discard
        self._row_tokens: list[str] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="main-container"):
            with Horizontal(id="info-bar"):
                yield Label(id="name-label")
                yield Label(id="duration-label")
                yield Label(id="status-label")
            with Horizontal(id="body"):
                yield DataTable(id="set-table")
                with Vertical(id="catalog-pane"):
                    yield Input(id="catalog-search", placeholder="Search songs")
                    yield OptionList(id="catalog-list")
        yield Static(
            "[M] Move  [A] Add  [X] Remove  [G] Segue  [Enter] Rename  [S] Save  [Q] Quit",
            id="help-bar",
        )
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#set-table", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True

        table.add_column("#", width=4)
        table.add_column("Title", width=36)
        table.add_column("Time", width=14)
        table.add_column("Tuning", width=12)
        table.add_column("Segue", width=6)

        if self.session.working is None:
            self._load_worker()
        else:
            self._refresh_all()

        if self.editor_config.refresh_interval > 0:
            self.set_interval(self.editor_config.refresh_interval, self._refresh_worker)

    # ─────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────

    def _refresh_all(self) -> None:
        self._refresh_table()
        self._refresh_catalog()

    def _refresh_table(self, cursor_token: str | None = None) -> None:
        """Refresh the set table from the working copy."""
        table = self.query_one("#set-table", DataTable)
        if cursor_token is None:
            cursor_token = self._current_token()
        table.clear()
        self._row_tokens = []

        setlist = self.session.working
        if setlist is not None:
            for setlist_set in setlist.sets:
                marker = "● " if setlist_set.id == self.session.active_set_id else ""
                timing = format_duration(setlist_set.total_duration)
                if setlist_set.target_duration:
                    color = VARIANCE_COLORS[variance_level(setlist_set.variance)]
                    timing = f"[{color}]{timing}[/] / {format_duration(setlist_set.target_duration)}"
                token = container_token(setlist_set.id)
                table.add_row("", f"[bold]{marker}{setlist_set.name}[/]", timing, "", "", key=token)
                self._row_tokens.append(token)

                for entry in setlist_set.entries:
                    table.add_row(
                        str(entry.position + 1),
                        entry.title,
                        entry.time_str,
                        entry.tuning if entry.tuning != "standard" else "",
                        "→" if entry.segue_into else "",
                        key=entry.id,
                    )
                    self._row_tokens.append(entry.id)

        if cursor_token in self._row_tokens:
            table.move_cursor(row=self._row_tokens.index(cursor_token))
        self._update_status()

    def _refresh_catalog(self) -> None:
        """Refresh the catalog list from the search box and filter toggle."""
        option_list = self.query_one("#catalog-list", OptionList)
        query = self.query_one("#catalog-search", Input).value
        songs = self.session.filtered_catalog(query, self.show_all_songs)
        groups = group_by_letter(songs)

        option_list.clear_options()
        for letter in sorted_letters(groups):
            option_list.add_option(Option(f"[bold]{letter}[/]", disabled=True))
            for song in groups[letter]:
                option_list.add_option(
                    Option(
                        f"{song.title} [dim]{format_duration(song.duration)}[/]",
                        id=catalog_token(song.id),
                    )
                )

    def _update_status(self) -> None:
        """Update the info bar labels."""
        setlist = self.session.working
        name = setlist.name if setlist else "Loading..."
        self.query_one("#name-label", Label).update(f"[bold]{name}[/]")
        total = format_duration(setlist.total_duration) if setlist else ""
        self.query_one("#duration-label", Label).update(f"Total: {total}")

        parts = []
        if self.session.drag.is_dragging:
            parts.append(f"[bold cyan]{self._describe_drag()}[/]")
        if self.session.saving:
            parts.append("[yellow]Saving...[/]")
        if self.session.dirty:
            if self.session.differs_from_persisted:
                parts.append("[bold red]UNSAVED[/]")
            else:
                parts.append("[yellow]UNSAVED (matches saved copy)[/]")
        self.query_one("#status-label", Label).update(" | ".join(parts))

    def _describe_drag(self) -> str:
        setlist = self.session.working
        source = parse_drag_token(self.session.drag.active_token or "")
        if source.is_from_catalog:
            song = next((s for s in self.session.catalog if s.id == source.song_id), None)
            label = song.title if song else "?"
        else:
            entry = resolve_source(source.song_id, setlist).entry
            label = entry.title if entry else "?"

        over = self.session.drag.over_token
        target = resolve_target(over, setlist) if over else None
        if target is None or not target.resolved:
            return f"Moving '{label}'"
        target_set = setlist.find_set(target.set_id)
        if target.index >= len(target_set.entries):
            return f"Moving '{label}' → end of {target_set.name}"
        return f"Moving '{label}' → before '{target_set.entries[target.index].title}'"

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────

    def _current_token(self) -> str | None:
        """Token of the row under the table cursor."""
        table = self.query_one("#set-table", DataTable)
        row = table.cursor_row
        if row is not None and 0 <= row < len(self._row_tokens):
            return self._row_tokens[row]
        return None

    def _current_entry(self) -> tuple[str, str] | None:
        """(set id, entry id) under the cursor, or None on a set header."""
        token = self._current_token()
        if token is None or token.startswith(SET_CONTAINER_PREFIX):
            return None
        source = resolve_source(token, self.session.working)
        if not source.resolved:
            return None
        return source.set_id, token

    def _current_set_id(self) -> str | None:
        token = self._current_token()
        if token is None:
            return None
        target = resolve_target(token, self.session.working)
        return target.set_id

    def _highlighted_catalog_token(self) -> str | None:
        option_list = self.query_one("#catalog-list", OptionList)
        idx = option_list.highlighted
        if idx is None:
            return None
        return option_list.get_option_at_index(idx).id

    # ─────────────────────────────────────────────────────────────────────
    # Events
    # ─────────────────────────────────────────────────────────────────────

    @on(DataTable.RowHighlighted, "#set-table")
    def on_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if self.session.drag.is_dragging:
            self.session.hover(self._current_token())
            self._update_status()

    @on(DataTable.RowSelected, "#set-table")
    def on_row_selected(self, event: DataTable.RowSelected) -> None:
        if self.session.drag.is_dragging:
            self._drop()
        else:
            self.action_rename_entry()

    @on(OptionList.OptionSelected, "#catalog-list")
    def on_catalog_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option.id:
            self._quick_add(event.option.id)

    @on(Input.Changed, "#catalog-search")
    def on_search_changed(self, event: Input.Changed) -> None:
        self._refresh_catalog()

    # ─────────────────────────────────────────────────────────────────────
    # Actions
    # ─────────────────────────────────────────────────────────────────────

    def action_move(self) -> None:
        """Pick up the song under the cursor, or drop the one being moved."""
        if self.session.drag.is_dragging:
            self._drop()
            return

        if isinstance(self.focused, OptionList):
            token = self._highlighted_catalog_token()
        else:
            current = self._current_entry()
            token = current[1] if current else None
        if token is None:
            return

        if self.session.begin_drag(token, InputKind.KEYBOARD):
            self.query_one("#set-table", DataTable).focus()
            self.session.hover(self._current_token())
            self._update_status()

    def _drop(self) -> None:
        moving = parse_drag_token(self.session.drag.active_token or "")
        result = self.session.drop(self._current_token())
        cursor = moving.song_id if result.outcome is DropOutcome.MOVED else None
        self._refresh_table(cursor_token=cursor)
        if result.outcome is DropOutcome.INSERTED:
            self._refresh_catalog()

    def action_cancel_drag(self) -> None:
        if self.session.drag.is_dragging:
            self.session.cancel_drag()
            self._update_status()

    def action_quick_add(self) -> None:
        token = self._highlighted_catalog_token()
        if token:
            self._quick_add(token)

    def _quick_add(self, token: str) -> None:
        if self.session.active_set_id is None:
            self.notify("No active set. Press Space on a set first.", severity="warning")
            return
        if self.session.quick_add(parse_drag_token(token).song_id):
            self._refresh_all()

    def action_remove(self) -> None:
        current = self._current_entry()
        if current and self.session.remove_entry(current[1], current[0]):
            self._refresh_all()

    def action_toggle_segue(self) -> None:
        current = self._current_entry()
        if current is None:
            return
        if self.session.toggle_segue(*current):
            self._refresh_table()
        else:
            self.notify("The last song of a set has nothing to segue into.", severity="warning")

    def action_activate_set(self) -> None:
        set_id = self._current_set_id()
        if set_id and self.session.set_active_set(set_id):
            self._refresh_table()

    def action_rename_entry(self) -> None:
        """Open edit dialog for the song under the cursor."""
        current = self._current_entry()
        if current is None:
            return
        entry = resolve_source(current[1], self.session.working).entry
        self.push_screen(
            EditTextScreen("Edit song title", entry.title, "Song title"),
            callback=lambda r: self._on_rename_entry(entry.id, r),
        )

    def _on_rename_entry(self, entry_id: str, result: str | None) -> None:
        if result is not None and self.session.rename_entry(entry_id, result):
            self._refresh_table()

    def action_rename_setlist(self) -> None:
        if self.session.working is None:
            return
        self.push_screen(
            EditTextScreen("Rename setlist", self.session.working.name, "Setlist name"),
            callback=self._on_rename_setlist,
        )

    def _on_rename_setlist(self, result: str | None) -> None:
        if result is not None and self.session.rename_setlist(result):
            self._update_status()

    def action_edit_target(self) -> None:
        """Edit the target length (minutes) of the set under the cursor."""
        set_id = self._current_set_id()
        if set_id is None:
            return
        current = self.session.working.find_set(set_id).target_duration
        self.push_screen(
            EditTextScreen("Target length (minutes)", str(current // 60), "45"),
            callback=lambda r: self._on_edit_target(set_id, r),
        )

    def _on_edit_target(self, set_id: str, result: str | None) -> None:
        if result is None:
            return
        try:
            minutes = int(result)
        except ValueError:
            self.notify(f"Not a number: {result}", severity="error")
            return
        if self.session.set_target_duration(set_id, minutes * 60):
            self._refresh_table()

    def action_toggle_show_all(self) -> None:
        self.show_all_songs = not self.show_all_songs
        self._refresh_catalog()

    def action_save(self) -> None:
        """Save the working copy through the gateway."""
        if not self.session.dirty:
            self.notify("No changes to save.")
            return
        self._save_worker()

    def action_quit(self) -> None:
        """Quit the editor, confirming first when there are unsaved changes."""
        self._quit_worker()

    def action_cursor_down(self) -> None:
        self.query_one("#set-table", DataTable).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#set-table", DataTable).action_cursor_up()

    def action_show_help(self) -> None:
        self.notify(
            "↑↓/jk: Navigate | M: Pick up/Drop | Esc: Cancel move | A: Add | X: Remove | "
            "G: Segue | Enter: Rename song | N: Rename setlist | D: Target | "
            "Space: Active set | F: All songs | S: Save | Q: Quit",
            title="Keyboard Shortcuts",
        )

    # ─────────────────────────────────────────────────────────────────────
    # Workers
    # ─────────────────────────────────────────────────────────────────────

    @work(exclusive=True, group="load")
    async def _load_worker(self) -> None:
        try:
            await self.session.load()
        except PersistenceError as e:
            self.notify(f"Could not load setlist: {e}", title="Load Error", severity="error")
            return
        self._refresh_all()

    @work(exclusive=True, group="refresh")
    async def _refresh_worker(self) -> None:
        if self.session.saving:
            return
        try:
            taken = await self.session.refresh()
        except PersistenceError as e:
            logger.debug("Background refresh failed: %s", e)
            return
        if taken and not self.session.dirty:
            self._refresh_table()

    @work(exclusive=True, group="save")
    async def _save_worker(self) -> None:
        self._update_status()
        try:
            await self.session.save()
        except PersistenceError as e:
            self.notify(
                f"{e}. Your changes are kept; press S to retry.",
                title="Save Failed",
                severity="error",
            )
            self._update_status()
            return
        self._refresh_table()
        self.notify("Setlist saved", title="Saved")

    @work(exclusive=True, group="quit")
    async def _quit_worker(self) -> None:
        if await self.session.cancel():
            self.exit()

    async def _confirm_discard(self) -> bool:
        return bool(
            await self.push_screen_wait(
                ConfirmScreen(
                    "Discard changes?",
                    "You have unsaved changes. Are you sure you want to discard them?",
                )
            )
        )


def run_editor(session: EditorSession, config: EditorConfig | None = None) -> None:
    """Run the interactive setlist editor."""
    app = SetlistEditorApp(session, config)
    app.run()
