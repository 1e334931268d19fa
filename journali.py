#!/usr/bin/env python3
"""Journali — a terminal journal for short, in-memory entries."""

from __future__ import annotations

import asyncio
import math
import os
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, Optional

from loguru import logger
from prompt_toolkit import Application
from prompt_toolkit.application.current import get_app
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout.containers import (
    ConditionalContainer, DynamicContainer, Float, FloatContainer,
    HSplit, VSplit, Window, WindowAlign,
)
from prompt_toolkit.layout.controls import BufferControl, FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension as D
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.styles import Style as PtStyle
from prompt_toolkit.widgets import Button, Dialog, TextArea

UNTITLED = "Untitled"
DEFAULT_SPLASH_SECONDS = 2.0

# ════════════════════════════════════════════════════════════════════════
#  Data Models
# ════════════════════════════════════════════════════════════════════════


class FilterMode(Enum):
    """Which entries the journal shows, and in what order."""

    ALL = "all"
    BOOKMARKED = "bookmarked"
    NEWEST = "newest"

    @property
    def label(self) -> str:
        return _FILTER_LABELS[self]


_FILTER_LABELS = {
    FilterMode.ALL: "All entries",
    FilterMode.BOOKMARKED: "Bookmarked",
    FilterMode.NEWEST: "Newest first",
}


@dataclass(eq=False)
class JournalEntry:
    """A single journal record. Identity is the ``id``, nothing else."""
    title: str = ""
    content: str = ""
    date: datetime = field(default_factory=datetime.now)
    is_bookmarked: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __eq__(self, other):
        if not isinstance(other, JournalEntry):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


# ════════════════════════════════════════════════════════════════════════
#  Entry Store
# ════════════════════════════════════════════════════════════════════════


class EntryStore:
    """Single source of truth for journal entries and the current view.

    Holds the ordered entries (newest insert first), the search text and the
    filter mode. Every operation is total: unknown ids and empty saves are
    silently ignored. Observers are called synchronously, in registration
    order, after each change that actually alters state.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None,
                 id_factory: Optional[Callable[[], uuid.UUID]] = None):
        self.entries: list[JournalEntry] = []
        self.search_text = ""
        self.filter_mode = FilterMode.ALL
        self.pending_delete: Optional[JournalEntry] = None
        self._clock = clock or datetime.now
        self._id_factory = id_factory or uuid.uuid4
        self._observers: list[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[JournalEntry]:
        return iter(list(self.entries))

    # ── Observers ────────────────────────────────────────────────────

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._observers.append(callback)

        def _unsubscribe():
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._observers):
            callback()

    # ── Queries ──────────────────────────────────────────────────────

    def _index_of(self, entry_id) -> Optional[int]:
        for i, e in enumerate(self.entries):
            if e.id == entry_id:
                return i
        return None

    def get(self, entry_id) -> Optional[JournalEntry]:
        i = self._index_of(entry_id)
        return None if i is None else self.entries[i]

    def visible_entries(self) -> list[JournalEntry]:
        """Entries after the filter mode, then the search text, are applied."""
        result = list(self.entries)
        if self.filter_mode is FilterMode.BOOKMARKED:
            result = [e for e in result if e.is_bookmarked]
        elif self.filter_mode is FilterMode.NEWEST:
            # sorted() keeps equal dates in store order, reverse included
            result = sorted(result, key=lambda e: e.date, reverse=True)
        if self.search_text:
            q = self.search_text.casefold()
            result = [
                e for e in result
                if q in e.title.casefold() or q in e.content.casefold()
            ]
        return result

    def get_visible_entries(self) -> list[JournalEntry]:
        return self.visible_entries()

    def get_filter_mode(self) -> FilterMode:
        return self.filter_mode

    def get_search_text(self) -> str:
        return self.search_text

    # ── Mutations ────────────────────────────────────────────────────

    def upsert(self, target_id, title: str, content: str) -> Optional[JournalEntry]:
        """Save an entry, updating ``target_id`` in place or inserting a new one.

        Returns the saved entry, or None when both title and content are
        blank (nothing is stored in that case).
        """
        t = title.strip()
        c = content.strip()
        if not t and not c:
            logger.debug("Ignored save of a blank entry")
            return None

        now = self._clock()
        i = self._index_of(target_id) if target_id is not None else None
        if i is not None:
            entry = self.entries[i]
            entry.title = t or UNTITLED
            entry.content = c
            entry.date = now
            logger.debug(f"Updated entry {entry.id}")
        else:
            entry = JournalEntry(
                title=t or UNTITLED, content=c, date=now,
                id=self._id_factory(),
            )
            self.entries.insert(0, entry)
            logger.debug(f"Created entry {entry.id}")
        self._notify()
        return entry

    create_or_update_entry = upsert

    def delete(self, entry_id) -> None:
        i = self._index_of(entry_id)
        if i is None:
            return
        removed = self.entries.pop(i)
        if self.pending_delete is not None and self.pending_delete.id == removed.id:
            self.pending_delete = None
        logger.debug(f"Deleted entry {removed.id}")
        self._notify()

    delete_entry = delete

    def toggle_bookmark(self, entry_id) -> None:
        entry = self.get(entry_id)
        if entry is None:
            return
        entry.is_bookmarked = not entry.is_bookmarked
        self._notify()

    def set_filter(self, mode: FilterMode) -> None:
        if mode is self.filter_mode:
            return
        self.filter_mode = mode
        self._notify()

    def set_search_text(self, text: str) -> None:
        if text == self.search_text:
            return
        self.search_text = text
        self._notify()

    # ── Delete confirmation ──────────────────────────────────────────

    def request_delete(self, entry_id) -> Optional[JournalEntry]:
        """Remember an entry awaiting delete confirmation."""
        entry = self.get(entry_id)
        if entry is not None:
            self.pending_delete = entry
        return entry

    def confirm_delete(self) -> None:
        entry = self.pending_delete
        if entry is None:
            return
        self.pending_delete = None
        self.delete(entry.id)

    def cancel_delete(self) -> None:
        self.pending_delete = None


# ════════════════════════════════════════════════════════════════════════
#  Editor Draft
# ════════════════════════════════════════════════════════════════════════


@dataclass
class EntryDraft:
    """Text being edited in the editor sheet, keyed by entry id."""
    target_id: Optional[uuid.UUID] = None
    title: str = ""
    content: str = ""
    original_title: str = ""
    original_content: str = ""

    @classmethod
    def new(cls) -> EntryDraft:
        return cls()

    @classmethod
    def for_entry(cls, entry: JournalEntry) -> EntryDraft:
        return cls(
            target_id=entry.id,
            title=entry.title, content=entry.content,
            original_title=entry.title, original_content=entry.content,
        )

    @property
    def is_empty(self) -> bool:
        return not self.title.strip() and not self.content.strip()

    @property
    def is_dirty(self) -> bool:
        return (self.title != self.original_title
                or self.content != self.original_content)

    def save(self, store: EntryStore) -> Optional[JournalEntry]:
        return store.upsert(self.target_id, self.title, self.content)


# ════════════════════════════════════════════════════════════════════════
#  Settings & Logging
# ════════════════════════════════════════════════════════════════════════


@dataclass
class Settings:
    splash_seconds: float = DEFAULT_SPLASH_SECONDS
    log_file: Optional[str] = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ=None) -> Settings:
        """Read JOURNALI_* variables; bad values fall back to defaults."""
        env = os.environ if environ is None else environ
        splash = DEFAULT_SPLASH_SECONDS
        raw = env.get("JOURNALI_SPLASH_SECONDS", "").strip()
        if raw:
            try:
                splash = float(raw)
            except ValueError:
                logger.warning(f"Ignoring JOURNALI_SPLASH_SECONDS={raw!r}: not a number")
            else:
                if not math.isfinite(splash) or splash < 0:
                    logger.warning(f"Ignoring JOURNALI_SPLASH_SECONDS={raw!r}: out of range")
                    splash = DEFAULT_SPLASH_SECONDS
        level = (env.get("JOURNALI_LOG_LEVEL") or "WARNING").strip().upper()
        try:
            logger.level(level)
        except ValueError:
            logger.warning(f"Ignoring JOURNALI_LOG_LEVEL={level!r}: unknown level")
            level = "WARNING"
        return cls(
            splash_seconds=splash,
            log_file=env.get("JOURNALI_LOG_FILE") or None,
            log_level=level,
        )


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    rotation: str = "1 MB",
    retention: str = "7 days",
) -> None:
    """Send loguru output to ``log_file``, or drop it when there is none.

    The full-screen UI owns the terminal, so no stderr sink is kept.
    """
    logger.remove()
    if log_file:
        logger.add(
            log_file,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            rotation=rotation,
            retention=retention,
        )


# ════════════════════════════════════════════════════════════════════════
#  Theme
# ════════════════════════════════════════════════════════════════════════

# One palette for every screen.
PURPLE = "#9494fc"
LAVENDER = "#c2baf9"
SURFACE = "#1f1f1f"

THEME = PtStyle.from_dict({
    "": f"#e0e0e0 bg:{SURFACE}",
    "title": LAVENDER,
    "status": "#8a8a8a bg:#333333",
    "hint": "#777777",
    "accent": PURPLE,
    "input": "bg:#333333 #e0e0e0",
    "splash.title": f"bold {LAVENDER}",
    "splash.tagline": "#8a8a8a",
    "empty.title": f"bold {LAVENDER}",
    "empty.body": "#8a8a8a",
    "entry.bookmark": PURPLE,
    "editor": "",
    "editor.title": f"bold {LAVENDER}",
    "editor.bar": f"bg:{PURPLE}",
    "editor.placeholder": "#666666 italic",
    "select-list": "",
    "select-list.selected": "bg:#3a3a4a",
    "select-list.empty": "#777777",
    "dialog": f"#e0e0e0 bg:{SURFACE}",
    "dialog.body": f"#e0e0e0 bg:{SURFACE}",
    "dialog frame.label": f"{LAVENDER} bold",
    "dialog shadow": "bg:#111111",
    "button": "#e0e0e0 bg:#555555",
    "button.focused": f"#111111 bg:{PURPLE}",
})


# ════════════════════════════════════════════════════════════════════════
#  Helpers
# ════════════════════════════════════════════════════════════════════════


def _preview(content: str, width: int = 40) -> str:
    """First non-blank line of ``content``, cut to ``width`` characters."""
    for line in content.splitlines():
        line = line.strip()
        if line:
            if len(line) > width:
                return line[:width - 1] + "…"
            return line
    return ""


def format_entry_label(entry: JournalEntry) -> str:
    mark = "★" if entry.is_bookmarked else "☆"
    label = f"{mark} {entry.title}  {entry.date.strftime('%Y-%m-%d')}"
    preview = _preview(entry.content)
    if preview:
        label += f"  {preview}"
    return label


def entry_list_items(store: EntryStore) -> list[tuple[uuid.UUID, str]]:
    return [(e.id, format_entry_label(e)) for e in store.visible_entries()]


def _word_count(text):
    return len(text.split())


def show_notification(state, message, duration=3.0):
    """Show a notification in the status bar, auto-clearing after duration."""
    state.notification = message
    get_app().invalidate()
    if state.notification_task:
        state.notification_task.cancel()

    async def _clear():
        await asyncio.sleep(duration)
        if state.notification == message:
            state.notification = ""
            get_app().invalidate()

    state.notification_task = asyncio.ensure_future(_clear())


async def show_dialog_as_float(state, dialog):
    """Show a modal dialog as a float and await its result."""
    float_ = Float(content=dialog, transparent=False)
    state.root_container.floats.append(float_)
    app = get_app()
    focused_before = app.layout.current_window
    app.layout.focus(dialog)
    result = await dialog.future
    if float_ in state.root_container.floats:
        state.root_container.floats.remove(float_)
    try:
        app.layout.focus(focused_before)
    except ValueError:
        pass
    app.invalidate()
    return result


# ════════════════════════════════════════════════════════════════════════
#  SelectableList Widget
# ════════════════════════════════════════════════════════════════════════


class SelectableList:
    """Navigable list widget. Items are (id, label) pairs.

    The selection follows its item id across refreshes, so reordering or
    filtering the list never leaves it on a different entry.
    """

    def __init__(self, on_select=None, empty_text="  (empty)"):
        self.items = []
        self.selected_index = 0
        self.on_select = on_select
        self.empty_text = empty_text
        self.key_bindings = KeyBindings()
        sl = self

        @self.key_bindings.add("up")
        def _up(event):
            if sl.selected_index > 0:
                sl.selected_index -= 1

        @self.key_bindings.add("down")
        def _down(event):
            if sl.selected_index < len(sl.items) - 1:
                sl.selected_index += 1

        @self.key_bindings.add("enter")
        def _enter(event):
            if sl.items and sl.on_select:
                sl.on_select(sl.items[sl.selected_index][0])

        @self.key_bindings.add("home")
        def _home(event):
            sl.selected_index = 0

        @self.key_bindings.add("end")
        def _end(event):
            if sl.items:
                sl.selected_index = len(sl.items) - 1

        self.control = FormattedTextControl(
            self._get_text, focusable=True, key_bindings=self.key_bindings,
        )
        self.window = Window(
            content=self.control, style="class:select-list", wrap_lines=False,
        )

    def _get_text(self):
        if not self.items:
            return [("class:select-list.empty", f"{self.empty_text}\n")]
        result = []
        for i, (_, label) in enumerate(self.items):
            if i == self.selected_index:
                result.append(("[SetCursorPosition]", ""))
                result.append(("class:select-list.selected", f"  {label}\n"))
            else:
                result.append(("", f"  {label}\n"))
        return result

    def selected_id(self):
        if not self.items:
            return None
        return self.items[self.selected_index][0]

    def select_id(self, item_id):
        for i, (candidate, _) in enumerate(self.items):
            if candidate == item_id:
                self.selected_index = i
                return True
        return False

    def set_items(self, items):
        current = self.selected_id()
        self.items = items
        if current is not None and self.select_id(current):
            return
        if self.selected_index >= len(items):
            self.selected_index = max(0, len(items) - 1)

    def __pt_container__(self):
        return self.window


# ════════════════════════════════════════════════════════════════════════
#  Dialogs
# ════════════════════════════════════════════════════════════════════════


class ConfirmDialog:
    """Yes/No confirmation dialog with y/n key bindings."""

    def __init__(self, question="Are you sure?", title="Confirm"):
        self.future = asyncio.Future()
        kb = KeyBindings()

        @kb.add("y")
        def _yes(event):
            self._answer(True)

        @kb.add("n")
        def _no(event):
            self._answer(False)

        self._control = FormattedTextControl(
            [("", f"\n  {question}\n")],
            focusable=True,
            key_bindings=kb,
        )
        self.dialog = Dialog(
            title=title,
            body=Window(content=self._control, height=3),
            buttons=[
                Button(text="(y) Yes", handler=lambda: self._answer(True)),
                Button(text="(n) No", handler=lambda: self._answer(False)),
            ],
            modal=True,
            width=D(preferred=56),
        )

    def _answer(self, value):
        if not self.future.done():
            self.future.set_result(value)

    def cancel(self):
        self._answer(False)

    def __pt_container__(self):
        return self.dialog


class FilterPickerDialog:
    """Pick a filter mode for the entry list."""

    def __init__(self, current=FilterMode.ALL):
        self.future = asyncio.Future()
        self.list = SelectableList(on_select=self._select)
        self.list.set_items([(mode, mode.label) for mode in FilterMode])
        self.list.selected_index = list(FilterMode).index(current)

        @self.list.key_bindings.add("c")
        def _cancel(event):
            self.cancel()

        self.dialog = Dialog(
            title="Show",
            body=HSplit([self.list], padding=0),
            buttons=[Button(text="(c) Cancel", handler=self.cancel)],
            modal=True,
            width=D(preferred=36, max=44),
        )

    def _select(self, mode):
        if not self.future.done():
            self.future.set_result(mode)

    def cancel(self):
        if not self.future.done():
            self.future.set_result(None)

    def __pt_container__(self):
        return self.dialog


class CommandPaletteDialog:
    """Command palette. Commands are (name, hint, action) triples."""

    def __init__(self, commands):
        self.future = asyncio.Future()
        self.all_commands = commands
        self.filtered = list(commands)
        self.search_buf = Buffer(multiline=False)
        self.search_buf.on_text_changed += self._on_search_changed
        search_kb = KeyBindings()

        @search_kb.add("down")
        def _down(event):
            event.app.layout.focus(self.results.window)

        @search_kb.add("enter")
        def _enter(event):
            if self.filtered:
                idx = min(self.results.selected_index, len(self.filtered) - 1)
                self._choose(idx)

        self.search_window = Window(
            content=BufferControl(buffer=self.search_buf, key_bindings=search_kb),
            height=1, style="class:input",
        )
        self.results = SelectableList(on_select=self._choose)
        self._update_results("")
        self.dialog = Dialog(
            title="Commands",
            body=HSplit([self.search_window, self.results], padding=0),
            buttons=[Button(text="Cancel", handler=self.cancel)],
            modal=True,
            width=D(preferred=56, max=72),
        )

    def _on_search_changed(self, buf):
        self._update_results(buf.text)

    def _update_results(self, query):
        q = query.casefold()
        self.filtered = [c for c in self.all_commands if q in c[0].casefold()]
        self.results.set_items([
            (i, f"{name:<24}{hint}") for i, (name, hint, _) in enumerate(self.filtered)
        ])
        self.results.selected_index = 0

    def _choose(self, idx):
        if idx < len(self.filtered) and not self.future.done():
            self.future.set_result(self.filtered[idx][2])

    def cancel(self):
        if not self.future.done():
            self.future.set_result(None)

    def __pt_container__(self):
        return self.dialog


# ════════════════════════════════════════════════════════════════════════
#  Editor Sheet
# ════════════════════════════════════════════════════════════════════════


class EditorSheet:
    """Title field, today's date and a body area bound to an EntryDraft."""

    def __init__(self):
        self.draft = EntryDraft.new()
        self.title_area = TextArea(
            multiline=False, style="class:editor.title", height=1,
        )
        self.body_area = TextArea(
            multiline=True, wrap_lines=True, scrollbar=False,
            style="class:editor", focus_on_click=True,
        )
        self.title_area.buffer.on_text_changed += self._sync
        self.body_area.buffer.on_text_changed += self._sync

        def _title_accept(buf):
            get_app().layout.focus(self.body_area)
            return True

        self.title_area.buffer.accept_handler = _title_accept

        title_kb = KeyBindings()

        @title_kb.add("tab")
        def _to_body(event):
            event.app.layout.focus(self.body_area)

        body_kb = KeyBindings()

        @body_kb.add("s-tab")
        def _to_title(event):
            event.app.layout.focus(self.title_area)

        self.title_area.control.key_bindings = title_kb
        self.body_area.control.key_bindings = body_kb

        def get_controls():
            save_style = "class:hint" if self.draft.is_empty else "class:accent bold"
            return [
                ("class:hint", " (esc) cancel"),
                ("", "   "),
                (save_style, "(^s) save"),
            ]

        self.container = HSplit([
            Window(FormattedTextControl(get_controls), height=1),
            Window(height=1),
            VSplit([
                Window(width=1, style="class:editor.bar"),
                Window(width=1),
                self.title_area,
            ], height=1),
            Window(
                FormattedTextControl(
                    lambda: [("class:hint", f"  {datetime.now():%Y-%m-%d}")]),
                height=1,
            ),
            Window(height=1),
            ConditionalContainer(
                Window(
                    FormattedTextControl(
                        [("class:editor.placeholder", "  Type your Journal...")]),
                    height=1,
                ),
                filter=Condition(lambda: not self.body_area.text),
            ),
            self.body_area,
        ])

    def load(self, draft: EntryDraft) -> None:
        self.title_area.text = draft.title
        self.body_area.text = draft.content
        self.draft = draft

    def _sync(self, _buf):
        self.draft.title = self.title_area.text
        self.draft.content = self.body_area.text

    def initial_focus(self):
        return self.body_area if self.draft.title else self.title_area

    def __pt_container__(self):
        return self.container


# ════════════════════════════════════════════════════════════════════════
#  Splash Screen
# ════════════════════════════════════════════════════════════════════════


def splash_screen():
    return HSplit([
        Window(),
        Window(
            FormattedTextControl([
                ("class:splash.title", "Journali\n\n"),
                ("class:splash.tagline", "Your thoughts, your story"),
            ]),
            height=3, align=WindowAlign.CENTER,
        ),
        Window(),
    ])


# ════════════════════════════════════════════════════════════════════════
#  Application State
# ════════════════════════════════════════════════════════════════════════


class AppState:
    """UI-only state. Entries and view parameters live in the EntryStore."""

    def __init__(self, store, splash_seconds=DEFAULT_SPLASH_SECONDS):
        self.store = store
        self.splash_seconds = splash_seconds
        self.screen = "splash" if splash_seconds > 0 else "journal"
        self.notification = ""
        self.notification_task = None
        self.quit_pending = 0.0
        self.root_container = None
        self.entry_list = None
        self.entry_search = None
        self.editor = None


# ════════════════════════════════════════════════════════════════════════
#  Application
# ════════════════════════════════════════════════════════════════════════


def create_app(store: EntryStore, splash_seconds=DEFAULT_SPLASH_SECONDS,
               input=None, output=None, state=None) -> Application:
    if state is None:
        state = AppState(store, splash_seconds)

    # ── Journal screen widgets ────────────────────────────────────────

    entry_search = TextArea(
        multiline=False, prompt=" Search: ", height=1,
        style="class:input",
    )
    entry_list = SelectableList()

    def _get_header():
        return [
            ("class:title bold", " Journal"),
            ("class:accent", f"  [{store.filter_mode.label}]"),
            ("class:hint",
             "  (n) new (b) bookmark (d) delete (f) filter (/) search"),
        ]

    def _get_quit_hint():
        now = time.monotonic()
        if state.quit_pending and now - state.quit_pending < 2.0:
            return [("class:accent bold", " (^q) press again to quit ")]
        return [("class:hint", " (^q) quit ")]

    header_window = VSplit([
        Window(content=FormattedTextControl(_get_header), height=1),
        Window(content=FormattedTextControl(_get_quit_hint), height=1,
               align=WindowAlign.RIGHT),
    ])

    empty_view = ConditionalContainer(
        Window(
            FormattedTextControl([
                ("class:empty.title", "Begin Your Journal\n\n"),
                ("class:empty.body",
                 "Craft your personal diary, press n to begin"),
            ]),
            height=4, align=WindowAlign.CENTER,
        ),
        filter=Condition(lambda: len(store) == 0),
    )

    def get_status_text():
        if state.notification:
            return [("class:status", f" {state.notification}")]
        shown = len(store.visible_entries())
        text = f" {shown} of {len(store)} entries"
        if store.search_text:
            text += f"  matching '{store.search_text}'"
        return [("class:status", text)]

    status_bar = Window(
        FormattedTextControl(get_status_text), height=1, style="class:status",
    )

    def refresh_entries():
        entry_list.empty_text = "  No matching entries." if len(store) else ""
        entry_list.set_items(entry_list_items(store))
        get_app().invalidate()

    store.subscribe(refresh_entries)
    entry_search.buffer.on_text_changed += (
        lambda buf: store.set_search_text(buf.text))
    refresh_entries()

    journal_view = HSplit([
        header_window,
        Window(height=1),
        empty_view,
        entry_list,
        entry_search,
        status_bar,
    ])

    # ── Editor screen widgets ────────────────────────────────────────

    editor = EditorSheet()

    def get_editor_status():
        if state.notification:
            return [("class:status", f" {state.notification}")]
        mode = "Editing" if editor.draft.target_id else "New entry"
        words = _word_count(editor.draft.content)
        return [("class:status", f" {mode}  {words} words")]

    editor_screen = HSplit([
        editor,
        Window(FormattedTextControl(get_editor_status), height=1,
               style="class:status"),
    ])

    # ── Screen switcher ──────────────────────────────────────────────

    splash_view = splash_screen()

    def get_current_screen():
        if state.screen == "splash":
            return splash_view
        if state.screen == "editor":
            return editor_screen
        return journal_view

    root = FloatContainer(
        content=DynamicContainer(get_current_screen),
        floats=[],
    )
    state.root_container = root
    state.entry_list = entry_list
    state.entry_search = entry_search
    state.editor = editor

    def show_journal():
        state.screen = "journal"
        get_app().layout.focus(entry_list.window)
        get_app().invalidate()

    def end_splash():
        if state.screen == "splash":
            logger.info("Splash finished, showing journal")
            show_journal()

    def schedule_splash():
        if state.screen == "splash":
            asyncio.get_running_loop().call_later(
                state.splash_seconds, end_splash)

    # ── Journal actions ──────────────────────────────────────────────

    def open_editor(draft):
        editor.load(draft)
        state.screen = "editor"
        get_app().layout.focus(editor.initial_focus())
        get_app().invalidate()

    def new_entry():
        open_editor(EntryDraft.new())

    def edit_entry(entry_id):
        entry = store.get(entry_id)
        if entry is not None:
            open_editor(EntryDraft.for_entry(entry))

    entry_list.on_select = edit_entry

    def toggle_selected_bookmark():
        entry_id = entry_list.selected_id()
        if entry_id is not None:
            store.toggle_bookmark(entry_id)

    def delete_selected():
        entry = store.request_delete(entry_list.selected_id())
        if entry is None:
            return

        async def _do():
            dlg = ConfirmDialog(
                f"Are you sure you want to delete “{entry.title}”?",
                title="Delete Journal?")
            ok = await show_dialog_as_float(state, dlg)
            if ok:
                store.confirm_delete()
                show_notification(state, "Entry deleted.")
            else:
                store.cancel_delete()

        asyncio.ensure_future(_do())

    def pick_filter():
        async def _do():
            dlg = FilterPickerDialog(store.filter_mode)
            mode = await show_dialog_as_float(state, dlg)
            if mode is not None:
                store.set_filter(mode)

        asyncio.ensure_future(_do())

    def clear_search():
        entry_search.text = ""

    # ── Editor actions ───────────────────────────────────────────────

    def close_editor():
        show_journal()

    def do_save():
        if editor.draft.is_empty:
            logger.debug("Save refused: draft is empty")
            show_notification(state, "Nothing to save.")
            return
        entry = editor.draft.save(store)
        close_editor()
        entry_list.select_id(entry.id)
        show_notification(state, "Saved.")

    def do_cancel():
        if not editor.draft.is_dirty:
            close_editor()
            return

        async def _do():
            dlg = ConfirmDialog("Discard unsaved changes?", title="Discard")
            ok = await show_dialog_as_float(state, dlg)
            if ok:
                close_editor()

        asyncio.ensure_future(_do())

    # ── Key bindings ─────────────────────────────────────────────────

    kb = KeyBindings()

    is_splash = Condition(lambda: state.screen == "splash")
    is_journal = Condition(lambda: state.screen == "journal")
    is_editor = Condition(lambda: state.screen == "editor")
    no_float = Condition(lambda: len(state.root_container.floats) == 0)
    search_focused = Condition(
        lambda: get_app().layout.current_window == entry_search.window)
    entry_list_focused = is_journal & no_float & ~search_focused

    # -- Global --
    @kb.add("<any>", filter=is_splash)
    def _(event):
        end_splash()

    @kb.add("escape", eager=True)
    def _(event):
        if state.root_container.floats:
            dialog = state.root_container.floats[-1].content
            if hasattr(dialog, "cancel"):
                dialog.cancel()
        elif state.screen == "splash":
            end_splash()
        elif state.screen == "editor":
            do_cancel()
        elif state.screen == "journal":
            if search_focused():
                event.app.layout.focus(entry_list.window)
            else:
                event.app.layout.focus(entry_search.window)

    @kb.add("c-q", filter=~is_splash)
    def _(event):
        if state.root_container.floats:
            return
        now = time.monotonic()
        if now - state.quit_pending < 2.0:
            event.app.exit()
        else:
            state.quit_pending = now
            show_notification(state, "Press Ctrl+Q again to quit.", duration=2.0)

    # -- Journal screen --
    @kb.add("n", filter=entry_list_focused)
    def _(event):
        new_entry()

    @kb.add("b", filter=entry_list_focused)
    def _(event):
        toggle_selected_bookmark()

    @kb.add("d", filter=entry_list_focused)
    def _(event):
        delete_selected()

    @kb.add("f", filter=entry_list_focused)
    def _(event):
        pick_filter()

    @kb.add("/", filter=entry_list_focused)
    def _(event):
        event.app.layout.focus(entry_search.window)

    @kb.add("down", filter=is_journal & no_float & search_focused)
    def _(event):
        event.app.layout.focus(entry_list.window)

    @kb.add("enter", filter=is_journal & no_float & search_focused)
    def _(event):
        visible = store.visible_entries()
        if visible:
            edit_entry(visible[0].id)

    # -- Editor screen --
    @kb.add("c-s", filter=is_editor & no_float)
    def _(event):
        do_save()

    @kb.add("c-p", filter=~is_splash & no_float)
    def _(event):
        async def _do():
            if state.screen == "editor":
                cmds = [
                    ("Save", "^S", do_save),
                    ("Cancel", "Esc", do_cancel),
                ]
            else:
                cmds = [
                    ("New entry", "n", new_entry),
                    ("Show all entries", "filter",
                     lambda: store.set_filter(FilterMode.ALL)),
                    ("Show bookmarked", "filter",
                     lambda: store.set_filter(FilterMode.BOOKMARKED)),
                    ("Show newest first", "filter",
                     lambda: store.set_filter(FilterMode.NEWEST)),
                    ("Clear search", "/", clear_search),
                    ("Quit", "^Q", lambda: get_app().exit()),
                ]
            dlg = CommandPaletteDialog(cmds)
            action = await show_dialog_as_float(state, dlg)
            if callable(action):
                action()

        asyncio.ensure_future(_do())

    # ── Build Application ────────────────────────────────────────────

    if state.screen == "splash":
        layout = Layout(root)
    else:
        layout = Layout(root, focused_element=entry_list.window)

    app = Application(
        layout=layout,
        key_bindings=kb,
        style=THEME,
        full_screen=True,
        mouse_support=False,
        input=input,
        output=output,
    )
    app.pre_run_callables.append(schedule_splash)
    app.ttimeoutlen = 0.05

    return app


# ════════════════════════════════════════════════════════════════════════
#  Entry point
# ════════════════════════════════════════════════════════════════════════


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    logger.info("Starting Journali")

    app = create_app(EntryStore(), splash_seconds=settings.splash_seconds)
    app.run()


if __name__ == "__main__":
    main()
