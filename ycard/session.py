"""Editing session: the state machine behind the editor toolbar.

A session lives for one open-editor lifecycle. It owns the activity log and
the baseline snapshot; the storage backend it saves through outlives it.

  IDLE --mount--> READY <--> EDITING --close--> CLOSED

Every action (validate, save, diff, undo, redo, toggle_log_panel) runs to
completion, appends exactly one activity-log entry and returns one
ActionOutcome. The host shell shows ``outcome.notice`` in its
acknowledgment dialog and hands Changes payloads to its diff view; the
session itself never touches UI.

Usage:
    session = EditorSession(backend=JsonFileBackend("ycard_store.json"))
    session.mount(TextBuffer(DEFAULT_YCARD))
    outcome = session.save()
    print(outcome.notice.title, outcome.notice.body)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ycard.activity_log import ActivityLog
from ycard.persist_ycard import (
    STORAGE_KEY,
    MemoryBackend,
    PersistenceStore,
    Saved,
    SaveFailed,
    SaveRejected,
    describe_save,
)
from ycard.snapshot_diff import Changes, SnapshotTracker
from ycard.validate_ycard import (
    DOCUMENT_LEVEL_KINDS,
    Invalid,
    ParseFailure,
    Valid,
    describe_validation,
    validate_text,
)

DEFAULT_YCARD = """\
# Example yCard
people:
  - uid: user-001
    name: Alice
    surname: Smith
    username: Asmith
    title: Engineer
    org: ExampleCorp
    email: alice.smith@example.com
    phone:
      - number: "+1-555-1234"
        type: work
    address:
      street: "123 Main St"
      city: "Metropolis"
      state: "CA"
      postal_code: "90210"
      country: "USA"
  - uid: user-002
    name: Bob
    surname: Johnson
    username: Bjohnson
    title: Manager
    org: ExampleCorp
    email: bob.johnson@example.com
    phone:
      - number: "+1-555-1234"
        type: work
    address:
      street: "123 Main St"
      city: "Metropolis"
      state: "CA"
      postal_code: "90210"
      country: "USA"
"""

EDITOR_COMMANDS = ("undo", "redo")


class SessionState(str, Enum):
    IDLE = "idle"
    READY = "ready"
    EDITING = "editing"
    CLOSED = "closed"


@dataclass(frozen=True)
class Notice:
    """Content for the host's single-button acknowledgment dialog."""

    title: str
    body: str


@dataclass(frozen=True)
class EditorNotReady:
    action: str

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class ActionOutcome:
    action: str
    category: str
    message: str
    notice: Notice | None = None
    payload: Any = None

    @property
    def ok(self) -> bool:
        return self.category != "error"


# ─── Editing surface ────────────────────────────────────────────────────────

class TextBuffer:
    """Minimal editing surface: current text plus undo/redo history.

    Stands in for the real editor widget in the CLI host and in tests. Any
    object with get_value() and trigger(command) can be mounted instead.
    """

    def __init__(self, text: str = ""):
        self._value = text
        self._undo: list[str] = []
        self._redo: list[str] = []

    def get_value(self) -> str:
        return self._value

    def set_value(self, text: str) -> None:
        if text == self._value:
            return
        self._undo.append(self._value)
        self._redo.clear()
        self._value = text

    def trigger(self, command: str) -> None:
        if command not in EDITOR_COMMANDS:
            raise ValueError(f"Unknown editor command '{command}'")
        src, dst = (self._undo, self._redo) if command == "undo" else (self._redo, self._undo)
        if src:
            dst.append(self._value)
            self._value = src.pop()


# ─── Notices ────────────────────────────────────────────────────────────────

def validation_notice(result: Valid | Invalid | ParseFailure) -> Notice:
    if isinstance(result, Valid):
        return Notice("Valid YAML", f"{result.count} people found")
    if isinstance(result, ParseFailure):
        return Notice("Invalid YAML", result.message)
    if result.kind in DOCUMENT_LEVEL_KINDS:
        return Notice("Invalid YAML", result.detail)
    return Notice("Validation Failed", result.detail)


def save_notice(result) -> Notice:
    if isinstance(result, Saved):
        return Notice("Saved Successfully!", f"{result.count} people saved to {result.location}")
    if isinstance(result, SaveRejected):
        return Notice("Cannot Save", result.violation.detail)
    if isinstance(result, SaveFailed):
        return Notice("Cannot Save", result.reason)
    return Notice("Cannot Save - Invalid YAML", result.message)


# ─── Session ────────────────────────────────────────────────────────────────

class EditorSession:
    def __init__(self, backend=None, key: str = STORAGE_KEY, clock=None):
        self.log = ActivityLog(clock=clock)
        self.snapshot = SnapshotTracker()
        self.store = PersistenceStore(backend if backend is not None else MemoryBackend(), key=key)
        self.editor = None
        self.state = SessionState.IDLE
        self.log_panel_open = False

    @property
    def ready(self) -> bool:
        return self.state in (SessionState.READY, SessionState.EDITING)

    def mount(self, editor) -> ActionOutcome:
        """The editor reported ready: keep its handle and capture the baseline."""
        if self.state is SessionState.CLOSED:
            return self._not_ready("mount")
        if self.ready:
            return self._finish("mount", "warning", "Editor already initialized")
        self.editor = editor
        self.snapshot.capture(editor.get_value())
        self.state = SessionState.READY
        return self._finish("mount", "success", "Editor initialized successfully")

    def close(self) -> None:
        self.editor = None
        self.log_panel_open = False
        self.state = SessionState.CLOSED

    def validate(self) -> ActionOutcome:
        if not self.ready:
            return self._not_ready("validate")
        result = validate_text(self._current_text())
        category, message = describe_validation(result)
        return self._finish("validate", category, message, validation_notice(result), result)

    def save(self) -> ActionOutcome:
        if not self.ready:
            return self._not_ready("save")
        result = self.store.save_text(self._current_text())
        category, message = describe_save(result)
        return self._finish("save", category, message, save_notice(result), result)

    def diff(self) -> ActionOutcome:
        if not self.ready:
            return self._not_ready("diff")
        result = self.snapshot.request_diff(self._current_text())
        if isinstance(result, Changes):
            message = f"Diff opened ({result.changed_line_count()} lines changed)"
        else:
            message = "No changes to compare"
        return self._finish("diff", "info", message, payload=result)

    def undo(self) -> ActionOutcome:
        return self._editor_command("undo", "Undo performed")

    def redo(self) -> ActionOutcome:
        return self._editor_command("redo", "Redo performed")

    def toggle_log_panel(self) -> ActionOutcome:
        if not self.ready:
            return self._not_ready("toggle_log_panel")
        self.log_panel_open = not self.log_panel_open
        if not self.log_panel_open:
            return self._finish("toggle_log_panel", "info", "Logs panel closed")
        self.log.append("info", "Logs panel opened")
        return ActionOutcome("toggle_log_panel", "info", "Logs panel opened", payload=self.log.entries())

    # ─── internals ─────────────────────────────────────────────────────────

    def _editor_command(self, command: str, message: str) -> ActionOutcome:
        if not self.ready:
            return self._not_ready(command)
        self.editor.trigger(command)
        self._refresh_state(self.editor.get_value())
        return self._finish(command, "info", message)

    def _current_text(self) -> str:
        text = self.editor.get_value()
        self._refresh_state(text)
        return text

    def _refresh_state(self, text: str) -> None:
        if text == self.snapshot.baseline:
            self.state = SessionState.READY
        else:
            self.state = SessionState.EDITING

    def _not_ready(self, action: str) -> ActionOutcome:
        notice = Notice("Editor not ready", f"Cannot {action.replace('_', ' ')} until the editor is open")
        return self._finish(action, "error", "Editor not ready", notice, EditorNotReady(action))

    def _finish(self, action, category, message, notice=None, payload=None) -> ActionOutcome:
        self.log.append(category, message)
        return ActionOutcome(action, category, message, notice, payload)
