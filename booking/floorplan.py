"""
booking/floorplan.py
=====================================================================================
The floor plan surface of one editing session.

:class:`FloorPlanSurface` holds the displayed placement of every table of a
hall, one :class:`~booking.interaction.PointerInteractionController` per
table, the edit-mode flag and the positional editor panel. Gesture outcomes
are shown optimistically and committed through an async table gateway; the
server response (or a rollback to the last confirmed value) settles the
displayed state.

Everything the surface wants the client to know is emitted as
``await notify(event, data)``.
=====================================================================================
"""

import asyncio
import copy
import logging
from dataclasses import asdict, dataclass, fields

from .exceptions import GatewayError, TableNotFound
from .interaction import DEFAULT_DOUBLE_ACTIVATION_WINDOW, MoveOutcome, PointerInteractionController
from .models import MAX_CAPACITY, MIN_CAPACITY, MIN_TABLE_SIZE

logger = logging.getLogger(__name__)


@dataclass
class TablePlacement:
    """Displayed positional record of one table."""
    id: int
    number: int
    hall: str
    x: int
    y: int
    width: int
    height: int
    capacity: int
    shape: str = "round"
    status: str = "available"
    name: str = ""

    @classmethod
    def from_record(cls, record):
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in record.items() if key in known})

    def as_dict(self):
        return asdict(self)

    def __str__(self):
        return f"table {self.number}"


# ==============================================================================
# Positional editor panel
# ==============================================================================
class PositionEditor:
    """Side panel editing the position and capacity of one table by hand."""

    MOVE_STEP = 10  # pixels per nudge

    def __init__(self, table):
        self.table = table
        self.x = table.x
        self.y = table.y
        self.capacity = table.capacity

    def nudge(self, direction):
        if direction == "up":
            self.y = max(0, self.y - self.MOVE_STEP)
        elif direction == "down":
            self.y += self.MOVE_STEP
        elif direction == "left":
            self.x = max(0, self.x - self.MOVE_STEP)
        elif direction == "right":
            self.x += self.MOVE_STEP
        else:
            raise ValueError(f"Unknown direction: {direction!r}")

    def change_capacity(self, delta):
        self.capacity = max(MIN_CAPACITY, min(MAX_CAPACITY, self.capacity + int(delta)))

    def set_position(self, x=None, y=None):
        """Manual input; anything that is not a number reads as 0."""
        if x is not None:
            self.x = _to_int(x)
        if y is not None:
            self.y = _to_int(y)

    @property
    def has_changes(self):
        return (self.x, self.y, self.capacity) != (self.table.x, self.table.y, self.table.capacity)

    def changes(self):
        return {"x": max(0, self.x), "y": max(0, self.y), "capacity": self.capacity}

    def as_dict(self):
        return {
            "table_id": self.table.id,
            "x": self.x,
            "y": self.y,
            "capacity": self.capacity,
            "has_changes": self.has_changes,
        }


def _to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


async def _discard(event, data):
    return None


# ==============================================================================
# Floor plan surface
# ==============================================================================
class FloorPlanSurface:
    """
    Tables of one hall plus the editing state of a single user session.

    ``gateway`` must provide ``list_tables(hall)``, ``update_table(id, fields)``
    and ``table_detail(id)`` coroutines returning plain dict records.
    """

    def __init__(
        self,
        gateway,
        hall=None,
        notify=None,
        *,
        can_edit=True,
        double_activation_window=DEFAULT_DOUBLE_ACTIVATION_WINDOW,
        clock=None,
    ):
        self.gateway = gateway
        self.hall = hall
        self.notify = notify or _discard
        self.can_edit = can_edit
        self.double_activation_window = double_activation_window
        self.clock = clock

        self.tables = {}        # id -> TablePlacement currently displayed
        self.confirmed = {}     # id -> TablePlacement last confirmed by the server
        self.controllers = {}   # id -> PointerInteractionController
        self.edit_mode = False
        self.selected_id = None
        self.editor = None

        self._captures = {}     # pointer id -> table id
        self._sequence = {}     # table id -> number of the newest commit
        self._confirmed_sequence = {}  # table id -> newest commit the server acknowledged
        self._failed = {}       # table id -> newest commit, if it failed
        self._pending = set()
        self._outbox = []

    # --------------------------------------------------------------------------
    # Loading
    # --------------------------------------------------------------------------
    async def load(self):
        records = await self.gateway.list_tables(self.hall)
        seen = set()
        for record in records:
            self._store(record)
            seen.add(record["id"])

        for table_id in list(self.tables):
            if table_id not in seen:
                self._forget(table_id)

        self._queue("snapshot", self.snapshot())
        await self._flush()
        return list(self.tables.values())

    def snapshot(self):
        return {
            "hall": self.hall,
            "edit_mode": self.edit_mode,
            "selected_id": self.selected_id,
            "tables": [table.as_dict() for table in self.tables.values()],
        }

    def _store(self, record):
        placement = TablePlacement.from_record(record)
        self.confirmed[placement.id] = placement
        controller = self.controllers.get(placement.id)
        if controller is not None and controller.is_active:
            return  # keep showing the gesture; the next commit settles it

        displayed = self.tables.get(placement.id)
        if displayed is None:
            displayed = copy.copy(placement)
            self.tables[placement.id] = displayed
            self.controllers[placement.id] = self._make_controller(displayed)
        else:
            for field in fields(TablePlacement):
                setattr(displayed, field.name, getattr(placement, field.name))

    def _forget(self, table_id):
        self.tables.pop(table_id, None)
        self.confirmed.pop(table_id, None)
        controller = self.controllers.pop(table_id, None)
        if controller is not None:
            controller.unmount()
        self._captures = {p: t for p, t in self._captures.items() if t != table_id}
        if self.selected_id == table_id:
            self.selected_id = None
        if self.editor is not None and self.editor.table.id == table_id:
            self.editor = None

    def _make_controller(self, table):
        options = {"double_activation_window": self.double_activation_window}
        if self.clock is not None:
            options["clock"] = self.clock
        return PointerInteractionController(
            table,
            on_select=self.select_table,
            on_detail=self.request_detail,
            on_move=self._show_move,
            on_resize=self._show_resize,
            on_release=self._commit_outcome,
            on_abort=self._restore,
            **options,
        )

    # --------------------------------------------------------------------------
    # Pointer routing
    # --------------------------------------------------------------------------
    def is_selected(self, table_id):
        if table_id == self.selected_id:
            return True
        return self.editor is not None and self.editor.table.id == table_id

    async def pointer_down(self, table_id, pointer_id, x, y, handle=None):
        controller = self._controller(table_id)
        captured = controller.pointer_down(
            pointer_id, x, y,
            edit_mode=self.edit_mode,
            selected=self.is_selected(table_id),
            handle=handle,
        )
        if captured:
            self._captures[pointer_id] = table_id
        await self._flush()
        return captured

    async def pointer_move(self, pointer_id, x, y):
        controller = self._captured(pointer_id)
        outcome = controller.pointer_move(pointer_id, x, y) if controller else None
        await self._flush()
        return outcome

    async def pointer_up(self, pointer_id):
        controller = self._captured(pointer_id)
        self._captures.pop(pointer_id, None)
        outcome = controller.pointer_up(pointer_id) if controller else None
        await self._flush()
        return outcome

    async def pointer_cancel(self, pointer_id):
        controller = self._captured(pointer_id)
        self._captures.pop(pointer_id, None)
        if controller is not None:
            controller.pointer_cancel(pointer_id)
        await self._flush()

    def _controller(self, table_id):
        try:
            return self.controllers[table_id]
        except KeyError:
            raise TableNotFound(f"Table {table_id} is not on this floor plan")

    def _captured(self, pointer_id):
        table_id = self._captures.get(pointer_id)
        return self.controllers.get(table_id) if table_id is not None else None

    # --------------------------------------------------------------------------
    # Edit mode & selection
    # --------------------------------------------------------------------------
    async def set_edit_mode(self, enabled):
        enabled = bool(enabled)
        if enabled and not self.can_edit:
            self._queue("error", {"message": "You are not allowed to edit the floor plan"})
            await self._flush()
            return False

        for controller in self.controllers.values():
            controller.abort()
        self._captures.clear()
        self.close_editor()

        self.edit_mode = enabled
        self._queue("edit_mode", {"edit_mode": self.edit_mode})
        await self._flush()
        return True

    async def toggle_edit_mode(self):
        return await self.set_edit_mode(not self.edit_mode)

    def select_table(self, table):
        if self.edit_mode:
            self.open_editor(table)
            return
        self.selected_id = table.id
        self._queue("table_selected", table.as_dict())

    def request_detail(self, table):
        if self.edit_mode:
            return None
        return self._spawn(self._load_detail(table.id))

    async def _load_detail(self, table_id):
        try:
            detail = await self.gateway.table_detail(table_id)
        except GatewayError as exc:
            logger.warning(f"Detail for table {table_id} unavailable: {exc}")
            self._queue("error", {"table_id": table_id, "message": exc.message})
        else:
            self._queue("table_detail", detail)
        await self._flush()

    # --------------------------------------------------------------------------
    # Editor panel
    # --------------------------------------------------------------------------
    def open_editor(self, table):
        self.editor = PositionEditor(table)
        self._queue("editor_opened", self.editor.as_dict())

    def close_editor(self):
        if self.editor is None:
            return
        table_id = self.editor.table.id
        self.editor = None
        self._queue("editor_closed", {"table_id": table_id})

    async def edit(self, operation, *args, **kwargs):
        """Apply ``nudge`` / ``change_capacity`` / ``set_position`` to the open editor."""
        if self.editor is None:
            self._queue("error", {"message": "No table is being edited"})
        else:
            getattr(self.editor, operation)(*args, **kwargs)
            self._queue("editor_changed", self.editor.as_dict())
        await self._flush()

    async def cancel_editor(self):
        self.close_editor()
        await self._flush()

    async def save_editor(self):
        """Commit the editor values; the panel closes only once they are stored."""
        editor = self.editor
        if editor is None:
            return None
        if not editor.has_changes:
            self.close_editor()
            await self._flush()
            return None
        table = editor.table
        record = await self._commit(table.id, editor.changes(), "Unable to update table")
        if record is not None and self.editor is editor:
            self.close_editor()
            await self._flush()
        return record

    # --------------------------------------------------------------------------
    # Commits
    # --------------------------------------------------------------------------
    def commit_move(self, table, x, y):
        changes = {"x": max(0, int(x)), "y": max(0, int(y))}
        return self._spawn(self._commit(table.id, changes, "Unable to move table"))

    def commit_resize(self, table, width, height):
        changes = {
            "width": max(MIN_TABLE_SIZE, int(width)),
            "height": max(MIN_TABLE_SIZE, int(height)),
        }
        return self._spawn(self._commit(table.id, changes, "Unable to resize table"))

    def _commit_outcome(self, table, outcome):
        if isinstance(outcome, MoveOutcome):
            self.commit_move(table, outcome.x, outcome.y)
        else:
            self.commit_resize(table, outcome.width, outcome.height)

    async def _commit(self, table_id, changes, failure_message):
        sequence = self._sequence.get(table_id, 0) + 1
        self._sequence[table_id] = sequence

        try:
            record = await self.gateway.update_table(table_id, changes)
        except GatewayError as exc:
            logger.warning(f"Commit {changes} for table {table_id} failed: {exc}")
            if self._sequence.get(table_id) == sequence:
                self._failed[table_id] = sequence
                self._restore_by_id(table_id)
            self._queue("error", {"table_id": table_id, "message": failure_message, "detail": exc.message})
            await self._flush()
            return None

        if self._sequence.get(table_id) != sequence:
            # Not shown, but the server holds it until a newer commit succeeds.
            if sequence > self._confirmed_sequence.get(table_id, 0):
                self._confirmed_sequence[table_id] = sequence
                self.confirmed[table_id] = TablePlacement.from_record(record)
                controller = self.controllers.get(table_id)
                gesture_active = controller is not None and controller.is_active
                if self._failed.get(table_id) == self._sequence.get(table_id) and not gesture_active:
                    self._restore_by_id(table_id)
                    await self._flush()
            logger.debug(f"Stale response #{sequence} for table {table_id} not displayed")
            return record

        self._confirmed_sequence[table_id] = sequence
        self._store(record)
        self._queue("table_committed", record)
        await self._flush()
        return record

    async def drain(self):
        """Wait for every commit and detail request in flight."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _spawn(self, coroutine):
        task = asyncio.ensure_future(coroutine)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    # --------------------------------------------------------------------------
    # Remote updates (other sessions, REST clients)
    # --------------------------------------------------------------------------
    async def apply_remote(self, record):
        if self.hall and record.get("hall") != self.hall:
            if record.get("id") in self.tables:
                self._forget(record["id"])
                await self._flush()
            return False
        self._store(record)
        return True

    # --------------------------------------------------------------------------
    # Optimistic display
    # --------------------------------------------------------------------------
    def _show_move(self, table, x, y):
        table.x, table.y = x, y
        self._queue("table_moved", {"id": table.id, "x": x, "y": y})

    def _show_resize(self, table, width, height):
        table.width, table.height = width, height
        self._queue("table_resized", {"id": table.id, "width": width, "height": height})

    def _restore(self, table):
        self._restore_by_id(table.id)

    def _restore_by_id(self, table_id):
        confirmed = self.confirmed.get(table_id)
        displayed = self.tables.get(table_id)
        if confirmed is None or displayed is None:
            return
        displayed.x, displayed.y = confirmed.x, confirmed.y
        displayed.width, displayed.height = confirmed.width, confirmed.height
        displayed.capacity = confirmed.capacity
        self._queue("table_restored", displayed.as_dict())

    # --------------------------------------------------------------------------
    # Notifications
    # --------------------------------------------------------------------------
    def _queue(self, event, data):
        self._outbox.append((event, data))

    async def _flush(self):
        while self._outbox:
            event, data = self._outbox.pop(0)
            await self.notify(event, data)
