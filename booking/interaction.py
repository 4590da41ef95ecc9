"""
booking/interaction.py
=====================================================================================
Pointer gesture handling for a single table element of the floor plan.

A :class:`PointerInteractionController` turns raw pointer-down / move / up
events into one of four outcomes reported through callbacks:

* **select**  – plain activation of the table (outside edit mode, or a click
  without movement in edit mode)
* **detail**  – second activation within the double-activation window,
  outside edit mode only
* **move**    – new clamped ``(x, y)`` while dragging the table body
* **resize**  – new clamped ``(width, height)`` while dragging a handle

Each controller owns its own gesture state, so gestures on different tables
never interfere with each other.
=====================================================================================
"""

import enum
import logging
import time
from dataclasses import dataclass

from .models import MIN_TABLE_SIZE

logger = logging.getLogger(__name__)

DEFAULT_DOUBLE_ACTIVATION_WINDOW = 0.5  # seconds


class GestureState(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class Handle(str, enum.Enum):
    SOUTHEAST = "se"
    EAST = "e"
    SOUTH = "s"

    @classmethod
    def parse(cls, value):
        """Accept both the short (``se``) and the long (``southeast``) spelling."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for handle in cls:
            if key in (handle.value, handle.name.lower()):
                return handle
        raise ValueError(f"Unknown resize handle: {value!r}")


@dataclass(frozen=True)
class GestureSnapshot:
    """Pointer origin and table geometry captured at pointer-down."""
    pointer_x: int
    pointer_y: int
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class MoveOutcome:
    x: int
    y: int

    def as_fields(self):
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class ResizeOutcome:
    width: int
    height: int

    def as_fields(self):
        return {"width": self.width, "height": self.height}


def clamp_move(snapshot, delta_x, delta_y):
    return MoveOutcome(
        x=max(0, snapshot.x + delta_x),
        y=max(0, snapshot.y + delta_y),
    )


def clamp_resize(snapshot, handle, delta_x, delta_y):
    width, height = snapshot.width, snapshot.height
    if handle in (Handle.SOUTHEAST, Handle.EAST):
        width = max(MIN_TABLE_SIZE, snapshot.width + delta_x)
    if handle in (Handle.SOUTHEAST, Handle.SOUTH):
        height = max(MIN_TABLE_SIZE, snapshot.height + delta_y)
    return ResizeOutcome(width=width, height=height)


def _noop(*args, **kwargs):
    return None


class PointerInteractionController:
    """
    Gesture state machine for one table element.

    ``table`` is any object exposing ``x``, ``y``, ``width`` and ``height``;
    it is read at pointer-down and passed back unchanged to every callback.
    The controller never writes to it and never talks to persistence.
    """

    def __init__(
        self,
        table,
        *,
        on_select=None,
        on_detail=None,
        on_move=None,
        on_resize=None,
        on_release=None,
        on_abort=None,
        double_activation_window=DEFAULT_DOUBLE_ACTIVATION_WINDOW,
        clock=time.monotonic,
    ):
        self.table = table
        self.on_select = on_select or _noop
        self.on_detail = on_detail or _noop
        self.on_move = on_move or _noop
        self.on_resize = on_resize or _noop
        self.on_release = on_release or _noop
        self.on_abort = on_abort or _noop
        self.double_activation_window = double_activation_window
        self.clock = clock

        self.state = GestureState.IDLE
        self.handle = None
        self.mounted = True
        self._pointer_id = None
        self._snapshot = None
        self._last_outcome = None
        self._last_activation = None

    # --------------------------------------------------------------------------
    # Introspection
    # --------------------------------------------------------------------------
    @property
    def is_active(self):
        return self.state is not GestureState.IDLE

    @property
    def pointer_id(self):
        return self._pointer_id

    @property
    def last_outcome(self):
        return self._last_outcome

    # --------------------------------------------------------------------------
    # Pointer events
    # --------------------------------------------------------------------------
    def pointer_down(self, pointer_id, x, y, *, edit_mode, selected=False, handle=None):
        """
        Start a gesture. Returns True when the pointer was captured.

        Outside edit mode nothing is captured: the press is reported as a
        select, or as a detail request when it closely follows another one.
        """
        if not self.mounted:
            return False
        if self.is_active:
            logger.debug(f"Ignoring pointer {pointer_id}: gesture already active on {self.table}")
            return False

        if not edit_mode:
            self._activate()
            return False

        # Handles are only rendered on the selected table.
        resize_handle = Handle.parse(handle) if (handle and selected) else None

        self._pointer_id = pointer_id
        self._snapshot = GestureSnapshot(
            pointer_x=int(x),
            pointer_y=int(y),
            x=self.table.x,
            y=self.table.y,
            width=self.table.width,
            height=self.table.height,
        )
        self._last_outcome = None
        if resize_handle is None:
            self.state = GestureState.DRAGGING
        else:
            self.state = GestureState.RESIZING
            self.handle = resize_handle
        return True

    def pointer_move(self, pointer_id, x, y):
        """Report the clamped outcome for the current pointer position."""
        if not self.is_active or pointer_id != self._pointer_id:
            return None

        delta_x = int(x) - self._snapshot.pointer_x
        delta_y = int(y) - self._snapshot.pointer_y

        if self.state is GestureState.DRAGGING:
            outcome = clamp_move(self._snapshot, delta_x, delta_y)
            self._last_outcome = outcome
            self.on_move(self.table, outcome.x, outcome.y)
        else:
            outcome = clamp_resize(self._snapshot, self.handle, delta_x, delta_y)
            self._last_outcome = outcome
            self.on_resize(self.table, outcome.width, outcome.height)
        return outcome

    def pointer_up(self, pointer_id):
        """
        Finish the gesture and return the committed outcome, if any.

        The last reported move/resize is the final value. A drag that never
        moved is a click and is reported as a select.
        """
        if not self.is_active or pointer_id != self._pointer_id:
            return None

        was_dragging = self.state is GestureState.DRAGGING
        outcome = self._last_outcome
        self._release()

        if outcome is not None:
            self.on_release(self.table, outcome)
        elif was_dragging:
            self.on_select(self.table)
        return outcome

    def pointer_cancel(self, pointer_id):
        """Pointer capture was lost: abort without committing anything."""
        if not self.is_active or pointer_id != self._pointer_id:
            return False
        self._abort()
        return True

    def unmount(self):
        """The table element went away; any gesture in progress is dropped."""
        self.mounted = False
        if self.is_active:
            self._abort()

    def abort(self):
        if self.is_active:
            self._abort()

    # --------------------------------------------------------------------------
    # Helpers
    # --------------------------------------------------------------------------
    def _activate(self):
        now = self.clock()
        last = self._last_activation
        if last is not None and now - last <= self.double_activation_window:
            self._last_activation = None
            self.on_detail(self.table)
        else:
            self._last_activation = now
            self.on_select(self.table)

    def _abort(self):
        moved = self._last_outcome is not None
        self._release()
        logger.debug(f"Gesture aborted on {self.table}")
        if moved:
            self.on_abort(self.table)

    def _release(self):
        self.state = GestureState.IDLE
        self.handle = None
        self._pointer_id = None
        self._snapshot = None
        self._last_outcome = None
