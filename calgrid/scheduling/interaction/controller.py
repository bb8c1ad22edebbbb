"""
Drag / resize / create interaction controller for one calendar view.

Converts pointer events over time-grid slots into interaction states,
frame-throttled preview geometry, and finally a mutation intent that is
handed to the external store without waiting for it.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from calgrid.config import PIXELS_PER_HOUR
from calgrid.schemas import (
    CalendarInfo, CalendarTarget, CreateDrag, CreateIntent, PreviewRect,
)
from ..algorithms.intents import build_create_intent, build_drop_intent, creation_span
from ..core.constants import DEFAULT_DURATION, SLOT_GRANULARITY
from ..utils.slot_utils import (
    decode_slot_id, duration_to_pixel_height, is_same_day, minutes_from_midnight, shift_minutes,
    time_to_pixel_offset, to_timezone,
)
from .states import Creating, Dragging, Hovering, Idle, InteractionState, PendingConfirmation

logger = logging.getLogger(__name__)


def resolve_default_calendar(visible: List[CalendarTarget],
                             calendars: List[CalendarInfo]) -> Optional[CalendarTarget]:
    """
    Pick the calendar new events are created on: the primary calendar if it
    is visible, else the first visible calendar, else None.
    """
    if not visible:
        return None
    visible_keys = {(target.account_id, target.calendar_id) for target in visible}
    for calendar in calendars:
        if calendar.primary and calendar.writable and (calendar.account_id, calendar.calendar_id) in visible_keys:
            return CalendarTarget(account_id=calendar.account_id, calendar_id=calendar.calendar_id)
    return visible[0]


class PreviewThrottle:
    """
    Coalesces preview recomputation to at most once per animation frame.

    Only the latest pending computation is kept (last write wins). The host
    either passes request_frame (called with flush once per frame that has
    pending work) or calls flush itself from its frame callback.

    computations counts the previews actually computed, so a host can check
    how much the throttle coalesced.
    """
    def __init__(self, request_frame: Callable[[Callable[[], Optional[PreviewRect]]], None] = None):
        self._request_frame = request_frame
        self._pending = None
        self._frame_requested = False
        self.current: Optional[PreviewRect] = None
        self.computations = 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, compute: Callable[[], Optional[PreviewRect]]):
        self._pending = compute
        if self._request_frame is not None and not self._frame_requested:
            self._frame_requested = True
            self._request_frame(self.flush)

    def flush(self) -> Optional[PreviewRect]:
        self._frame_requested = False
        pending, self._pending = self._pending, None
        if pending is not None:
            self.current = pending()
            self.computations += 1
        return self.current

    def discard(self):
        self._pending = None
        self.current = None


class InteractionController:
    """
    Owns the interaction state of a single calendar view.

    The controller is the only writer of its state. Every transition happens
    on the caller's thread in event order; cancel() is accepted from any
    state and always returns to Idle.
    """
    def __init__(self, default_calendar: CalendarTarget = None,
                 on_intent: Callable[[object], None] = None,
                 request_frame: Callable = None,
                 pixels_per_hour: int = PIXELS_PER_HOUR):
        self.default_calendar = default_calendar
        self.on_intent = on_intent
        self.pixels_per_hour = pixels_per_hour
        self.throttle = PreviewThrottle(request_frame)
        self._state: InteractionState = Idle()

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def preview(self) -> Optional[PreviewRect]:
        return self.throttle.current

    def _transition(self, new_state: InteractionState):
        logger.debug(f"Interaction {self._state!r} -> {new_state!r}")
        self._state = new_state

    def _reset(self):
        self.throttle.discard()
        self._transition(Idle())

# ================================
# PREVIEW GEOMETRY
# ================================

    def _rect(self, start: datetime, end: datetime) -> PreviewRect:
        duration = (end - start).total_seconds() / 60
        return PreviewRect(
            top=time_to_pixel_offset(minutes_from_midnight(start), self.pixels_per_hour),
            left=0.0,
            width=100.0,
            height=duration_to_pixel_height(duration, self.pixels_per_hour),
        )

    def _schedule_span_preview(self, start: datetime, end: datetime):
        self.throttle.schedule(lambda: self._rect(start, end))

    def _schedule_drag_preview(self, data, target: datetime):
        def compute():
            intent = build_drop_intent(data, target)
            if intent is None:
                return None
            if isinstance(intent, CreateIntent):
                return self._rect(intent.start, intent.end)
            return self._rect(intent.new_start, intent.new_end)
        self.throttle.schedule(compute)

# ================================
# HOVER
# ================================

    def on_slot_hover(self, time: datetime):
        """Update the hover ghost. Ignored while creating or dragging."""
        if not isinstance(self._state, (Idle, Hovering)):
            return
        self._transition(Hovering(time))
        self._schedule_span_preview(time, shift_minutes(time, SLOT_GRANULARITY))

    def on_slot_leave(self):
        if isinstance(self._state, Hovering):
            self._reset()

# ================================
# DRAG TO CREATE
# ================================

    def on_pointer_down(self, time: datetime, calendar_target: CalendarTarget = None):
        """Start a creation drag. A no-op when there is no calendar to create on."""
        if not isinstance(self._state, (Idle, Hovering)):
            return
        target = calendar_target or self.default_calendar
        if target is None:
            logger.debug("Pointer down ignored: no writable calendar")
            return
        end = shift_minutes(time, DEFAULT_DURATION)
        self._transition(Creating(anchor=time, start=time, end=end, calendar_target=target))
        self._schedule_span_preview(time, end)

    def on_pointer_move_over_slot(self, time: datetime):
        state = self._state
        if isinstance(state, Creating):
            anchor = to_timezone(state.anchor, time.tzinfo)
            # Creation is limited to the anchor's day
            if not is_same_day(anchor, time):
                return
            start, end = creation_span(anchor, time)
            self._transition(Creating(anchor, start, end, state.calendar_target))
            self._schedule_span_preview(start, end)
        elif isinstance(state, Dragging):
            self._transition(Dragging(state.data, time))
            self._schedule_drag_preview(state.data, time)

    def on_pointer_up(self):
        """Release the pointer. Returns the emitted intent when a move or resize finishes."""
        state = self._state
        if isinstance(state, Creating):
            self._transition(PendingConfirmation(state.start, state.end, state.calendar_target))
        elif isinstance(state, Dragging):
            if state.target is None:
                self.cancel()
                return None
            return self._finish_drag(state.data, state.target)
        return None

    def creation_times(self) -> Optional[Tuple[datetime, datetime]]:
        """
        Start and end for the creation editor. A span shorter than one slot
        is widened to the default duration.
        """
        state = self._state
        if not isinstance(state, (Creating, PendingConfirmation)):
            return None
        start, end = state.start, state.end
        if (end - start).total_seconds() / 60 < SLOT_GRANULARITY:
            end = shift_minutes(start, DEFAULT_DURATION)
        return start, end

    def build_pending_intent(self) -> Optional[CreateIntent]:
        """
        The creation intent the editor would save, queried by the host before
        it tears the edit session down. None outside PendingConfirmation.
        """
        if not isinstance(self._state, PendingConfirmation):
            return None
        start, end = self.creation_times()
        return build_create_intent(self._state.calendar_target, start, end)

    def commit(self) -> Optional[CreateIntent]:
        intent = self.build_pending_intent()
        if intent is None:
            return None
        self._reset()
        self._emit(intent)
        return intent

    def discard(self):
        if isinstance(self._state, PendingConfirmation):
            self._reset()

# ================================
# MOVE / RESIZE
# ================================

    def begin_drag(self, data):
        """Start dragging an existing item, or a creation drag from a CreateDrag payload."""
        if not isinstance(self._state, (Idle, Hovering)):
            return
        if isinstance(data, CreateDrag):
            self.throttle.discard()
            self._transition(Idle())
            self.on_pointer_down(data.anchor_time, data.calendar_target)
            return
        self.throttle.discard()
        self._transition(Dragging(data))

    def on_drag_over(self, slot_id: str, tzinfo=None):
        """Pointer is over a drop target. Malformed slot ids are not drop targets."""
        time = decode_slot_id(slot_id, tzinfo)
        if time is None:
            return
        self.on_pointer_move_over_slot(time)

    def on_drop(self, slot_id: str, tzinfo=None):
        """
        Finish the active drag on the given slot and emit its intent.

        A malformed slot id is not a drop target: nothing changes and the host
        decides whether to cancel. Creation drags go to PendingConfirmation
        instead of emitting.
        """
        time = decode_slot_id(slot_id, tzinfo)
        if time is None:
            return None
        state = self._state
        if isinstance(state, Creating):
            self.on_pointer_move_over_slot(time)
            self.on_pointer_up()
            return None
        if not isinstance(state, Dragging):
            return None
        return self._finish_drag(state.data, time)

    def _finish_drag(self, data, target: datetime):
        intent = build_drop_intent(data, target)
        # The store is not awaited; state resets regardless of the outcome
        self._reset()
        if intent is None:
            logger.debug(f"Drop of {data.type} on {target.isoformat()} rejected")
            return None
        self._emit(intent)
        return intent

# ================================
# CANCELLATION & HANDOFF
# ================================

    def cancel(self):
        """Abandon any interaction and drop pending previews."""
        if isinstance(self._state, Idle) and not self.throttle.has_pending:
            return
        self._reset()

    def _emit(self, intent):
        if self.on_intent is None:
            return
        try:
            self.on_intent(intent)
        except Exception as e:
            # Store failures are the store's to roll back
            logger.error(f"Intent handoff failed for {intent.intent}: {e}")
