"""
Mutation intent builders.

Pure functions that turn a finished drag into the update handed to the
external task/event store. Subjects are snapshots and are never modified.
"""

from datetime import datetime
from typing import Optional, Tuple, Union

from calgrid.models import ItemKind
from calgrid.schemas import (
    TaskSubject, EventSubject, MoveDrag, ResizeStartDrag, ResizeEndDrag, CreateDrag,
    CalendarTarget, MoveIntent, ResizeIntent, CreateIntent,
)
from ..core.constants import SLOT_GRANULARITY, DEFAULT_DURATION
from ..utils.slot_utils import (
    clamp_resize_start, clamp_resize_end, duration_in_minutes, is_same_day, shift_minutes, to_timezone
)

RESIZE_START = "start"
RESIZE_END = "end"


def _routing_fields(subject) -> dict:
    """Google events carry their account and calendar so the store can route the update."""
    if isinstance(subject, EventSubject):
        return {
            "subject_kind": ItemKind.EXTERNAL_EVENT,
            "account_id": subject.account_id,
            "calendar_id": subject.calendar_id,
        }
    return {"subject_kind": ItemKind.TASK}


def build_move_intent(subject: Union[TaskSubject, EventSubject], start_time: datetime) -> MoveIntent:
    """Move keeps the subject's duration and only re-anchors its start."""
    if isinstance(subject, EventSubject):
        duration = duration_in_minutes(subject.current_start, subject.current_end, minimum=1)
    else:
        duration = subject.duration_minutes
    return MoveIntent(
        subject_id=subject.subject_id,
        new_start=start_time,
        duration_minutes=duration,
        **_routing_fields(subject),
    )


def build_resize_intent(subject: Union[TaskSubject, EventSubject], drop_time: datetime,
                        edge: str) -> Optional[ResizeIntent]:
    """
    Build a resize update from a drop coordinate.

    The drop coordinate addresses the start of a slot. An end-edge drag lands
    on the boundary after that slot, so it is shifted one slot forward before
    clamping. Returns None for unscheduled tasks and for drops on another day.

    Day checks and bounds use the drop's timezone, the view the user sees.
    """
    if subject.current_start is None or subject.current_end is None:
        return None
    view_tz = drop_time.tzinfo
    original_start = to_timezone(subject.current_start, view_tz)
    original_end = to_timezone(subject.current_end, view_tz)

    if not is_same_day(original_start, drop_time):
        return None

    if edge == RESIZE_START:
        new_start = clamp_resize_start(drop_time, original_start, original_end)
        new_duration = duration_in_minutes(new_start, original_end)
    elif edge == RESIZE_END:
        target = shift_minutes(drop_time, SLOT_GRANULARITY)
        new_end = clamp_resize_end(target, original_start)
        new_start = original_start
        new_duration = duration_in_minutes(original_start, new_end)
    else:
        raise ValueError(f"Unknown resize edge: {edge!r}")

    return ResizeIntent(
        subject_id=subject.subject_id,
        new_start=new_start,
        new_duration_minutes=new_duration,
        **_routing_fields(subject),
    )


def creation_span(anchor: datetime, slot_time: datetime) -> Tuple[datetime, datetime]:
    """
    Start and end of a drag-to-create block anchored at anchor, with the
    pointer over the slot starting at slot_time.

    Dragging forward keeps the anchor as start and ends at the bottom of the
    hovered slot. Dragging backward flips: the hovered slot becomes the start
    and the end is a fresh default-length block from the original anchor.
    """
    slot_end = shift_minutes(slot_time, SLOT_GRANULARITY)
    if slot_end > anchor:
        return anchor, slot_end
    return slot_time, shift_minutes(anchor, DEFAULT_DURATION)


def build_create_intent(calendar_target: CalendarTarget, start: datetime, end: datetime) -> CreateIntent:
    if end <= start:
        raise ValueError("end must be after start")
    return CreateIntent(calendar_target=calendar_target, start=start, end=end)


def build_drop_intent(data, drop_time: datetime):
    """
    Dispatch a completed drag to its intent builder.

    Returns None when the drop is rejected (cross-day resize, unscheduled task).
    """
    if isinstance(data, MoveDrag):
        return build_move_intent(data.subject, drop_time)
    elif isinstance(data, ResizeStartDrag):
        return build_resize_intent(data.subject, drop_time, RESIZE_START)
    elif isinstance(data, ResizeEndDrag):
        return build_resize_intent(data.subject, drop_time, RESIZE_END)
    elif isinstance(data, CreateDrag):
        anchor = to_timezone(data.anchor_time, drop_time.tzinfo)
        if not is_same_day(anchor, drop_time):
            return None
        start, end = creation_span(anchor, drop_time)
        return build_create_intent(data.calendar_target, start, end)
    raise TypeError(f"Unsupported drag payload: {type(data).__name__}")
