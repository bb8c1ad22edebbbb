"""
Projection of raw task and Google event records onto one local calendar day.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from dateutil import parser as date_parser

from calgrid.config import get_timezone
from calgrid.models import ItemKind
from calgrid.schemas import TaskRecord, GoogleEventRecord
from calgrid.scheduling.core.constants import MINUTES_PER_DAY
from calgrid.scheduling.core.time_slot import PositionedItem
from calgrid.scheduling.utils.slot_utils import localize

logger = logging.getLogger(__name__)


def _to_local(value: datetime, tz) -> datetime:
    """Aware values are converted into tz, naive ones are taken as tz wall-clock time."""
    if value.tzinfo is None:
        return localize(value, tz)
    return value.astimezone(tz)


def _day_minutes(start: datetime, end: datetime, day: date) -> Optional[Tuple[int, int]]:
    """Minute-of-day span of [start, end) on day, clipped at midnight. None when it does not start on day."""
    if start.date() != day:
        return None
    start_minutes = start.hour * 60 + start.minute
    if end.date() > day:
        end_minutes = MINUTES_PER_DAY
    else:
        end_minutes = end.hour * 60 + end.minute
    if end_minutes <= start_minutes:
        return None
    return start_minutes, end_minutes


def project_task(task: TaskRecord, day: date, tz) -> Optional[PositionedItem]:
    if task.start_time is None or not task.duration_minutes or task.duration_minutes <= 0:
        return None
    start = _to_local(task.start_time, tz)
    end = start + timedelta(minutes=task.duration_minutes)
    span = _day_minutes(start, end, day)
    if span is None:
        return None
    return PositionedItem(task.id, span[0], span[1], kind=ItemKind.TASK)


def _parse_event_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None


def is_all_day_event(event: GoogleEventRecord) -> bool:
    return bool(
        event.start and event.start.date and not event.start.date_time
        and not (event.end and event.end.date_time)
    )


def project_event(event: GoogleEventRecord, day: date, tz) -> Optional[PositionedItem]:
    """
    Timed Google event to a positioned item. All-day events and events whose
    start or end is missing or unparseable are left out.
    """
    if is_all_day_event(event):
        return None
    start = _parse_event_time(event.start.date_time if event.start else None)
    end = _parse_event_time(event.end.date_time if event.end else None)
    if start is None or end is None:
        logger.debug(f"Dropping event {event.id}: missing or unparseable start/end")
        return None
    start, end = _to_local(start, tz), _to_local(end, tz)
    if end <= start:
        logger.debug(f"Dropping event {event.id}: end is not after start")
        return None
    span = _day_minutes(start, end, day)
    if span is None:
        return None
    return PositionedItem(event.id, span[0], span[1], kind=ItemKind.EXTERNAL_EVENT)


def project_day(day: date, tasks: Iterable[TaskRecord] = (), events: Iterable[GoogleEventRecord] = (),
                tz=None) -> List[PositionedItem]:
    """
    Build the positioned items for one local day.

    A malformed upstream record is omitted from the day rather than failing
    the whole view.
    """
    tz = tz or get_timezone()
    items: List[PositionedItem] = []
    for task in tasks:
        item = project_task(task, day, tz)
        if item is not None:
            items.append(item)
    for event in events:
        item = project_event(event, day, tz)
        if item is not None:
            items.append(item)
    return items
