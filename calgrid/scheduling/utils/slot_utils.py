"""
Time-grid coordinate utilities: wall-clock time to pixel offsets, snapping,
same-day clamping and the slot identifier codec.
"""

import math
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from calgrid.config import PIXELS_PER_HOUR, get_timezone
from ..core.constants import (
    SLOT_GRANULARITY, SLOT_MINUTES, HOURS_PER_DAY, MINUTES_PER_DAY, MIN_DURATION, MIN_BLOCK_HEIGHT_PX
)
from ..core.time_slot import ItemLayout

SLOT_ID_PREFIX = "slot-"
SLOT_ID_REGEX = re.compile(r"^slot-(\d{4})-(\d{2})-(\d{2})-(\d{1,2})-(\d{1,2})$")

# Returned by decode_slot_id for anything that is not a valid drop target
INVALID_SLOT = None


# ================================
# TIMEZONE-AWARE ARITHMETIC
# ================================

def localize(naive: datetime, tzinfo) -> datetime:
    """Attach a timezone to a naive wall-clock datetime (pytz needs localize, not replace)."""
    if tzinfo is None:
        return naive
    if hasattr(tzinfo, "localize"):
        return tzinfo.localize(naive)
    return naive.replace(tzinfo=tzinfo)


def to_timezone(value: datetime, tzinfo) -> datetime:
    """
    Express value on the wall clock of tzinfo. Naive values are taken to be
    wall-clock times there already.
    """
    if tzinfo is None:
        return value
    if value.tzinfo is None:
        return localize(value, tzinfo)
    return value.astimezone(tzinfo)


def shift_minutes(value: datetime, minutes: int) -> datetime:
    """Add minutes to a datetime, renormalizing pytz offsets across DST changes."""
    shifted = value + timedelta(minutes=minutes)
    tzinfo = shifted.tzinfo
    if tzinfo is not None and hasattr(tzinfo, "normalize"):
        return tzinfo.normalize(shifted)
    return shifted


def minutes_from_midnight(value: datetime) -> int:
    return value.hour * 60 + value.minute


def is_same_day(a: datetime, b: datetime) -> bool:
    """Compare local calendar dates."""
    return a.date() == b.date()


def get_day_bounds(base: datetime) -> Tuple[datetime, datetime]:
    """Return (midnight of base's day, midnight of the following day) in base's timezone."""
    day = base.date()
    tzinfo = base.tzinfo
    day_start = localize(datetime.combine(day, time()), tzinfo)
    day_end = localize(datetime.combine(day + timedelta(days=1), time()), tzinfo)
    return day_start, day_end


def clamp_datetime(value: datetime, minimum: datetime, maximum: datetime) -> datetime:
    if value < minimum:
        return minimum
    if value > maximum:
        return maximum
    return value


def duration_in_minutes(start: datetime, end: datetime, minimum: int = MIN_DURATION) -> int:
    """Whole minutes between start and end, never below minimum."""
    return max(minimum, round((end - start).total_seconds() / 60))


# ================================
# RESIZE CLAMPING
# ================================

def clamp_resize_start(target: datetime, original_start: datetime, original_end: datetime) -> datetime:
    """
    Clamp a dragged start edge into [day start, original end - MIN_DURATION].

    The new start also never passes the latest allowed start point,
    one slot before the original end.
    """
    day_start, _ = get_day_bounds(original_start)
    latest_start = shift_minutes(original_end, -SLOT_GRANULARITY)
    earliest_allowed_end = shift_minutes(original_end, -MIN_DURATION)
    clamped = clamp_datetime(target, day_start, earliest_allowed_end)
    return latest_start if clamped > latest_start else clamped


def clamp_resize_end(target: datetime, original_start: datetime) -> datetime:
    """Clamp a dragged end edge into [original start + MIN_DURATION, day end]."""
    _, day_end = get_day_bounds(original_start)
    earliest_end = shift_minutes(original_start, MIN_DURATION)
    return clamp_datetime(target, earliest_end, day_end)


# ================================
# PIXEL GEOMETRY
# ================================

def time_to_pixel_offset(minutes_from_midnight_: float, pixels_per_hour: int = PIXELS_PER_HOUR) -> float:
    return (minutes_from_midnight_ / 60) * pixels_per_hour


def duration_to_pixel_height(minutes: float, pixels_per_hour: int = PIXELS_PER_HOUR) -> float:
    """Pixel height for a duration. The floor is visual only."""
    return max((minutes / 60) * pixels_per_hour, MIN_BLOCK_HEIGHT_PX)


def snap_to_grid(minutes: float) -> int:
    """Round to the nearest slot boundary (halves round up) and keep it on the grid."""
    snapped = int(math.floor(minutes / SLOT_GRANULARITY + 0.5)) * SLOT_GRANULARITY
    return min(max(snapped, 0), MINUTES_PER_DAY - SLOT_GRANULARITY)


def item_geometry(layout: ItemLayout, start_minutes: int, end_minutes: int,
                  pixels_per_hour: int = PIXELS_PER_HOUR) -> dict:
    """
    Geometry for a laid-out block: top/height in pixels, left/width as a
    percentage of the day column.
    """
    column_width = 100 / layout.total_columns
    return {
        "top": time_to_pixel_offset(start_minutes, pixels_per_hour),
        "height": duration_to_pixel_height(end_minutes - start_minutes, pixels_per_hour),
        "left": layout.column_index * column_width,
        "width": column_width,
        "z_index": layout.stack_order,
    }


# ================================
# SLOT IDENTIFIER CODEC
# ================================

class SlotCoordinate:
    """A 15 minute cell of the day grid."""
    def __init__(self, day: date, hour: int, minute_offset: int):
        if not 0 <= hour < HOURS_PER_DAY:
            raise ValueError(f"hour must be 0-23, got {hour}")
        if minute_offset not in SLOT_MINUTES:
            raise ValueError(f"minute_offset must be one of {SLOT_MINUTES}, got {minute_offset}")
        self.date = day
        self.hour = hour
        self.minute_offset = minute_offset

    @classmethod
    def from_datetime(cls, value: datetime) -> "SlotCoordinate":
        """The slot containing value."""
        offset = (value.minute // SLOT_GRANULARITY) * SLOT_GRANULARITY
        return cls(value.date(), value.hour, offset)

    def to_slot_id(self) -> str:
        return encode_slot_id(self.date, self.hour, self.minute_offset)

    def to_datetime(self, tzinfo=None) -> datetime:
        """Local wall-clock datetime built from the literal components."""
        naive = datetime(self.date.year, self.date.month, self.date.day, self.hour, self.minute_offset)
        return localize(naive, tzinfo)

    def __eq__(self, other):
        if not isinstance(other, SlotCoordinate):
            return NotImplemented
        return (self.date, self.hour, self.minute_offset) == (other.date, other.hour, other.minute_offset)

    def __repr__(self):
        return f"SlotCoordinate({self.to_slot_id()})"


def encode_slot_id(day: date, hour: int, minute_offset: int) -> str:
    """Format: slot-{YYYY-MM-DD}-{hour}-{minute_offset}, hour unpadded."""
    return f"{SLOT_ID_PREFIX}{day.strftime('%Y-%m-%d')}-{hour}-{minute_offset}"


def parse_slot_id(slot_id) -> Optional[SlotCoordinate]:
    """Parse a slot id into its coordinate, or INVALID_SLOT when malformed."""
    if not isinstance(slot_id, str):
        return INVALID_SLOT
    match = SLOT_ID_REGEX.match(slot_id)
    if not match:
        return INVALID_SLOT
    year, month, day, hour, minutes = (int(part) for part in match.groups())
    try:
        return SlotCoordinate(date(year, month, day), hour, minutes)
    except ValueError:
        return INVALID_SLOT


def decode_slot_id(slot_id, tzinfo=None) -> Optional[datetime]:
    """
    Decode a slot id into a local datetime.

    Never raises: drop-target resolution runs on every drag-over, so malformed
    ids return INVALID_SLOT. The datetime is built from the literal date and
    time components in the given (or configured) timezone, never through a
    UTC parse, so it cannot shift across a date boundary.
    """
    coordinate = parse_slot_id(slot_id)
    if coordinate is None:
        return INVALID_SLOT
    return coordinate.to_datetime(tzinfo if tzinfo is not None else get_timezone())
