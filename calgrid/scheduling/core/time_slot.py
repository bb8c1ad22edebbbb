"""
Positioned block representation for the collision layout engine.
"""

from calgrid.models import ItemKind
from .constants import TASK, MINUTES_PER_DAY


class PositionedItem:
    """
    One schedulable block on a single calendar day, already projected into
    that day's minute-of-day space:
    - a task (kind=TASK)
    - a Google calendar event (kind=EXTERNAL_EVENT)

    Cross-midnight spans are not modeled, callers clip to one day first.
    """
    def __init__(self, id: str, start_minutes: int, end_minutes: int, kind: str = TASK):
        kind = ItemKind(kind)
        if not 0 <= start_minutes < MINUTES_PER_DAY:
            raise ValueError(f"start_minutes must be within the day, got {start_minutes}")
        if end_minutes <= start_minutes:
            raise ValueError(f"end_minutes ({end_minutes}) must be after start_minutes ({start_minutes})")
        self.id = id
        self.kind = kind
        self.start_minutes = start_minutes
        self.end_minutes = end_minutes

    def duration(self) -> int:
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: "PositionedItem") -> bool:
        return self.start_minutes < other.end_minutes and other.start_minutes < self.end_minutes

    def __lt__(self, other):
        return self.start_minutes < other.start_minutes

    def __eq__(self, other):
        if not isinstance(other, PositionedItem):
            return NotImplemented
        return (self.id, self.kind, self.start_minutes, self.end_minutes) == \
            (other.id, other.kind, other.start_minutes, other.end_minutes)

    def __hash__(self):
        return hash((self.id, self.kind, self.start_minutes, self.end_minutes))

    def __repr__(self):
        start = f"{self.start_minutes // 60:02d}:{self.start_minutes % 60:02d}"
        end = f"{self.end_minutes // 60:02d}:{self.end_minutes % 60:02d}"
        label = "EventSlot" if self.kind == ItemKind.EXTERNAL_EVENT else "TaskSlot"
        return f"{label}({start} - {end}, {self.id})"


class ItemLayout:
    """Column placement for one item. Recomputed whenever the day's items change."""
    def __init__(self, column_index: int = 0, total_columns: int = 1, stack_order: int = 1):
        self.column_index = column_index
        self.total_columns = total_columns
        self.stack_order = stack_order

    def as_dict(self) -> dict:
        return {
            "column_index": self.column_index,
            "total_columns": self.total_columns,
            "stack_order": self.stack_order,
        }

    def __eq__(self, other):
        if not isinstance(other, ItemLayout):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self):
        return (f"ItemLayout(column={self.column_index}/{self.total_columns}, "
                f"stack={self.stack_order})")
