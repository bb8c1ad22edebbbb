import enum

# Enums

class ItemKind(str, enum.Enum):
    TASK = "task"
    EXTERNAL_EVENT = "google-event"

class DragType(str, enum.Enum):
    MOVE = "move"
    RESIZE_START = "resize-start"
    RESIZE_END = "resize-end"
    CREATE = "create"

class InteractionPhase(str, enum.Enum):
    IDLE = "idle"
    HOVERING = "hovering"
    CREATING = "creating"
    PENDING_CONFIRMATION = "pending_confirmation"
    DRAGGING = "dragging"

class Frequency(str, enum.Enum):
    NONE = "none"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"

class WeekdayCode(str, enum.Enum):
    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"

class RecurrenceEndType(str, enum.Enum):
    NONE = "none"
    UNTIL = "until"
    COUNT = "count"

class RecurrenceScope(str, enum.Enum):
    THIS = "this"            # Only this occurrence
    ALL = "all"              # Entire series
    FOLLOWING = "following"  # This and following occurrences

# Display labels, in RRULE weekday order
WEEKDAY_LABELS = {
    WeekdayCode.MO: "Mon",
    WeekdayCode.TU: "Tue",
    WeekdayCode.WE: "Wed",
    WeekdayCode.TH: "Thu",
    WeekdayCode.FR: "Fri",
    WeekdayCode.SA: "Sat",
    WeekdayCode.SU: "Sun",
}

RECURRENCE_SCOPE_LABELS = {
    RecurrenceScope.THIS: "Only this occurrence",
    RecurrenceScope.ALL: "Entire series",
    RecurrenceScope.FOLLOWING: "This and following",
}
