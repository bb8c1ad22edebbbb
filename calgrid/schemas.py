from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, date, timedelta
from typing import Optional, List, Dict, Union, Literal, Annotated
from .models import ItemKind, DragType, InteractionPhase, Frequency, WeekdayCode, RecurrenceEndType
from .config import get_timezone

# ----------------- Calendar Schemas ---------------------

class CalendarTarget(BaseModel):
    """The writable calendar a created event lands on."""
    account_id: str
    calendar_id: str

    class Config:
        frozen = True

class CalendarInfo(BaseModel):
    account_id: str
    calendar_id: str
    primary: bool = False
    writable: bool = True

# ----------------- Subject Schemas ---------------------
# Snapshots of the item being dragged. Never mutated, edits come back as intents.

def _localize_naive(value):
    """Naive wall-clock times are read in the configured timezone."""
    if value is None or value.tzinfo is not None:
        return value
    return get_timezone().localize(value)

class TaskSubject(BaseModel):
    kind: Literal["task"] = "task"
    id: str
    start_time: Optional[datetime] = None  # None for unscheduled tasks
    duration_minutes: int = Field(gt=0)

    class Config:
        frozen = True

    @field_validator("start_time")
    @classmethod
    def localize_start(cls, value):
        return _localize_naive(value)

    @property
    def subject_id(self) -> str:
        return self.id

    @property
    def current_start(self) -> Optional[datetime]:
        return self.start_time

    @property
    def current_end(self) -> Optional[datetime]:
        if self.start_time is None:
            return None
        return self.start_time + timedelta(minutes=self.duration_minutes)

class EventSubject(BaseModel):
    kind: Literal["google-event"] = "google-event"
    account_id: str
    calendar_id: str
    external_id: str
    current_start: datetime
    current_end: datetime

    class Config:
        frozen = True

    @field_validator("current_start", "current_end")
    @classmethod
    def localize_times(cls, value):
        return _localize_naive(value)

    @model_validator(mode="after")
    def check_interval(self):
        if self.current_end <= self.current_start:
            raise ValueError("current_end must be after current_start")
        return self

    @property
    def subject_id(self) -> str:
        return self.external_id

Subject = Annotated[Union[TaskSubject, EventSubject], Field(discriminator="kind")]

# ----------------- Drag Payload Schemas ---------------------

class MoveDrag(BaseModel):
    type: Literal["move"] = "move"
    subject: Subject

class ResizeStartDrag(BaseModel):
    type: Literal["resize-start"] = "resize-start"
    subject: Subject

class ResizeEndDrag(BaseModel):
    type: Literal["resize-end"] = "resize-end"
    subject: Subject

class CreateDrag(BaseModel):
    type: Literal["create"] = "create"
    anchor_time: datetime
    calendar_target: CalendarTarget

    @field_validator("anchor_time")
    @classmethod
    def localize_anchor(cls, value):
        return _localize_naive(value)

DragData = Annotated[Union[MoveDrag, ResizeStartDrag, ResizeEndDrag, CreateDrag], Field(discriminator="type")]

# ----------------- Mutation Intent Schemas ---------------------
# Advisory updates handed to the external task/event store.

class MoveIntent(BaseModel):
    intent: Literal["move"] = "move"
    subject_id: str
    subject_kind: ItemKind
    new_start: datetime
    duration_minutes: int
    account_id: Optional[str] = None   # Google events only
    calendar_id: Optional[str] = None  # Google events only

    @property
    def new_end(self) -> datetime:
        return self.new_start + timedelta(minutes=self.duration_minutes)

class ResizeIntent(BaseModel):
    intent: Literal["resize"] = "resize"
    subject_id: str
    subject_kind: ItemKind
    new_start: datetime
    new_duration_minutes: int
    account_id: Optional[str] = None
    calendar_id: Optional[str] = None

    @property
    def new_end(self) -> datetime:
        return self.new_start + timedelta(minutes=self.new_duration_minutes)

class CreateIntent(BaseModel):
    intent: Literal["create"] = "create"
    calendar_target: CalendarTarget
    start: datetime
    end: datetime

MutationIntent = Annotated[Union[MoveIntent, ResizeIntent, CreateIntent], Field(discriminator="intent")]

# ----------------- Preview Schemas ---------------------

class PreviewRect(BaseModel):
    top: float
    left: float
    width: float
    height: float

# ----------------- Layout Schemas ---------------------

class PositionedItemIn(BaseModel):
    id: str
    kind: ItemKind = ItemKind.TASK
    start_minutes: int = Field(ge=0, lt=1440)
    end_minutes: int

    @model_validator(mode="after")
    def check_interval(self):
        if self.end_minutes <= self.start_minutes:
            raise ValueError("end_minutes must be greater than start_minutes")
        return self

class ItemLayoutOut(BaseModel):
    column_index: int
    total_columns: int
    stack_order: int

class LayoutRequest(BaseModel):
    items: List[PositionedItemIn] = []

class LayoutResponse(BaseModel):
    layouts: Dict[str, ItemLayoutOut]

# ----------------- Projection Schemas ---------------------
# Raw upstream records, projected into one day's positioned items.

class TaskRecord(BaseModel):
    id: str
    start_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None

class EventDateTime(BaseModel):
    date_time: Optional[str] = Field(default=None, alias="dateTime")
    date: Optional[str] = None
    time_zone: Optional[str] = Field(default=None, alias="timeZone")

    class Config:
        populate_by_name = True

class GoogleEventRecord(BaseModel):
    id: str
    account_id: Optional[str] = None
    calendar_id: Optional[str] = None
    start: Optional[EventDateTime] = None
    end: Optional[EventDateTime] = None

class ProjectionRequest(BaseModel):
    day: date
    timezone: Optional[str] = None
    tasks: List[TaskRecord] = []
    events: List[GoogleEventRecord] = []

class ProjectionResponse(BaseModel):
    items: List[PositionedItemIn]
    layouts: Dict[str, ItemLayoutOut]
    geometry: Dict[str, Dict[str, float]]

# ----------------- Slot Schemas ---------------------

class SlotOut(BaseModel):
    slot_id: str
    day: date
    hour: int
    minute_offset: int
    start: datetime

# ----------------- Recurrence Schemas ---------------------

class RecurrenceEnd(BaseModel):
    type: RecurrenceEndType = RecurrenceEndType.NONE
    until: Optional[str] = None  # raw UNTIL token, kept verbatim
    count: Optional[int] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_variant(self):
        if self.type == RecurrenceEndType.UNTIL and not self.until:
            raise ValueError("until end requires an UNTIL token")
        if self.type == RecurrenceEndType.COUNT and (self.count is None or self.count <= 0):
            raise ValueError("count end requires a positive count")
        return self

class RecurrenceRule(BaseModel):
    freq: Frequency = Frequency.NONE
    by_day: List[WeekdayCode] = []
    end: RecurrenceEnd = RecurrenceEnd()

class RecurrenceDecodeRequest(BaseModel):
    rule: Optional[str] = None

class RecurrenceEncodeResponse(BaseModel):
    rule: Optional[str]
    description: str

class RecurrenceExpandRequest(BaseModel):
    rule: str
    dtstart: datetime
    window_start: datetime
    window_end: datetime

    @model_validator(mode="after")
    def check_window(self):
        if self.window_end < self.window_start:
            raise ValueError("window_end must not be before window_start")
        return self

class UntilConversionRequest(BaseModel):
    value: Optional[str] = None
    timezone: Optional[str] = None

class UntilConversionResponse(BaseModel):
    value: Optional[str]

# ----------------- Interaction Schemas ---------------------

class SlotRequest(BaseModel):
    slot_id: str

class PointerDownRequest(BaseModel):
    slot_id: str
    calendar_target: Optional[CalendarTarget] = None

class DragBeginRequest(BaseModel):
    data: DragData

class ViewCalendarsRequest(BaseModel):
    calendars: List[CalendarInfo] = []
    visible: List[CalendarTarget] = []

class InteractionStateOut(BaseModel):
    view_id: str
    phase: InteractionPhase
    time: Optional[datetime] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    calendar_target: Optional[CalendarTarget] = None
    drag_type: Optional[DragType] = None
    preview: Optional[PreviewRect] = None

class InteractionResult(BaseModel):
    state: InteractionStateOut
    intent: Optional[MutationIntent] = None
