"""
Interaction states owned by an InteractionController.

Exactly one is current at a time. States are replaced on transition, never
edited in place.
"""

from datetime import datetime

from calgrid.models import InteractionPhase, DragType
from calgrid.schemas import CalendarTarget


class InteractionState:
    phase = None

    def __repr__(self):
        return f"{type(self).__name__}()"


class Idle(InteractionState):
    phase = InteractionPhase.IDLE


class Hovering(InteractionState):
    """Pointer is over a slot with nothing pressed. Drives the hover ghost."""
    phase = InteractionPhase.HOVERING

    def __init__(self, time: datetime):
        self.time = time

    def __repr__(self):
        return f"Hovering({self.time.isoformat()})"


class Creating(InteractionState):
    """
    Drag-to-create in progress. The anchor is the pointer-down slot and stays
    fixed for the whole gesture, start/end follow the pointer.
    """
    phase = InteractionPhase.CREATING

    def __init__(self, anchor: datetime, start: datetime, end: datetime, calendar_target: CalendarTarget):
        self.anchor = anchor
        self.start = start
        self.end = end
        self.calendar_target = calendar_target

    def __repr__(self):
        return f"Creating({self.start.isoformat()} - {self.end.isoformat()})"


class PendingConfirmation(InteractionState):
    """Pointer released after a creation drag, waiting for the editor to commit or discard."""
    phase = InteractionPhase.PENDING_CONFIRMATION

    def __init__(self, start: datetime, end: datetime, calendar_target: CalendarTarget):
        self.start = start
        self.end = end
        self.calendar_target = calendar_target

    def __repr__(self):
        return f"PendingConfirmation({self.start.isoformat()} - {self.end.isoformat()})"


class Dragging(InteractionState):
    """An existing task or event is being moved or resized."""
    phase = InteractionPhase.DRAGGING

    def __init__(self, data, target: datetime = None):
        self.data = data
        self.target = target

    @property
    def drag_type(self) -> DragType:
        return DragType(self.data.type)

    def __repr__(self):
        target = self.target.isoformat() if self.target else None
        return f"Dragging({self.data.type}, target={target})"
