"""
Interaction service that keeps one interaction controller per calendar view.
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Optional

from ..schemas import CalendarInfo, CalendarTarget, InteractionStateOut
from ..scheduling.interaction import InteractionController, resolve_default_calendar
from ..scheduling.interaction.states import Creating, Dragging, Hovering, PendingConfirmation

logger = logging.getLogger(__name__)


class IntentOutbox:
    """
    Default hand-off target for finished interactions.

    Keeps the most recent intents per view for the external store to pick up.
    Whatever the store does with them is outside this service.
    """
    def __init__(self, maxlen: int = 100):
        self.maxlen = maxlen
        self.intents: Dict[str, Deque] = {}

    def submit(self, view_id: str, intent):
        logger.info(f"Intent {intent.intent} queued for view {view_id}")
        self.intents.setdefault(view_id, deque(maxlen=self.maxlen)).append(intent)

    def drain(self, view_id: str) -> List:
        pending = list(self.intents.get(view_id, ()))
        self.intents.pop(view_id, None)
        return pending


class InteractionService:
    """Service to manage interaction controllers for calendar views."""

    def __init__(self, store=None):
        # In-memory controllers, one per view
        self.view_controllers: Dict[str, InteractionController] = {}
        self.store = store or IntentOutbox()

    def get_controller(self, view_id: str) -> Optional[InteractionController]:
        """Get existing controller for a view without creating one."""
        return self.view_controllers.get(view_id)

    def get_or_create_controller(self, view_id: str) -> InteractionController:
        if view_id not in self.view_controllers:
            logger.debug(f"Creating interaction controller for view {view_id}")
            self.view_controllers[view_id] = InteractionController(
                on_intent=lambda intent: self.store.submit(view_id, intent)
            )
        return self.view_controllers[view_id]

    def set_calendars(self, view_id: str, calendars: List[CalendarInfo],
                      visible: List[CalendarTarget]) -> Optional[CalendarTarget]:
        """Update the view's calendars and return the resolved default for new events."""
        controller = self.get_or_create_controller(view_id)
        controller.default_calendar = resolve_default_calendar(visible, calendars)
        return controller.default_calendar

    def remove_controller(self, view_id: str) -> bool:
        """Drop a view's controller, cancelling whatever it was doing."""
        controller = self.view_controllers.pop(view_id, None)
        if controller is None:
            return False
        controller.cancel()
        return True

    def snapshot(self, view_id: str) -> InteractionStateOut:
        """Serializable view of a controller's state, flushing any pending preview first."""
        controller = self.get_or_create_controller(view_id)
        preview = controller.throttle.flush()
        state = controller.state
        out = InteractionStateOut(view_id=view_id, phase=state.phase, preview=preview)

        if isinstance(state, Hovering):
            out.time = state.time
        elif isinstance(state, (Creating, PendingConfirmation)):
            out.start, out.end = state.start, state.end
            out.calendar_target = state.calendar_target
        elif isinstance(state, Dragging):
            out.time = state.target
            out.drag_type = state.drag_type
        return out


# Module-level instance shared by the routes
interaction_service = InteractionService()
