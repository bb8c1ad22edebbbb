from .controller import InteractionController, PreviewThrottle, resolve_default_calendar
from .states import Idle, Hovering, Creating, PendingConfirmation, Dragging
