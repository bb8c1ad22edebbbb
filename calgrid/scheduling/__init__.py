"""
calgrid scheduling core

Collision layout, time-grid coordinates and the drag/resize/create
interaction controller for a shared task and calendar-event day view.
Pure and synchronous; the HTTP layer and the external store live outside.
"""

from .core.layout import calculate_collision_layout
from .core.time_slot import PositionedItem, ItemLayout
from .core.constants import TASK, EXTERNAL_EVENT
from .interaction import InteractionController

# Version for future API compatibility
__version__ = "1.0.0"
