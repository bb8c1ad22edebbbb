"""
Grid constants shared by the layout engine, the coordinate utilities and the
interaction controller.
"""

from calgrid.config import PIXELS_PER_HOUR
from calgrid.models import ItemKind

# Item kinds
TASK = ItemKind.TASK
EXTERNAL_EVENT = ItemKind.EXTERNAL_EVENT

# Grid resolution
SLOT_GRANULARITY = 15          # minutes per droppable slot
SLOT_MINUTES = (0, 15, 30, 45)  # minute offsets inside each hour
HOURS_PER_DAY = 24
MINUTES_PER_DAY = 1440

# Durations
DEFAULT_DURATION = 30  # click (not drag) creates a 30 minute block
MIN_DURATION = SLOT_GRANULARITY

# Collision layout
SIDE_BY_SIDE_THRESHOLD_MINUTES = 45
MAX_COLUMNS = 3

# Rendering only, never feeds back into scheduling math
MIN_BLOCK_HEIGHT_PX = 24
