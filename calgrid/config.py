"""
Environment configuration for the calgrid service.
"""

import os
from dotenv import load_dotenv
import pytz

load_dotenv()

TIMEZONE_NAME = os.getenv("CALGRID_TIMEZONE", "UTC")
PIXELS_PER_HOUR = int(os.getenv("CALGRID_PIXELS_PER_HOUR", "80"))
LOG_LEVEL = os.getenv("CALGRID_LOG_LEVEL", "INFO")
HOST = os.getenv("CALGRID_HOST", "0.0.0.0")
PORT = int(os.getenv("CALGRID_PORT", "8000"))


def get_timezone(name: str = None):
    """Resolve a timezone name, falling back to UTC for unknown names."""
    try:
        return pytz.timezone(name or TIMEZONE_NAME)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def lookup_timezone(name: str = None):
    """Like get_timezone, but raises pytz.UnknownTimeZoneError instead of falling back."""
    if not name:
        return get_timezone()
    return pytz.timezone(name)
