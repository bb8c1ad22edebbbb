"""
Recurrence utilities for calendar event RRULE strings.

Only the FREQ / BYDAY / UNTIL / COUNT subset of RFC 5545 is read and written
by the codec. Expansion into concrete occurrences is delegated to
dateutil.rrule, which understands the full grammar.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional, Sequence, Union

import pytz
from dateutil import parser as date_parser
from dateutil import rrule

from calgrid.config import get_timezone
from calgrid.models import Frequency, WeekdayCode, RecurrenceEndType, RecurrenceScope, WEEKDAY_LABELS
from calgrid.schemas import RecurrenceRule, RecurrenceEnd
from calgrid.scheduling.utils.slot_utils import localize

logger = logging.getLogger(__name__)

RRULE_PREFIX = "RRULE:"
UNTIL_TOKEN_FORMAT = "%Y%m%dT%H%M%SZ"
UNTIL_INPUT_FORMAT = "%Y-%m-%dT%H:%M"

_UNTIL_DATE_ONLY = re.compile(r"^(\d{4})-?(\d{2})-?(\d{2})$")

_WEEKDAY_ORDER = list(WeekdayCode)
_ENCODABLE_FREQUENCIES = {Frequency.DAILY, Frequency.WEEKLY, Frequency.MONTHLY}


# ================================
# CODEC
# ================================

def _parse_by_day(value: str) -> List[WeekdayCode]:
    days: List[WeekdayCode] = []
    for token in value.split(","):
        token = token.strip().upper()
        try:
            day = WeekdayCode(token)
        except ValueError:
            # Positional forms like 1MO are outside the supported subset
            continue
        if day not in days:
            days.append(day)
    return days


def decode_recurrence_rule(rule: Optional[str]) -> RecurrenceRule:
    """
    Parse an RRULE string into a RecurrenceRule.

    Parsing is permissive: a missing RRULE: prefix or an unknown FREQ is
    read as "no recurrence" rather than an error, so rules written by newer
    clients still load. BYDAY is only kept for weekly rules, UNTIL is kept
    as the raw token, and UNTIL wins when both UNTIL and COUNT are present.
    """
    if not rule or not rule.startswith(RRULE_PREFIX):
        return RecurrenceRule()

    freq = Frequency.NONE
    by_day: List[WeekdayCode] = []
    until: Optional[str] = None
    count: Optional[int] = None

    for part in rule[len(RRULE_PREFIX):].split(";"):
        key, _, value = part.partition("=")
        key = key.strip().upper()
        value = value.strip()
        if not value:
            continue
        if key == "FREQ":
            try:
                candidate = Frequency(value.upper())
            except ValueError:
                candidate = Frequency.NONE
            freq = candidate if candidate in _ENCODABLE_FREQUENCIES else Frequency.NONE
        elif key == "BYDAY":
            by_day = _parse_by_day(value)
        elif key == "UNTIL":
            until = value
        elif key == "COUNT":
            try:
                parsed = int(value)
            except ValueError:
                continue
            if parsed > 0:
                count = parsed

    if freq != Frequency.WEEKLY:
        by_day = []

    if until is not None:
        end = RecurrenceEnd(type=RecurrenceEndType.UNTIL, until=until)
    elif count is not None:
        end = RecurrenceEnd(type=RecurrenceEndType.COUNT, count=count)
    else:
        end = RecurrenceEnd()

    return RecurrenceRule(freq=freq, by_day=by_day, end=end)


def encode_recurrence_rule(rule: RecurrenceRule) -> Optional[str]:
    """
    Serialize a RecurrenceRule, or return None when it does not recur.

    BYDAY is written for weekly rules only. Weekdays set on a daily or
    monthly rule are dropped, so they do not survive a round trip.
    """
    if rule.freq == Frequency.NONE:
        return None

    parts = [f"FREQ={rule.freq.value}"]
    if rule.freq == Frequency.WEEKLY and rule.by_day:
        parts.append(f"BYDAY={','.join(day.value for day in rule.by_day)}")

    if rule.end.type == RecurrenceEndType.UNTIL:
        parts.append(f"UNTIL={rule.end.until}")
    elif rule.end.type == RecurrenceEndType.COUNT:
        parts.append(f"COUNT={rule.end.count}")

    return RRULE_PREFIX + ";".join(parts)


# ================================
# UNTIL TOKEN CONVERSION
# ================================

def _resolve_tz(tz):
    if tz is None:
        return get_timezone()
    if isinstance(tz, str):
        return get_timezone(tz)
    return tz


def until_token_to_datetime(raw: Optional[str]) -> Optional[datetime]:
    """
    Parse an UNTIL token into an aware datetime.

    Date-only tokens are midnight UTC. Date-time tokens without an offset are
    read as UTC. Returns None for anything unparseable.
    """
    if not raw:
        return None
    raw = raw.strip()

    try:
        value = date_parser.isoparse(raw)
    except (ValueError, OverflowError):
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def token_to_until_input(raw: Optional[str], tz=None) -> Optional[str]:
    """
    Convert an UNTIL token into the editable local form YYYY-MM-DDTHH:MM.

    Date-only tokens map to local midnight of that date without timezone
    conversion. Seconds are dropped.
    """
    if not raw:
        return None
    match = _UNTIL_DATE_ONLY.match(raw.strip())
    if match:
        year, month, day = match.groups()
        return f"{year}-{month}-{day}T00:00"

    value = until_token_to_datetime(raw)
    if value is None:
        return None
    return value.astimezone(_resolve_tz(tz)).strftime(UNTIL_INPUT_FORMAT)


def until_input_to_token(value: Optional[str], tz=None) -> Optional[str]:
    """Convert a local editable date-time into a UTC UNTIL token."""
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = localize(parsed, _resolve_tz(tz))
    return parsed.astimezone(pytz.UTC).strftime(UNTIL_TOKEN_FORMAT)


def datetime_to_until_token(value: datetime, tz=None) -> str:
    """UNTIL token for a datetime, truncated to the minute like the editor."""
    if value.tzinfo is None:
        value = localize(value, _resolve_tz(tz))
    value = value.replace(second=0, microsecond=0)
    return value.astimezone(pytz.UTC).strftime(UNTIL_TOKEN_FORMAT)


# ================================
# EDITOR STATE
# ================================

class RecurrenceEditorState:
    """
    Working copy of a recurrence rule inside an edit session.

    Keeps the weekday selection, UNTIL token and count even while the chosen
    frequency or end mode does not use them, so switching back and forth
    loses nothing. Only to_rule() output is ever persisted.
    """
    DEFAULT_COUNT = 10

    def __init__(self, freq: Frequency = Frequency.NONE, by_day: Sequence[WeekdayCode] = None,
                 end_type: RecurrenceEndType = RecurrenceEndType.NONE, until: str = None,
                 count: int = None):
        self.freq = Frequency(freq)
        self.by_day: List[WeekdayCode] = [WeekdayCode(day) for day in (by_day or [])]
        self.end_type = RecurrenceEndType(end_type)
        self.until = until
        self.count = count if count and count > 0 else self.DEFAULT_COUNT

    @classmethod
    def from_rule(cls, rule: Union[str, RecurrenceRule, None],
                  reference: datetime = None) -> "RecurrenceEditorState":
        """
        Load the editor from a stored rule.

        When no weekday is selected, the reference date's weekday (Monday
        without a reference) is preselected for a later switch to weekly.
        """
        if not isinstance(rule, RecurrenceRule):
            rule = decode_recurrence_rule(rule)
        by_day = list(rule.by_day)
        if not by_day:
            by_day = [_WEEKDAY_ORDER[reference.weekday()] if reference else WeekdayCode.MO]
        return cls(
            freq=rule.freq,
            by_day=by_day,
            end_type=rule.end.type,
            until=rule.end.until,
            count=rule.end.count,
        )

    def set_frequency(self, freq: Frequency):
        self.freq = Frequency(freq)

    def set_end_mode(self, end_type: RecurrenceEndType):
        self.end_type = RecurrenceEndType(end_type)

    def set_until(self, token: Optional[str]):
        self.until = token or None

    def set_count(self, count: int):
        if count <= 0:
            raise ValueError(f"count must be positive, got {count}")
        self.count = count

    def toggle_day(self, day: WeekdayCode):
        """Add or remove a weekday, keeping the selection in week order."""
        day = WeekdayCode(day)
        if day in self.by_day:
            self.by_day.remove(day)
        else:
            self.by_day.append(day)
            self.by_day.sort(key=_WEEKDAY_ORDER.index)

    def to_rule(self) -> RecurrenceRule:
        """The persisted view: values of inactive modes are left out."""
        if self.freq == Frequency.NONE:
            return RecurrenceRule()

        by_day = list(self.by_day) if self.freq == Frequency.WEEKLY else []
        if self.end_type == RecurrenceEndType.UNTIL and self.until:
            end = RecurrenceEnd(type=RecurrenceEndType.UNTIL, until=self.until)
        elif self.end_type == RecurrenceEndType.COUNT:
            end = RecurrenceEnd(type=RecurrenceEndType.COUNT, count=self.count)
        else:
            end = RecurrenceEnd()
        return RecurrenceRule(freq=self.freq, by_day=by_day, end=end)

    def encode(self) -> Optional[str]:
        return encode_recurrence_rule(self.to_rule())

    def __repr__(self):
        return (f"RecurrenceEditorState(freq={self.freq.value}, by_day={[d.value for d in self.by_day]}, "
                f"end={self.end_type.value}, until={self.until}, count={self.count})")


# ================================
# DISPLAY & GOOGLE RECURRENCE HELPERS
# ================================

def describe_recurrence(rule: Union[str, RecurrenceRule, None]) -> str:
    """Short label for a rule, e.g. "Weekly on Mon, Wed" or "Daily, 5 times"."""
    if not isinstance(rule, RecurrenceRule):
        rule = decode_recurrence_rule(rule)

    if rule.freq == Frequency.NONE:
        return "Does not repeat"
    if rule.freq == Frequency.DAILY:
        text = "Daily"
    elif rule.freq == Frequency.WEEKLY:
        text = "Weekly"
        if rule.by_day:
            text += " on " + ", ".join(WEEKDAY_LABELS[day] for day in rule.by_day)
    else:
        text = "Monthly"

    if rule.end.type == RecurrenceEndType.COUNT:
        text += f", {rule.end.count} times"
    elif rule.end.type == RecurrenceEndType.UNTIL:
        until = until_token_to_datetime(rule.end.until)
        text += f", until {until.strftime('%Y-%m-%d')}" if until else f", until {rule.end.until}"
    return text


def get_primary_recurrence_rule(recurrence: Optional[List[str]]) -> Optional[str]:
    """Google stores the RRULE first; EXDATE/RDATE lines follow it."""
    return recurrence[0] if recurrence else None


def set_primary_recurrence_rule(recurrence: Optional[List[str]], rule: Optional[str]) -> List[str]:
    """Replace the primary rule, keeping any extra lines. A None rule removes it."""
    extras = list(recurrence[1:]) if recurrence else []
    if not rule:
        return extras
    return [rule] + extras


def is_recurring_event(recurring_event_id: Optional[str] = None,
                       recurrence: Optional[List[str]] = None,
                       master_recurrence: Optional[List[str]] = None) -> bool:
    return bool(recurring_event_id or recurrence or master_recurrence)


def default_recurrence_scope(recurring_event_id: Optional[str] = None,
                             recurrence: Optional[List[str]] = None,
                             master_recurrence: Optional[List[str]] = None) -> RecurrenceScope:
    """
    Preselected scope for editing a possibly recurring event: a single
    occurrence edits only itself, a series master edits the whole series.
    """
    if recurring_event_id:
        return RecurrenceScope.THIS
    if recurrence or master_recurrence:
        return RecurrenceScope.ALL
    return RecurrenceScope.THIS


# ================================
# EXPANSION
# ================================

def _until_for_dateutil(rule: str, dtstart: datetime) -> str:
    """
    dateutil requires UNTIL to be UTC when dtstart is aware and naive when it
    is naive. Normalize the token so either kind of dtstart works.
    """
    decoded = decode_recurrence_rule(rule)
    if decoded.end.type != RecurrenceEndType.UNTIL:
        return rule
    until = until_token_to_datetime(decoded.end.until)
    if until is None:
        return rule
    if dtstart.tzinfo is None:
        token = until.replace(tzinfo=None).strftime("%Y%m%dT%H%M%S")
    else:
        token = until.strftime(UNTIL_TOKEN_FORMAT)
    return rule.replace(f"UNTIL={decoded.end.until}", f"UNTIL={token}")


def expand_occurrences(rule: Optional[str], dtstart: datetime, window_start: datetime,
                       window_end: datetime) -> List[datetime]:
    """
    Expand a recurrence rule into the occurrence start times that fall within
    [window_start, window_end].

    A rule that does not recur yields dtstart alone when it is in the window.
    An unparseable rule yields nothing.
    """
    try:
        if decode_recurrence_rule(rule).freq == Frequency.NONE:
            return [dtstart] if window_start <= dtstart <= window_end else []
        parsed = rrule.rrulestr(_until_for_dateutil(rule, dtstart), dtstart=dtstart)
        return list(parsed.between(window_start, window_end, inc=True))
    except (ValueError, TypeError) as e:
        logger.warning(f"RRULE expansion failed for {rule!r}: {e}")
        return []
