"""
Recurrence rule API endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
import pytz

from ..config import lookup_timezone
from ..models import RECURRENCE_SCOPE_LABELS
from ..schemas import (
    RecurrenceRule, RecurrenceDecodeRequest, RecurrenceEncodeResponse, RecurrenceExpandRequest,
    UntilConversionRequest, UntilConversionResponse,
)
from ..services.recurrence import (
    decode_recurrence_rule, encode_recurrence_rule, describe_recurrence, expand_occurrences,
    until_input_to_token, token_to_until_input, is_recurring_event, default_recurrence_scope,
)

router = APIRouter()


def _timezone_or_400(name):
    try:
        return lookup_timezone(name)
    except pytz.UnknownTimeZoneError:
        raise HTTPException(status_code=400, detail=f"Unknown timezone: {name}")


@router.post("/decode", response_model=RecurrenceRule)
def decode_rule(request: RecurrenceDecodeRequest):
    """Parse an RRULE string. Unsupported or missing rules decode to no recurrence."""
    return decode_recurrence_rule(request.rule)


@router.post("/encode", response_model=RecurrenceEncodeResponse)
def encode_rule(rule: RecurrenceRule):
    return RecurrenceEncodeResponse(rule=encode_recurrence_rule(rule), description=describe_recurrence(rule))


@router.post("/expand")
def expand_rule(request: RecurrenceExpandRequest):
    """Occurrence start times of a rule inside the requested window."""
    occurrences = expand_occurrences(request.rule, request.dtstart, request.window_start, request.window_end)
    return {
        "rule": request.rule,
        "count": len(occurrences),
        "occurrences": occurrences,
    }


@router.post("/until/to-token", response_model=UntilConversionResponse)
def until_to_token(request: UntilConversionRequest):
    """Local YYYY-MM-DDTHH:MM editor value to a UTC UNTIL token."""
    tz = _timezone_or_400(request.timezone)
    token = until_input_to_token(request.value, tz)
    if request.value and token is None:
        raise HTTPException(status_code=400, detail="Invalid date-time value")
    return UntilConversionResponse(value=token)


@router.post("/until/to-input", response_model=UntilConversionResponse)
def until_to_input(request: UntilConversionRequest):
    """UNTIL token to the local editor value."""
    tz = _timezone_or_400(request.timezone)
    value = token_to_until_input(request.value, tz)
    if request.value and value is None:
        raise HTTPException(status_code=400, detail="Invalid UNTIL token")
    return UntilConversionResponse(value=value)


@router.get("/scopes")
def edit_scopes(
    recurring_event_id: Optional[str] = Query(None, description="Set when editing one occurrence of a series"),
    recurrence: Optional[List[str]] = Query(None, description="The event's recurrence lines when it is a series master"),
):
    """Edit scope choices for an event, with the preselected default."""
    if not is_recurring_event(recurring_event_id, recurrence):
        return {"recurring": False, "default": None, "options": []}
    return {
        "recurring": True,
        "default": default_recurrence_scope(recurring_event_id, recurrence),
        "options": [{"value": scope, "label": label} for scope, label in RECURRENCE_SCOPE_LABELS.items()],
    }
