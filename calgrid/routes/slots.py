"""
Slot identifier endpoints
"""

from typing import Optional

import pytz
from fastapi import APIRouter, HTTPException, Query

from ..config import lookup_timezone
from ..schemas import SlotOut
from ..scheduling.utils.slot_utils import parse_slot_id

router = APIRouter()


@router.get("/{slot_id}", response_model=SlotOut)
def get_slot(
    slot_id: str,
    timezone: Optional[str] = Query(None, description="Timezone for the decoded start, defaults to the configured one"),
):
    """Decode a slot id into its grid coordinate and local start time."""
    try:
        tz = lookup_timezone(timezone)
    except pytz.UnknownTimeZoneError:
        raise HTTPException(status_code=400, detail=f"Unknown timezone: {timezone}")

    coordinate = parse_slot_id(slot_id)
    if coordinate is None:
        raise HTTPException(status_code=404, detail="Slot not found")

    return SlotOut(
        slot_id=coordinate.to_slot_id(),
        day=coordinate.date,
        hour=coordinate.hour,
        minute_offset=coordinate.minute_offset,
        start=coordinate.to_datetime(tz),
    )
