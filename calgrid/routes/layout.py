"""
Layout API endpoints for the day view
"""

import pytz
from fastapi import APIRouter, HTTPException

from ..config import lookup_timezone
from ..schemas import (
    LayoutRequest, LayoutResponse, ItemLayoutOut, PositionedItemIn,
    ProjectionRequest, ProjectionResponse,
)
from ..scheduling import calculate_collision_layout, PositionedItem
from ..scheduling.utils.slot_utils import item_geometry
from ..services.projection import project_day

router = APIRouter()


def _layout_out(layouts):
    return {item_id: ItemLayoutOut(**layout.as_dict()) for item_id, layout in layouts.items()}


@router.post("/", response_model=LayoutResponse)
def compute_layout(request: LayoutRequest):
    """Side-by-side layout for one day's items."""
    items = [PositionedItem(item.id, item.start_minutes, item.end_minutes, kind=item.kind) for item in request.items]
    return LayoutResponse(layouts=_layout_out(calculate_collision_layout(items)))


@router.post("/project", response_model=ProjectionResponse)
def project_and_layout(request: ProjectionRequest):
    """
    Project raw task and Google event records onto one date, then lay them out.
    Records that cannot be placed on the day are left out of the response.
    """
    try:
        tz = lookup_timezone(request.timezone)
    except pytz.UnknownTimeZoneError:
        raise HTTPException(status_code=400, detail=f"Unknown timezone: {request.timezone}")

    items = project_day(request.day, request.tasks, request.events, tz)
    layouts = calculate_collision_layout(items)

    return ProjectionResponse(
        items=[
            PositionedItemIn(id=item.id, kind=item.kind, start_minutes=item.start_minutes, end_minutes=item.end_minutes)
            for item in items
        ],
        layouts=_layout_out(layouts),
        geometry={
            item.id: item_geometry(layouts[item.id], item.start_minutes, item.end_minutes)
            for item in items
        },
    )
