"""
Interaction API endpoints

Each calendar view owns one interaction controller. The client forwards its
pointer and drag events here and gets back the resulting state snapshot,
plus the mutation intent when an interaction finishes.
"""

from fastapi import APIRouter, HTTPException

from ..schemas import (
    SlotRequest, PointerDownRequest, DragBeginRequest, ViewCalendarsRequest, InteractionResult,
    InteractionStateOut,
)
from ..scheduling.interaction import InteractionController
from ..scheduling.utils.slot_utils import decode_slot_id
from ..services.interaction_service import interaction_service

router = APIRouter()


def _get_controller(view_id: str) -> InteractionController:
    controller = interaction_service.get_controller(view_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="View not found")
    return controller


def _slot_time(slot_id: str):
    time = decode_slot_id(slot_id)
    if time is None:
        raise HTTPException(status_code=400, detail=f"Invalid slot id: {slot_id}")
    return time


def _result(view_id: str, intent=None) -> InteractionResult:
    return InteractionResult(state=interaction_service.snapshot(view_id), intent=intent)

# ================================
# VIEWS
# ================================

@router.put("/{view_id}")
def open_view(view_id: str, request: ViewCalendarsRequest):
    """Register a view (or update its calendars) and resolve where new events go."""
    default_calendar = interaction_service.set_calendars(view_id, request.calendars, request.visible)
    return {
        "view_id": view_id,
        "default_calendar": default_calendar,
    }


@router.delete("/{view_id}")
def close_view(view_id: str):
    if not interaction_service.remove_controller(view_id):
        raise HTTPException(status_code=404, detail="View not found")
    return {"message": f"View {view_id} closed"}


@router.get("/{view_id}/state", response_model=InteractionStateOut)
def get_state(view_id: str):
    _get_controller(view_id)
    return interaction_service.snapshot(view_id)


@router.get("/{view_id}/intents")
def drain_intents(view_id: str):
    """Intents emitted by the view since the last call."""
    _get_controller(view_id)
    return {"intents": [intent.model_dump(mode="json") for intent in interaction_service.store.drain(view_id)]}

# ================================
# HOVER & CREATE
# ================================

@router.post("/{view_id}/hover", response_model=InteractionResult)
def hover(view_id: str, request: SlotRequest):
    controller = _get_controller(view_id)
    controller.on_slot_hover(_slot_time(request.slot_id))
    return _result(view_id)


@router.post("/{view_id}/leave", response_model=InteractionResult)
def leave(view_id: str):
    _get_controller(view_id).on_slot_leave()
    return _result(view_id)


@router.post("/{view_id}/pointer-down", response_model=InteractionResult)
def pointer_down(view_id: str, request: PointerDownRequest):
    controller = _get_controller(view_id)
    controller.on_pointer_down(_slot_time(request.slot_id), request.calendar_target)
    return _result(view_id)


@router.post("/{view_id}/pointer-move", response_model=InteractionResult)
def pointer_move(view_id: str, request: SlotRequest):
    controller = _get_controller(view_id)
    controller.on_pointer_move_over_slot(_slot_time(request.slot_id))
    return _result(view_id)


@router.post("/{view_id}/pointer-up", response_model=InteractionResult)
def pointer_up(view_id: str):
    intent = _get_controller(view_id).on_pointer_up()
    return _result(view_id, intent)


@router.post("/{view_id}/commit", response_model=InteractionResult)
def commit(view_id: str):
    """Save the pending creation. 400 when nothing is waiting for confirmation."""
    intent = _get_controller(view_id).commit()
    if intent is None:
        raise HTTPException(status_code=400, detail="No pending creation to commit")
    return _result(view_id, intent)


@router.post("/{view_id}/discard", response_model=InteractionResult)
def discard(view_id: str):
    _get_controller(view_id).discard()
    return _result(view_id)

# ================================
# MOVE / RESIZE
# ================================

@router.post("/{view_id}/drag/begin", response_model=InteractionResult)
def drag_begin(view_id: str, request: DragBeginRequest):
    _get_controller(view_id).begin_drag(request.data)
    return _result(view_id)


@router.post("/{view_id}/drag/over", response_model=InteractionResult)
def drag_over(view_id: str, request: SlotRequest):
    """Malformed slot ids are not drop targets and leave the state unchanged."""
    _get_controller(view_id).on_drag_over(request.slot_id)
    return _result(view_id)


@router.post("/{view_id}/drag/drop", response_model=InteractionResult)
def drag_drop(view_id: str, request: SlotRequest):
    intent = _get_controller(view_id).on_drop(request.slot_id)
    return _result(view_id, intent)


@router.post("/{view_id}/cancel", response_model=InteractionResult)
def cancel(view_id: str):
    _get_controller(view_id).cancel()
    return _result(view_id)
