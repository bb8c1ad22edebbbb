"""
Tests for the interaction state machine.
"""

from datetime import datetime

import pytest
import pytz

from calgrid.models import InteractionPhase, DragType
from calgrid.schemas import (
    CalendarTarget, CreateDrag, CreateIntent, EventSubject, MoveDrag, MoveIntent, ResizeEndDrag, ResizeStartDrag,
    TaskSubject,
)
from calgrid.scheduling.interaction import (
    InteractionController, PreviewThrottle, resolve_default_calendar,
    Creating, Dragging, Hovering, Idle, PendingConfirmation,
)


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def controller(calendar_target, emitted):
    return InteractionController(default_calendar=calendar_target, on_intent=emitted.append, pixels_per_hour=80)


class TestDefaultCalendar:
    def test_visible_primary_wins(self, calendars):
        visible = [CalendarTarget(account_id="acct-1", calendar_id="team"),
                   CalendarTarget(account_id="acct-1", calendar_id="primary")]
        assert resolve_default_calendar(visible, calendars).calendar_id == "primary"

    def test_first_visible_when_primary_hidden(self, calendars):
        visible = [CalendarTarget(account_id="acct-1", calendar_id="team")]
        assert resolve_default_calendar(visible, calendars).calendar_id == "team"

    def test_none_visible(self, calendars):
        assert resolve_default_calendar([], calendars) is None


class TestHover:
    def test_hover_shows_one_slot_ghost(self, controller, at):
        controller.on_slot_hover(at(9))
        assert isinstance(controller.state, Hovering)
        preview = controller.throttle.flush()
        assert preview.top == 720
        assert preview.height == 24  # 15 minutes is under the visual floor

    def test_leave_returns_to_idle(self, controller, at):
        controller.on_slot_hover(at(9))
        controller.on_slot_leave()
        assert isinstance(controller.state, Idle)
        assert controller.throttle.flush() is None

    def test_hover_ignored_while_creating(self, controller, at):
        controller.on_pointer_down(at(9))
        controller.on_slot_hover(at(11))
        assert controller.state.phase == InteractionPhase.CREATING


class TestDragToCreate:
    def test_pointer_down_needs_a_calendar(self, emitted, at):
        controller = InteractionController(on_intent=emitted.append)
        controller.on_slot_hover(at(9))
        controller.on_pointer_down(at(9))
        assert isinstance(controller.state, Hovering)

    def test_pointer_down_starts_default_block(self, controller, calendar_target, at):
        controller.on_pointer_down(at(9))
        state = controller.state
        assert isinstance(state, Creating)
        assert (state.anchor, state.start, state.end) == (at(9), at(9), at(9, 30))
        assert state.calendar_target == calendar_target

    def test_explicit_calendar_overrides_default(self, controller, at):
        other = CalendarTarget(account_id="acct-2", calendar_id="work")
        controller.on_pointer_down(at(9), other)
        assert controller.state.calendar_target == other

    def test_forward_then_backward_drag(self, controller, at):
        controller.on_pointer_down(at(9))
        controller.on_pointer_move_over_slot(at(10))
        assert (controller.state.start, controller.state.end) == (at(9), at(10, 15))
        controller.on_pointer_move_over_slot(at(8))
        assert (controller.state.start, controller.state.end) == (at(8), at(9, 30))
        assert controller.state.anchor == at(9)

    def test_move_to_other_day_is_ignored(self, controller, at):
        controller.on_pointer_down(at(9))
        controller.on_pointer_move_over_slot(at(10, day=11))
        assert (controller.state.start, controller.state.end) == (at(9), at(9, 30))

    def test_release_then_commit(self, controller, emitted, calendar_target, at):
        controller.on_pointer_down(at(9))
        controller.on_pointer_move_over_slot(at(10, 45))
        assert controller.on_pointer_up() is None
        assert isinstance(controller.state, PendingConfirmation)
        assert emitted == []

        pending = controller.build_pending_intent()
        assert pending == CreateIntent(calendar_target=calendar_target, start=at(9), end=at(11))

        assert controller.commit() == pending
        assert emitted == [pending]
        assert isinstance(controller.state, Idle)

    def test_click_creates_default_duration(self, controller, at):
        controller.on_pointer_down(at(13, 15))
        controller.on_pointer_up()
        assert controller.creation_times() == (at(13, 15), at(13, 45))

    def test_discard_emits_nothing(self, controller, emitted, at):
        controller.on_pointer_down(at(9))
        controller.on_pointer_up()
        controller.discard()
        assert isinstance(controller.state, Idle)
        assert controller.build_pending_intent() is None
        assert emitted == []

    def test_commit_outside_pending_is_noop(self, controller, emitted):
        assert controller.commit() is None
        assert emitted == []

    def test_create_drag_payload_starts_creation(self, controller, calendar_target, tz, at):
        controller.begin_drag(CreateDrag(anchor_time=at(15), calendar_target=calendar_target))
        assert isinstance(controller.state, Creating)
        controller.on_drop("slot-2025-03-10-15-30", tz)
        assert isinstance(controller.state, PendingConfirmation)
        assert controller.state.end == at(15, 45)


class TestMoveAndResize:
    def test_move_drop_emits_intent(self, controller, emitted, task_subject, tz, at):
        controller.begin_drag(MoveDrag(subject=task_subject))
        assert isinstance(controller.state, Dragging)
        assert controller.state.drag_type == DragType.MOVE

        controller.on_drag_over("slot-2025-03-10-16-0", tz)
        assert controller.state.target == at(16)

        intent = controller.on_drop("slot-2025-03-10-16-30", tz)
        assert isinstance(intent, MoveIntent)
        assert intent.new_start == at(16, 30)
        assert emitted == [intent]
        assert isinstance(controller.state, Idle)

    def test_drag_over_malformed_slot_keeps_target(self, controller, task_subject, tz, at):
        controller.begin_drag(MoveDrag(subject=task_subject))
        controller.on_drag_over("slot-2025-03-10-16-0", tz)
        controller.on_drag_over("not-a-slot", tz)
        assert controller.state.target == at(16)

    def test_drop_on_malformed_slot_changes_nothing(self, controller, emitted, task_subject, tz, at):
        controller.begin_drag(MoveDrag(subject=task_subject))
        controller.on_drag_over("slot-2025-03-10-16-0", tz)
        assert controller.on_drop("slot-2025-03-10-99-0", tz) is None
        assert isinstance(controller.state, Dragging)
        assert controller.state.target == at(16)
        assert emitted == []

        controller.cancel()
        assert isinstance(controller.state, Idle)
        assert emitted == []

    def test_cross_day_resize_reverts(self, controller, emitted, task_subject, tz):
        controller.begin_drag(ResizeEndDrag(subject=task_subject))
        assert controller.on_drop("slot-2025-03-11-9-0", tz) is None
        assert isinstance(controller.state, Idle)
        assert emitted == []

    def test_resize_preview_follows_pointer(self, controller, task_subject, at):
        controller.begin_drag(ResizeEndDrag(subject=task_subject))
        controller.on_pointer_move_over_slot(at(16))
        preview = controller.throttle.flush()
        assert preview.top == 1120
        assert preview.height == 180

    def test_pointer_up_finishes_drag(self, controller, emitted, event_subject, at):
        controller.begin_drag(ResizeStartDrag(subject=event_subject))
        controller.on_pointer_move_over_slot(at(13))
        intent = controller.on_pointer_up()
        assert intent.new_start == at(13)
        assert intent.new_duration_minutes == 120
        assert emitted == [intent]

    def test_pointer_up_without_target_cancels(self, controller, emitted, task_subject):
        controller.begin_drag(MoveDrag(subject=task_subject))
        assert controller.on_pointer_up() is None
        assert isinstance(controller.state, Idle)
        assert emitted == []

    def test_begin_drag_ignored_while_creating(self, controller, task_subject, at):
        controller.on_pointer_down(at(9))
        controller.begin_drag(MoveDrag(subject=task_subject))
        assert isinstance(controller.state, Creating)


class TestCancellationAndHandoff:
    @pytest.mark.parametrize("setup", ["hover", "create", "pending", "drag"])
    def test_cancel_from_any_state(self, controller, emitted, task_subject, at, setup):
        if setup == "hover":
            controller.on_slot_hover(at(9))
        elif setup == "create":
            controller.on_pointer_down(at(9))
        elif setup == "pending":
            controller.on_pointer_down(at(9))
            controller.on_pointer_up()
        else:
            controller.begin_drag(MoveDrag(subject=task_subject))
            controller.on_pointer_move_over_slot(at(11))

        controller.cancel()
        assert isinstance(controller.state, Idle)
        assert controller.preview is None
        assert not controller.throttle.has_pending
        assert emitted == []

    def test_store_failure_does_not_block_reset(self, calendar_target, task_subject, tz, caplog):
        def failing_store(intent):
            raise RuntimeError("store offline")

        controller = InteractionController(default_calendar=calendar_target, on_intent=failing_store)
        controller.begin_drag(MoveDrag(subject=task_subject))
        intent = controller.on_drop("slot-2025-03-10-10-0", tz)
        assert isinstance(intent, MoveIntent)
        assert isinstance(controller.state, Idle)
        assert "store offline" in caplog.text


class TestPreviewThrottle:
    def test_one_computation_per_frame(self, calendar_target, at):
        frames = []
        controller = InteractionController(default_calendar=calendar_target, request_frame=frames.append)
        controller.on_pointer_down(at(9))
        controller.on_pointer_move_over_slot(at(10))
        controller.on_pointer_move_over_slot(at(11))
        assert len(frames) == 1

        preview = frames[0]()
        assert controller.throttle.computations == 1
        # Last write wins
        assert preview.height == duration_height(at(9), at(11, 15))

        controller.on_pointer_move_over_slot(at(12))
        assert len(frames) == 2

    def test_flush_without_pending_keeps_current(self):
        throttle = PreviewThrottle()
        assert throttle.flush() is None
        assert throttle.computations == 0


def duration_height(start, end, pixels_per_hour=80):
    return (end - start).total_seconds() / 3600 * pixels_per_hour


class TestViewTimezone:
    """A New York view (EDT, UTC-4) editing subjects delivered in UTC."""

    @pytest.fixture
    def new_york(self):
        return pytz.timezone("America/New_York")

    @pytest.fixture
    def utc_event(self):
        # 15:00-20:00 in New York
        return EventSubject(account_id="acct-1", calendar_id="team", external_id="evt-1",
                            current_start=datetime(2025, 3, 10, 19, 0, tzinfo=pytz.UTC),
                            current_end=datetime(2025, 3, 11, 0, 0, tzinfo=pytz.UTC))

    def test_resize_end_past_utc_midnight(self, controller, emitted, utc_event, new_york):
        controller.begin_drag(ResizeEndDrag(subject=utc_event))
        controller.on_drag_over("slot-2025-03-10-21-0", new_york)
        preview = controller.throttle.flush()
        assert preview.top == 1200
        assert preview.height == 500

        intent = controller.on_drop("slot-2025-03-10-21-0", new_york)
        assert intent.new_end == new_york.localize(datetime(2025, 3, 10, 21, 15))
        assert emitted == [intent]

    def test_resize_start_keeps_local_day(self, controller, utc_event, new_york):
        controller.begin_drag(ResizeStartDrag(subject=utc_event))
        intent = controller.on_drop("slot-2025-03-10-8-0", new_york)
        assert intent.new_start == new_york.localize(datetime(2025, 3, 10, 8, 0))
        assert intent.new_duration_minutes == 720

    def test_resize_to_next_local_day_reverts(self, controller, emitted, utc_event, new_york):
        controller.begin_drag(ResizeEndDrag(subject=utc_event))
        assert controller.on_drop("slot-2025-03-11-1-0", new_york) is None
        assert isinstance(controller.state, Idle)
        assert emitted == []

    def test_move_to_view_slot(self, controller, utc_event, new_york):
        controller.begin_drag(MoveDrag(subject=utc_event))
        intent = controller.on_drop("slot-2025-03-10-9-0", new_york)
        assert intent.new_start == new_york.localize(datetime(2025, 3, 10, 9, 0))
        assert intent.duration_minutes == 300

    def test_create_drag_with_utc_anchor(self, controller, calendar_target, new_york):
        anchor = datetime(2025, 3, 10, 13, 0, tzinfo=pytz.UTC)  # 09:00 in New York
        controller.begin_drag(CreateDrag(anchor_time=anchor, calendar_target=calendar_target))
        controller.on_drop("slot-2025-03-10-9-45", new_york)
        assert isinstance(controller.state, PendingConfirmation)
        assert controller.creation_times() == (new_york.localize(datetime(2025, 3, 10, 9, 0)),
                                               new_york.localize(datetime(2025, 3, 10, 10, 0)))

    def test_naive_subject_resize(self, controller, emitted, new_york):
        task = TaskSubject(id="task-1", start_time=datetime(2025, 3, 10, 14, 0), duration_minutes=60)
        controller.begin_drag(ResizeEndDrag(subject=task))
        intent = controller.on_drop("slot-2025-03-10-16-0", new_york)
        assert intent is not None
        assert intent.new_end == new_york.localize(datetime(2025, 3, 10, 16, 15))
        assert emitted == [intent]
