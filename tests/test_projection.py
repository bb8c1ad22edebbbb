"""
Tests for projecting task and Google event records onto a day.
"""

import logging
from datetime import date, datetime

import pytz

from calgrid.models import ItemKind
from calgrid.schemas import TaskRecord, GoogleEventRecord
from calgrid.scheduling import calculate_collision_layout, PositionedItem
from calgrid.services.projection import is_all_day_event, project_day, project_event, project_task

DAY = date(2025, 3, 10)


def event(event_id, start, end):
    return GoogleEventRecord(id=event_id, start={"dateTime": start}, end={"dateTime": end})


class TestTasks:
    def test_scheduled_task(self, at, tz):
        task = TaskRecord(id="t1", start_time=at(9, 30), duration_minutes=45)
        assert project_task(task, DAY, tz) == PositionedItem("t1", 570, 615, kind=ItemKind.TASK)

    def test_naive_start_is_local_time(self):
        berlin = pytz.timezone("Europe/Berlin")
        task = TaskRecord(id="t1", start_time=datetime(2025, 3, 10, 9), duration_minutes=30)
        assert project_task(task, DAY, berlin).start_minutes == 540

    def test_unscheduled_or_other_day_is_skipped(self, at, tz):
        assert project_task(TaskRecord(id="t1", duration_minutes=30), DAY, tz) is None
        assert project_task(TaskRecord(id="t2", start_time=at(9)), DAY, tz) is None
        assert project_task(TaskRecord(id="t3", start_time=at(9, day=11), duration_minutes=30), DAY, tz) is None

    def test_clipped_at_midnight(self, at, tz):
        task = TaskRecord(id="late", start_time=at(23), duration_minutes=120)
        assert project_task(task, DAY, tz).end_minutes == 1440


class TestEvents:
    def test_offset_converted_to_view_timezone(self, tz):
        item = project_event(event("e1", "2025-03-10T09:00:00+01:00", "2025-03-10T10:00:00+01:00"), DAY, tz)
        assert (item.start_minutes, item.end_minutes) == (480, 540)
        assert item.kind == ItemKind.EXTERNAL_EVENT

    def test_all_day_events_are_left_out(self, tz):
        record = GoogleEventRecord(id="holiday", start={"date": "2025-03-10"}, end={"date": "2025-03-11"})
        assert is_all_day_event(record)
        assert project_event(record, DAY, tz) is None

    def test_malformed_event_is_dropped(self, tz, caplog):
        caplog.set_level(logging.DEBUG, logger="calgrid.services.projection")
        assert project_event(event("bad", "yesterday-ish", "2025-03-10T10:00:00Z"), DAY, tz) is None
        assert project_event(GoogleEventRecord(id="empty"), DAY, tz) is None
        assert "Dropping event bad" in caplog.text

    def test_inverted_event_is_dropped(self, tz):
        assert project_event(event("inv", "2025-03-10T10:00:00Z", "2025-03-10T09:00:00Z"), DAY, tz) is None


class TestProjectDay:
    def test_mixed_day_feeds_layout(self, at, tz):
        items = project_day(
            DAY,
            tasks=[TaskRecord(id="t1", start_time=at(9), duration_minutes=30),
                   TaskRecord(id="backlog", duration_minutes=30)],
            events=[event("e1", "2025-03-10T09:10:00Z", "2025-03-10T09:40:00Z"),
                    event("broken", "", "")],
            tz=tz,
        )
        assert [i.id for i in items] == ["t1", "e1"]

        layout = calculate_collision_layout(items)
        assert (layout["t1"].column_index, layout["e1"].column_index) == (0, 1)
        assert layout["t1"].total_columns == 2
