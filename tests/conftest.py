"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime

import pytest
import pytz
from fastapi.testclient import TestClient

from calgrid.schemas import CalendarTarget, CalendarInfo, TaskSubject, EventSubject
from calgrid.scheduling.utils.slot_utils import localize
from calgrid.services.interaction_service import interaction_service

DAY = (2025, 3, 10)  # a Monday


@pytest.fixture
def tz():
    return pytz.UTC


@pytest.fixture
def at(tz):
    """Factory for aware datetimes on the test day: at(9, 30), at(9, 30, day=11)."""
    def make(hour, minute=0, day=DAY[2]):
        return localize(datetime(DAY[0], DAY[1], day, hour, minute), tz)
    return make


@pytest.fixture
def calendar_target():
    return CalendarTarget(account_id="acct-1", calendar_id="primary")


@pytest.fixture
def calendars():
    """One primary and one secondary calendar on the same account."""
    return [
        CalendarInfo(account_id="acct-1", calendar_id="primary", primary=True),
        CalendarInfo(account_id="acct-1", calendar_id="team"),
    ]


@pytest.fixture
def task_subject(at):
    return TaskSubject(id="task-1", start_time=at(14), duration_minutes=60)


@pytest.fixture
def event_subject(at):
    return EventSubject(
        account_id="acct-1",
        calendar_id="team",
        external_id="evt-1",
        current_start=at(14),
        current_end=at(15),
    )


@pytest.fixture
def client():
    """API client with a clean set of interaction views."""
    from calgrid.main import app
    interaction_service.view_controllers.clear()
    interaction_service.store.intents.clear()
    yield TestClient(app)
    interaction_service.view_controllers.clear()
    interaction_service.store.intents.clear()
