"""Builders shared by the planner tests."""

from __future__ import annotations

from models import Task, Event, Settings

TODAY = "2026-02-06"
TOMORROW = "2026-02-07"
YESTERDAY = "2026-02-05"


def hm(time_str: str) -> int:
    """Minutes since midnight for an HH:MM literal."""
    hours, minutes = time_str.split(":")
    return int(hours) * 60 + int(minutes)


def make_task(task_id: int, duration: int, **fields) -> Task:
    return Task(id=task_id, name=f"Task {task_id}", planned_duration=duration, **fields)


def make_event(event_id: int, start: str, end: str, date: str = TODAY, **fields) -> Event:
    return Event(id=event_id, name=f"Event {event_id}", start=start, end=end, date=date, **fields)


def workday_settings(**overrides) -> Settings:
    """09:00-17:00 task window inside a 06:00-23:59 display window."""
    values = dict(
        workday_start="09:00",
        workday_end="17:00",
        extended_start="06:00",
        extended_end="23:59",
        use_extended_hours=True,
        restrict_tasks_to_work_hours=True,
        min_fragment_minutes=5,
    )
    values.update(overrides)
    return Settings(**values)


def task_blocks(blocks):
    return [b for b in blocks if b.kind == "task"]


def spans(blocks):
    return [(b.start_minute, b.end_minute) for b in blocks]
