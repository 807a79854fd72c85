"""
Day Planner - Task Timer Module
Start / pause / resume / complete / cancel transitions for backlog tasks.

Each operation takes the task list and the live TimerState and returns new
ones; inputs are never modified. Only one task runs at a time.
"""

from typing import Optional, List, Tuple

from models import (
    Task, Event, TimerState, TaskStatus, WorkSegment, OpenPause,
)
from time_utils import time_to_minutes
from intervals import clip_intervals, covered_minutes
from logger import logger


TimerResult = Tuple[List[Task], TimerState]
MIN_DURATION = 5


class TimerError(ValueError):
    """Raised when a timer transition is not allowed from the current state."""


# ============================================
# STATE INSPECTION
# ============================================

def task_status(task: Task, timer: TimerState) -> TaskStatus:
    if task.completed:
        return TaskStatus.COMPLETED
    if timer.active_task_id == task.id:
        return TaskStatus.RUNNING
    if task.paused_at_minute is not None or task.is_paused:
        return TaskStatus.PAUSED
    return TaskStatus.NOT_STARTED


def open_pause_owners(tasks: List[Task]) -> List[int]:
    """Ids of tasks holding an open pause."""
    return [t.id for t in tasks if t.is_paused]


def head_task(tasks: List[Task]) -> Optional[Task]:
    """First incomplete task: the only one the timer ever runs."""
    return next((t for t in tasks if not t.completed), None)


def check_single_open_pause(tasks: List[Task]) -> None:
    """
    At most one open pause, and only on the head task.

    Pauses are only ever shown for the head task, so an open pause anywhere
    else means the backlog was reordered around a paused task.
    """
    owners = open_pause_owners(tasks)
    if len(owners) > 1:
        raise TimerError(f"Multiple open pauses on tasks {owners}")
    head = head_task(tasks)
    if owners and (head is None or owners[0] != head.id):
        raise TimerError(f"Task {owners[0]} is paused but not first in the queue")


def restore_elapsed(task: Task, now: int) -> int:
    """Elapsed work minutes of a started task, recomputed from its pause history."""
    if not task.is_started:
        return 0
    gap = sum(p.resolved_end(now) - p.start_minute for p in task.pause_events)
    return max(0, now - task.started_at_minute - gap)


def total_gap_minutes(
    events: List[Event],
    pause_events: list,
    task_start: int,
    now: int,
    task_date: str,
) -> int:
    """
    Non-working minutes inside a running task's window [task_start, now).

    Events on the task's date and its pauses are merged first so time spent
    paused during a meeting is only counted once.
    """
    ranges = [
        (time_to_minutes(e.start), time_to_minutes(e.end))
        for e in events if e.date == task_date
    ]
    ranges += [(p.start_minute, p.resolved_end(now)) for p in pause_events]
    return covered_minutes(clip_intervals(ranges, task_start, now))


# ============================================
# HELPERS
# ============================================

def _index_of(tasks: List[Task], task_id: int) -> int:
    for i, task in enumerate(tasks):
        if task.id == task_id:
            return i
    raise TimerError(f"Task {task_id} not found")


def _replace(tasks: List[Task], idx: int, task: Task) -> List[Task]:
    updated = list(tasks)
    updated[idx] = task
    return updated


def _segment_start(task: Task) -> int:
    return (task.started_at_minute or 0) + task.paused_elapsed + task.pause_gap_minutes


def _with_segment(task: Task, now: int, today: str) -> List[WorkSegment]:
    segments = list(task.work_segments)
    start = _segment_start(task)
    if now > start:
        segments.append(WorkSegment(start_minute=start, end_minute=now, date=today))
    return segments


def _close_pauses(task: Task, now: int) -> Task:
    if not task.is_paused:
        return task
    pauses = [p.close(now) if isinstance(p, OpenPause) else p for p in task.pause_events]
    return task.model_copy(update={"pause_events": pauses})


def _mark_running(task: Task, now: int, today: str) -> Task:
    """Flag first start, or fold the pause that just ended into the gap total."""
    update = {}
    if task.started_at_minute is None:
        update["started_at_minute"] = now
        update["started_at_date"] = today
    if task.paused_at_minute is not None:
        update["pause_gap_minutes"] = task.pause_gap_minutes + max(0, now - task.paused_at_minute)
        update["paused_at_minute"] = None
    return _close_pauses(task.model_copy(update=update), now)


def _reset_progress(task: Task) -> Task:
    return task.model_copy(update={
        "started_at_minute": None,
        "started_at_date": None,
        "paused_at_minute": None,
        "pause_gap_minutes": 0,
        "paused_elapsed": 0,
        "work_segments": [],
        "pause_events": [],
    })


def _require_active(tasks: List[Task], timer: TimerState) -> int:
    if timer.active_task_id is None:
        raise TimerError("No task is running")
    return _index_of(tasks, timer.active_task_id)


# ============================================
# TRANSITIONS
# ============================================

def start_task(tasks: List[Task], timer: TimerState, now: int, today: str) -> TimerResult:
    """
    Run the head task, the first incomplete one in list order.

    Resuming a paused head closes its open pause and adds the pause length
    to its gap total. The timer picks up from the task's paused elapsed
    minutes. To work on another task, move it to the front first.
    """
    head = head_task(tasks)
    if head is None:
        raise TimerError("No incomplete task to start")
    if timer.active_task_id == head.id:
        return list(tasks), timer
    if timer.active_task_id is not None:
        raise TimerError(f"Task {timer.active_task_id} is already running")
    check_single_open_pause(tasks)

    idx = _index_of(tasks, head.id)
    task = _mark_running(head, now, today)
    logger.info(f"Task {task.id} running from {task.paused_elapsed}m elapsed")
    return _replace(tasks, idx, task), TimerState(active_task_id=task.id, elapsed_minutes=task.paused_elapsed)


def pause_active_task(tasks: List[Task], timer: TimerState, now: int, today: str) -> TimerResult:
    """Stop the clock on the running task, recording its work segment and an open pause."""
    idx = _require_active(tasks, timer)
    if open_pause_owners(tasks):
        raise TimerError(f"Task {open_pause_owners(tasks)[0]} already holds an open pause")

    task = tasks[idx]
    task = task.model_copy(update={
        "paused_elapsed": timer.elapsed_minutes,
        "paused_at_minute": now,
        "work_segments": _with_segment(task, now, today),
        "pause_events": [*task.pause_events, OpenPause(start_minute=now, date=today)],
    })
    logger.info(f"Task {task.id} paused at {timer.elapsed_minutes}m")
    return _replace(tasks, idx, task), TimerState()


def complete_active_task(
    tasks: List[Task],
    timer: TimerState,
    now: int,
    today: str,
    auto_start_next: bool = False,
) -> TimerResult:
    """Finish the running task and optionally start the next incomplete one."""
    idx = _require_active(tasks, timer)
    task = tasks[idx]
    task = task.model_copy(update={
        "completed": True,
        "actual_duration": timer.elapsed_minutes,
        "work_segments": _with_segment(task, now, today),
        "paused_elapsed": 0,
        "paused_at_minute": None,
        "pause_events": [],
    })
    tasks = _replace(tasks, idx, task)
    logger.info(f"Task {task.id} completed after {timer.elapsed_minutes}m")

    if auto_start_next and any(not t.completed for t in tasks):
        return start_task(tasks, TimerState(), now, today)
    return tasks, TimerState()


def cancel_active_task(tasks: List[Task], timer: TimerState) -> TimerResult:
    """Throw away the running task's progress; it goes back to not started."""
    idx = _require_active(tasks, timer)
    logger.info(f"Task {tasks[idx].id} cancelled")
    return _replace(tasks, idx, _reset_progress(tasks[idx])), TimerState()


def adjust_task_time(tasks: List[Task], timer: TimerState, minutes: int) -> TimerResult:
    """Grow or shrink the running task's estimate, never below five minutes."""
    idx = _require_active(tasks, timer)
    task = tasks[idx]
    adjusted = max(MIN_DURATION, task.effective_duration + minutes)
    return _replace(tasks, idx, task.model_copy(update={"adjusted_duration": adjusted})), timer


def toggle_task_complete(
    tasks: List[Task],
    timer: TimerState,
    task_id: int,
    now: int,
    today: str,
    auto_start_next: bool = False,
) -> TimerResult:
    """
    Check a task off the list, or put a completed task back.

    Completing the running task behaves like complete_active_task. A task
    completed while idle keeps the work it already logged as its actual
    duration. Un-completing wipes all progress.
    """
    idx = _index_of(tasks, task_id)
    task = tasks[idx]

    if task.completed:
        task = _reset_progress(task).model_copy(update={"completed": False, "actual_duration": None})
        return _replace(tasks, idx, task), timer

    if timer.active_task_id == task_id:
        return complete_active_task(tasks, timer, now, today, auto_start_next)

    worked = sum(seg.end_minute - seg.start_minute for seg in task.work_segments)
    task = task.model_copy(update={
        "completed": True,
        "actual_duration": worked,
        "paused_elapsed": 0,
        "paused_at_minute": None,
        "pause_events": [],
    })
    return _replace(tasks, idx, task), timer
