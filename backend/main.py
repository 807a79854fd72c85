"""
Day Planner - FastAPI Backend
Stateless HTTP access to the day-scheduling engine and the task timer.
Clients own their data and send a snapshot with every request.
"""

from typing import Optional, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import get_server_config, get_planner_config, get_config_summary, default_settings
from models import (
    Task, Settings, HealthStatus, ScheduleRequest, ScheduleRangeRequest, DaySchedule,
    TimerRequest, TimerResponse, ParseTaskRequest, ParsedTask, TaskListRequest, TaskListResponse,
)
from scheduler import blocks_for_date, classify_day, block_counts_by_task
from task_queue import (
    parse_smart_duration, add_task, move_task, duplicate_task, delete_task, clear_completed,
    next_task_id, total_incomplete_duration,
)
from time_utils import (
    current_time_minutes, today_str, add_days, minutes_to_time, format_time, format_elapsed,
    MINUTES_PER_DAY,
)
from timer import (
    TimerError, MIN_DURATION, task_status, start_task, pause_active_task, complete_active_task,
    cancel_active_task, adjust_task_time, toggle_task_complete,
)
from logger import logger


VERSION = "1.0.0"

app = FastAPI(
    title="Day Planner",
    description="Packs an ordered task backlog around fixed events, one day at a time",
    version=VERSION,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_server_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _resolve_clock(settings: Settings, now: Optional[int], today: Optional[str]):
    """Fill in the current minute and date from the wall clock when the client omits them."""
    if now is None:
        now = current_time_minutes(settings.time_offset)
    return now, today or today_str()


def _day_schedule(request: ScheduleRequest, settings: Settings, selected_date: str, now: int, today: str) -> DaySchedule:
    blocks = blocks_for_date(
        request.tasks, request.events, settings, request.timer, selected_date, now, today
    )
    return DaySchedule(
        date=selected_date,
        day_kind=classify_day(selected_date, today),
        now=now,
        now_label=format_time(minutes_to_time(now % MINUTES_PER_DAY)),
        blocks=blocks,
        block_counts=block_counts_by_task(blocks),
    )


# ============================================
# HEALTH & CONFIG
# ============================================

@app.get("/health", response_model=HealthStatus)
@app.get("/api/health", response_model=HealthStatus)
async def health_check():
    """Check API health."""
    return HealthStatus(status="healthy", version=VERSION)


@app.get("/api/config")
async def get_config():
    """Get the active configuration summary."""
    return get_config_summary()


# ============================================
# SCHEDULE ENDPOINTS
# ============================================

@app.post("/api/schedule/day", response_model=DaySchedule)
async def schedule_day_endpoint(request: ScheduleRequest):
    """Build the block timeline for one day."""
    settings = request.settings or default_settings()
    now, today = _resolve_clock(settings, request.now, request.today)
    return _day_schedule(request, settings, request.selected_date or today, now, today)


@app.post("/api/schedule/range", response_model=List[DaySchedule])
async def schedule_range_endpoint(request: ScheduleRangeRequest):
    """Build timelines for consecutive days (multi-day calendar view)."""
    max_days = get_planner_config().max_range_days
    if request.days > max_days:
        raise HTTPException(status_code=400, detail=f"At most {max_days} days per request")

    settings = request.settings or default_settings()
    now, today = _resolve_clock(settings, request.now, request.today)
    start = request.selected_date or today
    return [
        _day_schedule(request, settings, add_days(start, offset), now, today)
        for offset in range(request.days)
    ]


# ============================================
# TASK TIMER ENDPOINTS
# ============================================

TIMER_ACTIONS = ("start", "pause", "complete", "cancel", "adjust", "toggle")


@app.post("/api/timer/{action}", response_model=TimerResponse)
async def timer_action_endpoint(action: str, request: TimerRequest):
    """Apply a timer transition to the posted task list."""
    if action not in TIMER_ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown timer action: {action}")

    settings = request.settings or default_settings()
    now, today = _resolve_clock(settings, request.now, request.today)

    try:
        if action == "start":
            tasks, timer = start_task(request.tasks, request.timer, now, today)
        elif action == "pause":
            tasks, timer = pause_active_task(request.tasks, request.timer, now, today)
        elif action == "complete":
            tasks, timer = complete_active_task(
                request.tasks, request.timer, now, today, settings.auto_start_next
            )
        elif action == "cancel":
            tasks, timer = cancel_active_task(request.tasks, request.timer)
        elif action == "adjust":
            tasks, timer = adjust_task_time(request.tasks, request.timer, request.minutes)
        else:
            if request.task_id is None:
                raise HTTPException(status_code=400, detail="toggle needs a taskId")
            tasks, timer = toggle_task_complete(
                request.tasks, request.timer, request.task_id, now, today, settings.auto_start_next
            )
    except TimerError as e:
        logger.warning(f"Timer {action} rejected: {e}")
        raise HTTPException(status_code=409, detail=str(e))

    status = None
    if timer.active_task_id is not None:
        active = next(t for t in tasks if t.id == timer.active_task_id)
        status = task_status(active, timer)
    return TimerResponse(
        tasks=tasks, timer=timer, status=status, elapsed_label=format_elapsed(timer.elapsed_minutes),
    )


# ============================================
# TASK ENTRY
# ============================================

@app.post("/api/tasks/parse", response_model=ParsedTask)
async def parse_task_endpoint(request: ParseTaskRequest):
    """Split quick-entry text into name, duration and tag."""
    default = request.default_duration or get_planner_config().default_task_duration
    name, duration, tag_id = parse_smart_duration(request.line, default, request.tags)
    if not name:
        raise HTTPException(status_code=400, detail="Task name is empty")
    return ParsedTask(name=name, duration=duration, tag_id=tag_id)


TASK_LIST_ACTIONS = ("add", "move", "duplicate", "delete", "clear-completed")


@app.post("/api/tasks/{action}", response_model=TaskListResponse)
async def task_list_endpoint(action: str, request: TaskListRequest):
    """Apply a backlog edit to the posted task list; list order is priority order."""
    if action not in TASK_LIST_ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown task action: {action}")

    if action == "add":
        name, duration, tag_id = parse_smart_duration(
            request.line or "", get_planner_config().default_task_duration, request.tags
        )
        if not name:
            raise HTTPException(status_code=400, detail="Task name is empty")
        if duration < MIN_DURATION:
            raise HTTPException(status_code=400, detail=f"Tasks must be at least {MIN_DURATION} minutes")
        task = Task(id=next_task_id(request.tasks), name=name, planned_duration=duration, tag_id=tag_id)
        tasks = add_task(request.tasks, task, request.to_top)
    elif action == "move":
        tasks = move_task(request.tasks, request.from_index, request.to_index)
    elif request.task_id is None and action != "clear-completed":
        raise HTTPException(status_code=400, detail=f"{action} needs a taskId")
    elif action == "duplicate":
        tasks = duplicate_task(request.tasks, request.task_id)
    elif action == "delete":
        tasks = delete_task(request.tasks, request.task_id)
    else:
        tasks = clear_completed(request.tasks)

    return TaskListResponse(tasks=tasks, total_incomplete_duration=total_incomplete_duration(tasks))


# ============================================
# RUN SERVER
# ============================================

if __name__ == "__main__":
    import uvicorn
    server = get_server_config()
    uvicorn.run(app, host=server.host, port=server.port, log_level=server.log_level)
