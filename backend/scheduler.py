"""
Day Planner - Day Scheduling Engine
Builds the timeline for one calendar day: fixed events, packed backlog tasks,
pause blocks and completed-work history.

Everything here is pure. The caller passes a snapshot of tasks, events and
settings together with the live timer and the current minute; nothing reads
the clock or keeps state between calls.
"""

from typing import Optional, List, Dict, Tuple, Union
from datetime import date

from models import (
    Task, Event, Settings, TimerState, DayKind,
    Block, TaskBlock, EventBlock, PauseBlock,
)
from time_utils import (
    time_to_minutes, minutes_to_time, clamp, today_str, add_days, days_between,
    format_block_time_range, LAST_MINUTE,
)
from intervals import Interval, merge_intervals, clip_intervals, free_slots, available_minutes
from event_layout import layout_event_blocks
from logger import logger


# ============================================
# WINDOWS & DAY CLASSIFICATION
# ============================================

def effective_settings(settings: Settings) -> Settings:
    """Collapse the display window to the workday when extended hours are off."""
    if settings.use_extended_hours:
        return settings
    return settings.model_copy(update={
        "extended_start": settings.workday_start,
        "extended_end": settings.workday_end,
    })


def resolve_windows(settings: Settings) -> Tuple[int, int, int, int]:
    """Return (display_start, display_end, task_start, task_end) in minutes."""
    ext_start = time_to_minutes(settings.extended_start)
    ext_end = time_to_minutes(settings.extended_end)

    if not settings.specify_working_hours:
        return ext_start, ext_end, 0, LAST_MINUTE

    if settings.restrict_tasks_to_work_hours:
        task_start = time_to_minutes(settings.workday_start)
        task_end = time_to_minutes(settings.workday_end)
    else:
        task_start, task_end = ext_start, ext_end
    return ext_start, ext_end, task_start, task_end


def classify_day(selected_date: str, today: str) -> DayKind:
    if selected_date == today:
        return DayKind.TODAY
    if selected_date > today:
        return DayKind.FUTURE
    return DayKind.PAST


# ============================================
# BLOCK BUILDERS
# ============================================

def _event_blocks(
    events: List[Event],
    selected_date: str,
    ext_start: int,
    ext_end: int,
    now: int,
    day_kind: DayKind,
) -> List[EventBlock]:
    blocks = []
    for event in events:
        if event.date != selected_date:
            continue
        start_min = time_to_minutes(event.start)
        end_min = time_to_minutes(event.end)
        if end_min <= start_min or start_min >= ext_end or end_min <= ext_start:
            continue
        if day_kind is DayKind.TODAY:
            is_past = end_min <= now
        else:
            is_past = day_kind is DayKind.PAST
        blocks.append(EventBlock(
            id=f"event-{event.id}",
            name=event.name,
            start=minutes_to_time(start_min),
            end=minutes_to_time(end_min),
            start_minute=start_min,
            end_minute=end_min,
            is_past=is_past,
            tag_id=event.tag_id,
            label=format_block_time_range(minutes_to_time(start_min), minutes_to_time(end_min)),
            event_id=event.id,
        ))
    blocks.sort(key=lambda b: b.start_minute)
    return layout_event_blocks(blocks)


def _task_block(
    task: Task,
    start_min: int,
    end_min: int,
    block_index: int,
    **flags,
) -> TaskBlock:
    return TaskBlock(
        id=f"task-{task.id}-{block_index}",
        name=task.name,
        start=minutes_to_time(start_min),
        end=minutes_to_time(end_min),
        start_minute=start_min,
        end_minute=end_min,
        tag_id=task.tag_id,
        label=format_block_time_range(minutes_to_time(start_min), minutes_to_time(end_min), is_task=True),
        task_id=task.id,
        duration=end_min - start_min,
        block_index=block_index,
        **flags,
    )


def _pause_ranges(first_task: Optional[Task], now: int) -> List[Interval]:
    """Pause history of the head task as blocking ranges; an open pause runs to now."""
    if first_task is None or not first_task.is_started:
        return []
    ranges = []
    for pause in first_task.pause_events:
        end = pause.resolved_end(now)
        if end > pause.start_minute:
            ranges.append((pause.start_minute, end))
    return ranges


def _pause_blocks(
    first_task: Task,
    ranges: List[Interval],
    ext_start: int,
    ext_end: int,
    now: int,
) -> List[PauseBlock]:
    blocks = []
    for start, end in ranges:
        if end <= ext_start or start >= ext_end:
            continue
        s, e = max(start, ext_start), min(end, ext_end)
        blocks.append(PauseBlock(
            id=f"pause-{first_task.id}-{s}",
            name="Paused",
            start=minutes_to_time(s),
            end=minutes_to_time(e),
            start_minute=s,
            end_minute=e,
            is_past=end <= now,
            label=format_block_time_range(minutes_to_time(s), minutes_to_time(e)),
            task_id=first_task.id,
        ))
    return blocks


def _completed_segments(tasks: List[Task], day: str) -> List[Interval]:
    return [
        (seg.start_minute, seg.end_minute)
        for task in tasks
        if task.completed
        for seg in task.work_segments
        if seg.date == day
    ]


def _history_blocks(
    tasks: List[Task],
    selected_date: str,
    ext_start: int,
    ext_end: int,
    is_today: bool,
) -> List[TaskBlock]:
    """Static blocks for completed work that actually took time."""
    blocks = []
    for task in tasks:
        if not task.completed or not task.is_started or not (task.actual_duration or 0) > 0:
            continue

        if task.work_segments:
            day_segments = [seg for seg in task.work_segments if seg.date == selected_date]
            last = len(day_segments) - 1
            for i, seg in enumerate(day_segments):
                s, e = max(seg.start_minute, ext_start), min(seg.end_minute, ext_end)
                if e <= s:
                    continue
                blocks.append(_task_block(
                    task, s, e, i,
                    is_past=True,
                    is_completed=True,
                    is_split=len(day_segments) > 1,
                    continues_before=i > 0,
                    continues_after=i < last,
                ))
        elif is_today:
            # No segment history: the start minute carries no date, so only today can show it
            s = max(task.started_at_minute, ext_start)
            e = min(task.started_at_minute + task.actual_duration, ext_end)
            if e > s:
                blocks.append(_task_block(task, s, e, 0, is_past=True, is_completed=True))
    return blocks


# ============================================
# SCHEDULE START & CARRYOVER
# ============================================

def _schedule_start(
    first_task: Optional[Task],
    active_task_id: Optional[int],
    elapsed_minutes: int,
    task_start: int,
    task_end: int,
    now: int,
    is_future: bool,
) -> int:
    if is_future:
        return task_start
    if first_task is not None and first_task.is_started:
        return max(task_start, first_task.started_at_minute)
    if active_task_id is not None:
        return max(task_start, now - elapsed_minutes)
    return clamp(now, task_start, task_end)


def carryover_minutes(
    tasks: List[Task],
    events: List[Event],
    first_task: Optional[Task],
    today: str,
    selected_date: str,
    task_start: int,
    task_end: int,
    now: int,
    min_fragment: int,
) -> int:
    """
    Task minutes already absorbed by the days before `selected_date`.

    Counts today's free time from the current minute onward plus every full
    day strictly in between. Completed work and today's pauses block time
    just like events do.
    """
    today_pauses = _pause_ranges(first_task, now)

    def blocking_for(day: str) -> List[Interval]:
        ranges = [
            (time_to_minutes(e.start), time_to_minutes(e.end))
            for e in events if e.date == day
        ]
        ranges += _completed_segments(tasks, day)
        if day == today:
            ranges += today_pauses
        return ranges

    total = 0
    today_start = clamp(now, task_start, task_end)
    if today_start < task_end:
        total += available_minutes(blocking_for(today), today_start, task_end, min_fragment)

    for offset in range(1, days_between(today, selected_date)):
        day = add_days(today, offset)
        total += available_minutes(blocking_for(day), task_start, task_end, min_fragment)
    return total


# ============================================
# GREEDY PACKING
# ============================================

def _pack_tasks(
    incomplete: List[Task],
    slots: List[Interval],
    *,
    active_task_id: Optional[int],
    elapsed_minutes: int,
    is_today: bool,
    is_future: bool,
    minutes_to_skip: int,
    min_fragment: int,
    now: int,
    paused_head_id: Optional[int],
) -> List[TaskBlock]:
    """Walk tasks in list order and pour each one into the free slots."""
    blocks: List[TaskBlock] = []
    slot_idx = 0
    slot_used = 0
    skip_remaining = minutes_to_skip

    for task in incomplete:
        is_active = is_today and task.id == active_task_id
        planned = task.effective_duration

        if is_future and skip_remaining > 0:
            if skip_remaining >= planned:
                skip_remaining -= planned
                continue
            day_duration = planned - skip_remaining
            skip_remaining = 0
        else:
            day_duration = max(elapsed_minutes, planned) if is_active else planned

        continues_from_prior = is_future and day_duration < planned
        remaining = day_duration
        block_index = 0

        while remaining > 0 and slot_idx < len(slots):
            slot_start, slot_end = slots[slot_idx]
            start = slot_start + slot_used
            slot_left = slot_end - start

            if slot_left <= 0:
                slot_idx += 1
                slot_used = 0
                continue

            dur = min(remaining, slot_left)

            # A sliver mid-task is not worth a block; a trailing one is fine
            if dur < min_fragment and remaining > slot_left:
                slot_idx += 1
                slot_used = 0
                continue

            is_past = is_today and start + dur <= now
            blocks.append(_task_block(
                task, start, start + dur, block_index,
                is_past=is_past,
                is_active=is_active,
                is_split=day_duration > dur or block_index > 0 or continues_from_prior,
                continues_before=block_index > 0 or continues_from_prior,
                continues_after=remaining - dur > 0,
                is_paused_remaining=task.id == paused_head_id and not is_past,
            ))

            remaining -= dur
            slot_used += dur
            block_index += 1

            if slot_used >= slot_end - slot_start:
                slot_idx += 1
                slot_used = 0

    return blocks


# ============================================
# DAY SCHEDULER
# ============================================

def schedule_day(
    tasks: List[Task],
    events: List[Event],
    settings: Settings,
    active_task_id: Optional[int],
    elapsed_minutes: int,
    selected_date: str,
    now: int,
    today: Optional[Union[str, date]] = None,
) -> List[Block]:
    """
    Build the ordered block list for `selected_date`.

    Args:
        tasks: Backlog in priority order; never reordered.
        events: All fixed events; only those on the selected date are shown.
        settings: Window and packing settings.
        active_task_id: Task whose timer is running, if any.
        elapsed_minutes: Elapsed minutes on the active task's timer.
        selected_date: Day to render (YYYY-MM-DD).
        now: Current minute since midnight, debug offset already applied.
        today: The caller's current date; defaults to the local date.

    Returns:
        Event, task and pause blocks sorted by start minute. Blocks that
        start together keep the order events, tasks, pauses.
    """
    if today is None or isinstance(today, date):
        today = today_str(today)

    ext_start, ext_end, task_start, task_end = resolve_windows(settings)
    min_fragment = max(1, settings.min_fragment_minutes)
    day_kind = classify_day(selected_date, today)
    is_today = day_kind is DayKind.TODAY
    is_future = day_kind is DayKind.FUTURE

    event_blocks = _event_blocks(events, selected_date, ext_start, ext_end, now, day_kind)
    task_blocks: List[TaskBlock] = []
    pause_blocks: List[PauseBlock] = []

    if is_today or is_future:
        incomplete = [t for t in tasks if not t.completed]
        first_task = incomplete[0] if incomplete else None
        paused_head_id = first_task.id if is_today and first_task is not None and first_task.is_paused else None

        pause_ranges = _pause_ranges(first_task, now) if is_today else []
        if pause_ranges:
            pause_blocks = _pause_blocks(first_task, pause_ranges, ext_start, ext_end, now)

        schedule_start = _schedule_start(
            first_task, active_task_id, elapsed_minutes, task_start, task_end, now, is_future
        )

        minutes_to_skip = 0
        if is_future:
            minutes_to_skip = carryover_minutes(
                tasks, events, first_task, today, selected_date,
                task_start, task_end, now, min_fragment,
            )

        blocking = [(b.start_minute, b.end_minute) for b in event_blocks]
        blocking += pause_ranges
        blocking += _completed_segments(tasks, selected_date)
        merged = merge_intervals(clip_intervals(blocking, schedule_start, ext_end))
        slots = free_slots(schedule_start, task_end, merged)

        task_blocks = _pack_tasks(
            incomplete, slots,
            active_task_id=active_task_id,
            elapsed_minutes=elapsed_minutes,
            is_today=is_today,
            is_future=is_future,
            minutes_to_skip=minutes_to_skip,
            min_fragment=min_fragment,
            now=now,
            paused_head_id=paused_head_id,
        )
        logger.debug(
            f"{selected_date}: start {minutes_to_time(schedule_start)}, "
            f"{len(slots)} slots, skip {minutes_to_skip}m, {len(task_blocks)} task blocks"
        )

    task_blocks += _history_blocks(tasks, selected_date, ext_start, ext_end, is_today)

    combined: List[Block] = [*event_blocks, *task_blocks, *pause_blocks]
    combined.sort(key=lambda b: b.start_minute)
    return combined


# ============================================
# CONVENIENCE WRAPPERS
# ============================================

def blocks_for_date(
    tasks: List[Task],
    events: List[Event],
    settings: Settings,
    timer: TimerState,
    selected_date: str,
    now: int,
    today: Optional[Union[str, date]] = None,
) -> List[Block]:
    """Schedule a day the way the calendar view does: effective settings, live timer."""
    return schedule_day(
        tasks, events, effective_settings(settings),
        timer.active_task_id, timer.elapsed_minutes,
        selected_date, now, today,
    )


def multi_day_schedule(
    tasks: List[Task],
    events: List[Event],
    settings: Settings,
    timer: TimerState,
    start_date: str,
    days: int,
    now: int,
    today: Optional[Union[str, date]] = None,
) -> Dict[str, List[Block]]:
    """Schedules for `days` consecutive dates starting at `start_date`."""
    return {
        add_days(start_date, offset): blocks_for_date(
            tasks, events, settings, timer, add_days(start_date, offset), now, today
        )
        for offset in range(max(0, days))
    }


def block_counts_by_task(blocks: List[Block]) -> Dict[int, int]:
    """Number of fragments each task was split into on the rendered day."""
    counts: Dict[int, int] = {}
    for block in blocks:
        if isinstance(block, TaskBlock):
            counts[block.task_id] = max(counts.get(block.task_id, 0), block.block_index + 1)
    return counts
