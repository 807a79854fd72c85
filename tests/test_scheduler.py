"""Tests for the day scheduling engine."""

from __future__ import annotations

from datetime import date

from models import DayKind, TimerState, WorkSegment, OpenPause, ClosedPause
from scheduler import (
    schedule_day, blocks_for_date, multi_day_schedule, block_counts_by_task,
    effective_settings, resolve_windows, classify_day, carryover_minutes,
)

from helpers import (
    TODAY, TOMORROW, YESTERDAY, make_task, make_event, workday_settings, task_blocks, spans,
)


def _schedule(tasks, events, settings, now, selected=TODAY, active=None, elapsed=0):
    return schedule_day(tasks, events, settings, active, elapsed, selected, now, TODAY)


class TestWindows:
    """Tests for window resolution and day classification."""

    def test_workday_restricts_task_window(self, settings):
        assert resolve_windows(settings) == (360, 1439, 540, 1020)

    def test_unrestricted_tasks_use_extended_window(self):
        settings = workday_settings(restrict_tasks_to_work_hours=False)
        assert resolve_windows(settings) == (360, 1439, 360, 1439)

    def test_unspecified_working_hours_open_whole_day(self):
        settings = workday_settings(specify_working_hours=False)
        assert resolve_windows(settings)[2:] == (0, 1439)

    def test_effective_settings_collapse_to_workday(self, settings):
        assert effective_settings(settings) is settings

        collapsed = effective_settings(workday_settings(use_extended_hours=False))
        assert collapsed.extended_start == "09:00"
        assert collapsed.extended_end == "17:00"

    def test_classify_day(self):
        assert classify_day(TODAY, TODAY) is DayKind.TODAY
        assert classify_day(TOMORROW, TODAY) is DayKind.FUTURE
        assert classify_day(YESTERDAY, TODAY) is DayKind.PAST


class TestPacking:
    """Tests for greedy task packing around events."""

    def test_empty_input_gives_no_blocks(self, settings):
        assert _schedule([], [], settings, now=540) == []

    def test_tasks_flow_after_morning_event(self, settings):
        tasks = [make_task(1, 30), make_task(2, 45)]
        events = [make_event(1, "09:00", "10:00")]

        blocks = _schedule(tasks, events, settings, now=540)

        assert [b.kind for b in blocks] == ["event", "task", "task"]
        assert spans(blocks) == [(540, 600), (600, 630), (630, 675)]
        assert [b.id for b in blocks] == ["event-1", "task-1-0", "task-2-0"]
        assert blocks[1].start == "10:00"
        assert blocks[2].end == "11:15"
        assert not any(b.is_past for b in blocks)

    def test_mid_task_sliver_is_skipped(self, settings):
        tasks = [make_task(1, 30), make_task(2, 40)]
        events = [make_event(1, "09:33", "10:00")]

        blocks = task_blocks(_schedule(tasks, events, settings, now=540))

        assert spans(blocks) == [(540, 570), (600, 640)]
        assert not blocks[1].is_split
        assert blocks[1].block_index == 0

    def test_sliver_used_when_fragment_threshold_allows(self):
        settings = workday_settings(min_fragment_minutes=1)
        tasks = [make_task(1, 30), make_task(2, 40)]
        events = [make_event(1, "09:33", "10:00")]

        blocks = task_blocks(_schedule(tasks, events, settings, now=540))

        assert spans(blocks) == [(540, 570), (570, 573), (600, 637)]

    def test_trailing_fragment_is_allowed(self, settings):
        tasks = [make_task(1, 10)]
        events = [make_event(1, "09:07", "10:00")]

        blocks = task_blocks(_schedule(tasks, events, settings, now=540))

        assert spans(blocks) == [(540, 547), (600, 603)]
        first, second = blocks
        assert first.is_split and second.is_split
        assert first.continues_after and not first.continues_before
        assert second.continues_before and not second.continues_after
        assert [b.id for b in blocks] == ["task-1-0", "task-1-1"]
        assert block_counts_by_task(blocks) == {1: 2}

    def test_task_blocks_stay_inside_task_window(self, settings):
        tasks = [make_task(1, 200), make_task(2, 200), make_task(3, 200)]
        events = [make_event(1, "16:30", "18:00"), make_event(2, "12:00", "12:30")]

        blocks = task_blocks(_schedule(tasks, events, settings, now=540))

        assert blocks
        for block in blocks:
            assert 540 <= block.start_minute < block.end_minute <= 1020
            assert block.duration == block.end_minute - block.start_minute

    def test_overflow_is_truncated_at_window_end(self, settings):
        blocks = task_blocks(_schedule([make_task(1, 600)], [], settings, now=540))
        assert spans(blocks) == [(540, 1020)]

    def test_schedule_starts_at_now(self, settings):
        blocks = task_blocks(_schedule([make_task(1, 30)], [], settings, now=605))
        assert spans(blocks) == [(605, 635)]

    def test_schedule_clamped_to_workday_start(self, settings):
        blocks = task_blocks(_schedule([make_task(1, 30)], [], settings, now=420))
        assert spans(blocks) == [(540, 570)]

    def test_unrestricted_tasks_start_in_extended_window(self):
        settings = workday_settings(restrict_tasks_to_work_hours=False)
        blocks = task_blocks(_schedule([make_task(1, 30)], [], settings, now=300))
        assert spans(blocks) == [(360, 390)]

    def test_unspecified_working_hours_pack_from_now(self):
        settings = workday_settings(specify_working_hours=False)
        blocks = task_blocks(_schedule([make_task(1, 30)], [], settings, now=30))
        assert spans(blocks) == [(30, 60)]

    def test_completed_tasks_are_not_packed(self, settings):
        tasks = [make_task(1, 30, completed=True), make_task(2, 30)]
        blocks = task_blocks(_schedule(tasks, [], settings, now=540))
        assert [b.task_id for b in blocks] == [2]

    def test_adjusted_duration_wins(self, settings):
        tasks = [make_task(1, 30, adjusted_duration=50)]
        blocks = task_blocks(_schedule(tasks, [], settings, now=540))
        assert spans(blocks) == [(540, 590)]

    def test_past_task_blocks_flagged(self, settings):
        tasks = [make_task(1, 30, started_at_minute=540, started_at_date=TODAY)]
        blocks = task_blocks(_schedule(tasks, [], settings, now=600))
        assert spans(blocks) == [(540, 570)]
        assert blocks[0].is_past

    def test_same_input_same_output(self, settings):
        tasks = [make_task(1, 30), make_task(2, 90), make_task(3, 15)]
        events = [make_event(1, "10:00", "11:00"), make_event(2, "10:30", "12:00")]

        first = _schedule(tasks, events, settings, now=560)
        second = _schedule(tasks, events, settings, now=560)

        assert first == second


class TestActiveTask:
    """Tests for the running task."""

    def test_overrun_active_task_shows_elapsed(self, settings):
        tasks = [make_task(1, 30, started_at_minute=540, started_at_date=TODAY)]

        blocks = task_blocks(_schedule(tasks, [], settings, now=590, active=1, elapsed=50))

        assert len(blocks) == 1
        assert blocks[0].duration == 50
        assert spans(blocks) == [(540, 590)]
        assert blocks[0].is_active
        assert not blocks[0].is_split

    def test_unstarted_active_task_backdated_by_elapsed(self, settings):
        tasks = [make_task(1, 30)]
        blocks = task_blocks(_schedule(tasks, [], settings, now=600, active=1, elapsed=20))
        assert spans(blocks) == [(580, 610)]

    def test_active_flag_only_today(self, settings):
        tasks = [make_task(1, 30), make_task(2, 600)]
        blocks = task_blocks(_schedule(tasks, [], settings, now=540, selected=TOMORROW, active=2))
        assert blocks
        assert not any(b.is_active for b in blocks)


class TestEvents:
    """Tests for event blocks."""

    def test_overlapping_events_get_columns(self, settings):
        events = [make_event(1, "10:00", "11:00"), make_event(2, "10:30", "11:30")]

        blocks = _schedule([], events, settings, now=540)

        assert [(b.column, b.total_columns) for b in blocks] == [(0, 2), (1, 2)]

    def test_other_days_and_degenerate_events_skipped(self, settings):
        events = [
            make_event(1, "10:00", "11:00", date=TOMORROW),
            make_event(2, "11:00", "11:00"),
            make_event(3, "12:00", "11:00"),
            make_event(4, "13:00", "14:00"),
        ]
        blocks = _schedule([], events, settings, now=540)
        assert [b.event_id for b in blocks] == [4]

    def test_events_outside_display_window_hidden(self):
        settings = workday_settings(use_extended_hours=False)
        events = [make_event(1, "07:00", "08:00"), make_event(2, "08:30", "09:30")]

        blocks = blocks_for_date([], events, settings, TimerState(), TODAY, 540, TODAY)

        assert [b.event_id for b in blocks] == [2]
        assert blocks[0].start == "08:30"

    def test_event_past_flag_by_day(self, settings):
        events = [
            make_event(1, "09:00", "10:00"),
            make_event(2, "09:00", "10:00", date=YESTERDAY),
            make_event(3, "09:00", "10:00", date=TOMORROW),
        ]
        assert _schedule([], events, settings, now=600)[0].is_past
        assert not _schedule([], events, settings, now=599)[0].is_past
        assert _schedule([], events, settings, now=0, selected=YESTERDAY)[0].is_past
        assert not _schedule([], events, settings, now=1400, selected=TOMORROW)[0].is_past


class TestPauses:
    """Tests for pause blocks of the head task."""

    def _paused_task(self):
        return make_task(
            1, 90,
            started_at_minute=540,
            started_at_date=TODAY,
            paused_at_minute=600,
            paused_elapsed=60,
            pause_events=[OpenPause(start_minute=600, date=TODAY)],
        )

    def test_open_pause_blocks_until_now(self, settings):
        blocks = _schedule([self._paused_task()], [], settings, now=630)

        pauses = [b for b in blocks if b.kind == "pause"]
        assert len(pauses) == 1
        assert pauses[0].id == "pause-1-600"
        assert (pauses[0].start_minute, pauses[0].end_minute) == (600, 630)
        assert pauses[0].task_id == 1
        assert pauses[0].label == "10:00–10:30am"

        tasks = task_blocks(blocks)
        assert spans(tasks) == [(540, 600), (630, 660)]
        assert [b.is_paused_remaining for b in tasks] == [False, True]

    def test_pauses_only_shown_today(self, settings):
        blocks = _schedule([self._paused_task()], [], settings, now=630, selected=TOMORROW)
        assert not [b for b in blocks if b.kind == "pause"]

    def test_pauses_of_later_tasks_ignored(self, settings):
        tasks = [
            make_task(1, 30),
            make_task(
                2, 30,
                started_at_minute=540,
                pause_events=[ClosedPause(start_minute=560, end_minute=580, date=TODAY)],
            ),
        ]
        blocks = _schedule(tasks, [], settings, now=540)
        assert not [b for b in blocks if b.kind == "pause"]
        assert spans(task_blocks(blocks)) == [(540, 570), (570, 600)]

    def test_simultaneous_blocks_order(self, settings):
        tasks = [
            make_task(
                1, 30,
                completed=True,
                started_at_minute=600,
                actual_duration=30,
                work_segments=[WorkSegment(start_minute=600, end_minute=630, date=TODAY)],
            ),
            make_task(
                2, 30,
                started_at_minute=540,
                started_at_date=TODAY,
                pause_events=[ClosedPause(start_minute=600, end_minute=630, date=TODAY)],
            ),
        ]
        events = [make_event(1, "10:00", "11:00")]

        blocks = _schedule(tasks, events, settings, now=720)

        assert [b.kind for b in blocks] == ["task", "event", "task", "pause"]
        assert [b.start_minute for b in blocks] == [540, 600, 600, 600]
        assert blocks[2].is_completed


class TestHistory:
    """Tests for completed-work history blocks."""

    def _done(self, segments, **fields):
        values = dict(completed=True, started_at_minute=540, actual_duration=50, work_segments=segments)
        values.update(fields)
        return make_task(1, 45, **values)

    def test_segments_render_as_split_blocks(self, settings):
        task = self._done([
            WorkSegment(start_minute=540, end_minute=570, date=TODAY),
            WorkSegment(start_minute=600, end_minute=620, date=TODAY),
        ])

        blocks = task_blocks(_schedule([task], [], settings, now=700))

        assert spans(blocks) == [(540, 570), (600, 620)]
        assert all(b.is_completed and b.is_past and b.is_split for b in blocks)
        assert blocks[0].continues_after and not blocks[0].continues_before
        assert blocks[1].continues_before and not blocks[1].continues_after

    def test_completed_work_blocks_new_tasks(self, settings):
        done = self._done([WorkSegment(start_minute=540, end_minute=600, date=TODAY)], actual_duration=60)
        blocks = task_blocks(_schedule([done, make_task(2, 30)], [], settings, now=540))
        assert [(b.task_id, b.start_minute, b.end_minute) for b in blocks] == [
            (1, 540, 600), (2, 600, 630),
        ]

    def test_past_day_shows_history_and_events_only(self, settings):
        done = self._done([WorkSegment(start_minute=540, end_minute=590, date=YESTERDAY)])
        events = [make_event(1, "10:00", "11:00", date=YESTERDAY)]

        blocks = _schedule([done, make_task(2, 30)], events, settings, now=600, selected=YESTERDAY)

        assert [(b.kind, b.start_minute) for b in blocks] == [("task", 540), ("event", 600)]
        assert blocks[0].task_id == 1
        assert all(b.is_past for b in blocks)

    def test_legacy_completion_only_today(self, settings):
        legacy = self._done([], started_at_minute=480, actual_duration=30)

        today_blocks = task_blocks(_schedule([legacy], [], settings, now=700))
        assert spans(today_blocks) == [(480, 510)]

        assert _schedule([legacy], [], settings, now=700, selected=YESTERDAY) == []

    def test_zero_minute_completion_hidden(self, settings):
        task = self._done([], actual_duration=0)
        assert _schedule([task], [], settings, now=700) == []


class TestFutureDays:
    """Tests for carryover onto later days."""

    def test_long_task_continues_tomorrow(self, settings):
        blocks = task_blocks(_schedule([make_task(1, 500)], [], settings, now=540, selected=TOMORROW))

        assert spans(blocks) == [(540, 560)]
        assert blocks[0].continues_before
        assert blocks[0].is_split
        assert not blocks[0].continues_after
        assert not blocks[0].is_past

    def test_carryover_spans_intermediate_days(self, settings):
        blocks = task_blocks(_schedule([make_task(1, 1000)], [], settings, now=540, selected="2026-02-08"))
        assert spans(blocks) == [(540, 580)]

    def test_intermediate_day_events_reduce_carryover(self, settings):
        events = [make_event(1, "09:00", "13:00", date=TOMORROW)]
        blocks = task_blocks(
            _schedule([make_task(1, 1000)], events, settings, now=540, selected="2026-02-08")
        )
        assert spans(blocks) == [(540, 820)]

    def test_absorbed_tasks_skipped_in_order(self, settings):
        tasks = [make_task(1, 100), make_task(2, 450)]
        blocks = task_blocks(_schedule(tasks, [], settings, now=540, selected=TOMORROW))
        assert [(b.task_id, b.start_minute, b.end_minute) for b in blocks] == [(2, 540, 610)]

    def test_after_hours_today_adds_no_carryover(self, settings):
        blocks = task_blocks(_schedule([make_task(1, 60)], [], settings, now=1100, selected=TOMORROW))
        assert spans(blocks) == [(540, 600)]

    def test_carryover_minutes_counts_today_from_now(self, settings):
        minutes = carryover_minutes(
            [], [make_event(1, "12:00", "13:00")], None, TODAY, "2026-02-08",
            540, 1020, 600, 5,
        )
        # Today 10:00-17:00 less the meeting, plus all of tomorrow
        assert minutes == 360 + 480

    def test_today_accepts_date_objects(self, settings):
        blocks = schedule_day(
            [make_task(1, 500)], [], settings, None, 0, TOMORROW, 540, date(2026, 2, 6)
        )
        assert spans(task_blocks(blocks)) == [(540, 560)]


class TestMultiDay:
    """Tests for the multi-day wrapper."""

    def test_consecutive_days_keyed_by_date(self, settings):
        schedule = multi_day_schedule(
            [make_task(1, 1000)], [], settings, TimerState(), TODAY, 3, 540, TODAY
        )

        assert list(schedule) == [TODAY, TOMORROW, "2026-02-08"]
        assert spans(task_blocks(schedule[TODAY])) == [(540, 1020)]
        assert spans(task_blocks(schedule[TOMORROW])) == [(540, 1020)]
        assert spans(task_blocks(schedule["2026-02-08"])) == [(540, 580)]
