"""
Day Planner - Interval Arithmetic
Half-open minute ranges [start, end): merging, clipping, gap analysis.
"""

from typing import Iterable, List, Tuple

Interval = Tuple[int, int]


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Sort ranges by start and coalesce overlapping or touching ones.

    Returns a sorted, pairwise disjoint list. Empty input gives [].
    """
    ordered = sorted(intervals, key=lambda iv: iv[0])
    if not ordered:
        return []
    out: List[Interval] = []
    cur_s, cur_e = ordered[0]
    for s, e in ordered[1:]:
        if s <= cur_e:
            cur_e = max(cur_e, e)
        else:
            out.append((cur_s, cur_e))
            cur_s, cur_e = s, e
    out.append((cur_s, cur_e))
    return out


def clip_interval(interval: Interval, window_start: int, window_end: int) -> Interval:
    s, e = interval
    return max(s, window_start), min(e, window_end)


def clip_intervals(intervals: Iterable[Interval], window_start: int, window_end: int) -> List[Interval]:
    """Clip every range to the window, dropping the ones left empty."""
    clipped = (clip_interval(iv, window_start, window_end) for iv in intervals)
    return [(s, e) for s, e in clipped if e > s]


def free_slots(window_start: int, window_end: int, merged: Iterable[Interval]) -> List[Interval]:
    """
    Gaps inside [window_start, window_end) not covered by merged ranges.

    `merged` must already be sorted and disjoint. Every gap is kept,
    whatever its length.
    """
    if window_start >= window_end:
        return []
    out: List[Interval] = []
    cursor = window_start
    for s, e in merged:
        if e <= cursor:
            continue
        if s >= window_end:
            break
        if s > cursor:
            out.append((cursor, min(s, window_end)))
        cursor = max(cursor, e)
        if cursor >= window_end:
            break
    if cursor < window_end:
        out.append((cursor, window_end))
    return out


def available_minutes(
    blocking: Iterable[Interval],
    window_start: int,
    window_end: int,
    min_fragment: int = 0,
) -> int:
    """
    Free minutes in a window, counting only gaps of at least `min_fragment`.

    Used for carryover accounting between days; slot carving for actual
    placement goes through free_slots() and keeps every gap.
    """
    if window_start >= window_end:
        return 0
    merged = merge_intervals(clip_intervals(blocking, window_start, window_end))
    gaps = free_slots(window_start, window_end, merged)
    return sum(e - s for s, e in gaps if e - s >= min_fragment)


def covered_minutes(intervals: Iterable[Interval]) -> int:
    """Total length of the union of the given ranges."""
    return sum(e - s for s, e in merge_intervals(intervals))
