"""
Day Planner - Event Column Layout
Side-by-side placement for events whose times overlap.
"""

from typing import List, Tuple

from models import EventBlock


def assign_columns(intervals: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """
    Assign (column, total_columns) to start-sorted (start, end) intervals.

    Columns are handed out greedily: each event takes the lowest column not
    held by an event still running at its start. An event's total is one
    more than the highest column among the events that directly intersect
    it (itself included). Overlap is not followed transitively, so a chain
    A-B-C where A and C never meet sizes A and C by their own neighbours.
    """
    columns: List[int] = []
    active: List[Tuple[int, int]] = []  # (end_minute, column)

    for start, end in intervals:
        active = [(a_end, col) for a_end, col in active if a_end > start]
        used = {col for _, col in active}
        col = 0
        while col in used:
            col += 1
        columns.append(col)
        active.append((end, col))

    layout: List[Tuple[int, int]] = []
    for i, (start, end) in enumerate(intervals):
        total = columns[i] + 1
        for j, (o_start, o_end) in enumerate(intervals):
            if o_start < end and o_end > start:
                total = max(total, columns[j] + 1)
        layout.append((columns[i], total))
    return layout


def layout_event_blocks(blocks: List[EventBlock]) -> List[EventBlock]:
    """Return copies of start-sorted event blocks with column fields filled in."""
    layout = assign_columns([(b.start_minute, b.end_minute) for b in blocks])
    return [
        b.model_copy(update={"column": col, "total_columns": total})
        for b, (col, total) in zip(blocks, layout)
    ]
