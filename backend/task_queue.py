"""
Day Planner - Task Backlog
Ordered task list operations. List order is priority order; every helper
returns a new list and leaves its input alone.
"""

import re
from typing import Optional, List, Tuple

from models import Task, Tag


TAG_SUFFIX = re.compile(r"\[(.+?)\]$")


# ============================================
# ORDERING
# ============================================

def move_task(tasks: List[Task], from_index: int, to_index: int) -> List[Task]:
    """Move one task to a new position; indices out of range are clamped."""
    if not tasks:
        return []
    updated = list(tasks)
    from_index = max(0, min(from_index, len(updated) - 1))
    task = updated.pop(from_index)
    to_index = max(0, min(to_index, len(updated)))
    updated.insert(to_index, task)
    return updated


def insert_task(tasks: List[Task], task: Task, index: int) -> List[Task]:
    updated = list(tasks)
    updated.insert(max(0, min(index, len(updated))), task)
    return updated


def add_task(tasks: List[Task], task: Task, to_top: bool = False) -> List[Task]:
    return insert_task(tasks, task, 0 if to_top else len(tasks))


def next_task_id(tasks: List[Task]) -> int:
    return max((t.id for t in tasks), default=0) + 1


def duplicate_task(tasks: List[Task], task_id: int) -> List[Task]:
    """Insert a fresh, unstarted copy right after the original."""
    for i, task in enumerate(tasks):
        if task.id == task_id:
            copy = Task(
                id=next_task_id(tasks),
                name=task.name,
                planned_duration=task.planned_duration,
                tag_id=task.tag_id,
            )
            return insert_task(tasks, copy, i + 1)
    return list(tasks)


def delete_task(tasks: List[Task], task_id: int) -> List[Task]:
    return [t for t in tasks if t.id != task_id]


def clear_completed(tasks: List[Task]) -> List[Task]:
    return [t for t in tasks if not t.completed]


# ============================================
# SUMMARIES
# ============================================

def incomplete_tasks(tasks: List[Task]) -> List[Task]:
    return [t for t in tasks if not t.completed]


def total_incomplete_duration(tasks: List[Task]) -> int:
    return sum(t.effective_duration for t in incomplete_tasks(tasks))


# ============================================
# SMART DURATION PARSING
# ============================================

def parse_smart_duration(
    line: str,
    default_duration: int,
    tags: Optional[List[Tag]] = None,
) -> Tuple[str, int, Optional[int]]:
    """
    Parse quick-entry text like "Write report 45 [Internal]".

    A trailing [Tag] is matched case-insensitively against tag names and a
    trailing integer becomes the duration.

    Returns:
        (name, duration, tag_id)
    """
    text = line.strip()
    tag_id = None

    match = TAG_SUFFIX.search(text)
    if match:
        tag_name = match.group(1).lower()
        tag_id = next((t.id for t in tags or [] if t.name.lower() == tag_name), None)
        text = text[:match.start()].strip()

    parts = text.split()
    if len(parts) > 1 and re.fullmatch(r"\d+", parts[-1]):
        return " ".join(parts[:-1]), int(parts[-1]), tag_id

    return text, default_duration, tag_id
