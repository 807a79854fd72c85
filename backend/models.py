"""
Day Planner - Pydantic Models (v2 syntax)
"""

from enum import Enum
from typing import Optional, List, Union, Literal, Annotated, Any, ClassVar, Tuple
from pydantic import (
    BaseModel, ConfigDict, Field, AliasChoices, Discriminator, Tag as UnionTag,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Records are persisted camelCase by the clients; accept both spellings
RECORD_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)
BLOCK_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _aliases(name: str, *legacy: str) -> AliasChoices:
    return AliasChoices(name, to_camel(name), *legacy)


# ============================================
# ENUMS
# ============================================

class TaskStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class DayKind(str, Enum):
    PAST = "past"
    TODAY = "today"
    FUTURE = "future"


# ============================================
# TASK HISTORY MODELS
# ============================================

class WorkSegment(BaseModel):
    model_config = RECORD_CONFIG

    start_minute: int = Field(validation_alias=_aliases("start_minute", "start"))
    end_minute: int = Field(validation_alias=_aliases("end_minute", "end"))
    date: str


class OpenPause(BaseModel):
    """A pause that is still running; it grows until the task resumes."""
    model_config = RECORD_CONFIG

    state: Literal["open"] = "open"
    start_minute: int = Field(validation_alias=_aliases("start_minute", "start"))
    date: str

    def resolved_end(self, now: int) -> int:
        return now

    def close(self, end_minute: int) -> "ClosedPause":
        return ClosedPause(start_minute=self.start_minute, end_minute=end_minute, date=self.date)


class ClosedPause(BaseModel):
    model_config = RECORD_CONFIG

    state: Literal["closed"] = "closed"
    start_minute: int = Field(validation_alias=_aliases("start_minute", "start"))
    end_minute: int = Field(validation_alias=_aliases("end_minute", "end"))
    date: str

    def resolved_end(self, now: int) -> int:
        return self.end_minute


def _pause_variant(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        if value.get("state") in ("open", "closed"):
            return value["state"]
        end = value.get("end_minute", value.get("endMinute", value.get("end")))
        return "open" if end is None else "closed"
    return getattr(value, "state", None)


PauseEvent = Annotated[
    Union[Annotated[OpenPause, UnionTag("open")], Annotated[ClosedPause, UnionTag("closed")]],
    Discriminator(_pause_variant),
]


# ============================================
# TASK / EVENT / TAG MODELS
# ============================================

class Task(BaseModel):
    model_config = RECORD_CONFIG

    id: int
    name: str
    planned_duration: int = Field(ge=5, validation_alias=_aliases("planned_duration", "duration"))
    adjusted_duration: Optional[int] = Field(default=None, ge=5)
    completed: bool = False
    tag_id: Optional[int] = None
    paused_elapsed: int = 0
    started_at_minute: Optional[int] = Field(
        default=None, validation_alias=_aliases("started_at_minute", "startedAtMin")
    )
    started_at_date: Optional[str] = None
    paused_at_minute: Optional[int] = Field(
        default=None, validation_alias=_aliases("paused_at_minute", "pausedAtMin")
    )
    pause_gap_minutes: int = 0
    work_segments: List[WorkSegment] = Field(default_factory=list)
    pause_events: List[PauseEvent] = Field(default_factory=list)
    actual_duration: Optional[int] = None

    @field_validator("paused_elapsed", "pause_gap_minutes", mode="before")
    @classmethod
    def _zero_if_missing(cls, value):
        return 0 if value is None else value

    @field_validator("work_segments", "pause_events", mode="before")
    @classmethod
    def _empty_if_missing(cls, value):
        return [] if value is None else value

    @property
    def effective_duration(self) -> int:
        if self.adjusted_duration is not None:
            return self.adjusted_duration
        return self.planned_duration

    @property
    def is_started(self) -> bool:
        return self.started_at_minute is not None

    @property
    def open_pause(self) -> Optional[OpenPause]:
        for pause in self.pause_events:
            if isinstance(pause, OpenPause):
                return pause
        return None

    @property
    def is_paused(self) -> bool:
        return self.open_pause is not None


class Event(BaseModel):
    model_config = RECORD_CONFIG

    id: int
    name: str
    start: str
    end: str
    date: str
    tag_id: Optional[int] = None


class Tag(BaseModel):
    model_config = RECORD_CONFIG

    id: int
    name: str
    color: str = "#94a3b8"


# ============================================
# SETTINGS MODELS
# ============================================

class Settings(BaseModel):
    model_config = RECORD_CONFIG

    workday_start: str = "09:00"
    workday_end: str = "17:00"
    use_extended_hours: bool = True
    extended_start: str = "06:00"
    extended_end: str = "23:59"
    restrict_tasks_to_work_hours: bool = True
    specify_working_hours: bool = True
    min_fragment_minutes: int = Field(default=5, ge=1)
    auto_start_next: bool = False
    default_task_duration: int = Field(default=30, ge=5)
    debug_mode: bool = False
    debug_time_offset: int = 0

    LOCAL_ONLY_KEYS: ClassVar[Tuple[str, ...]] = ("debug_mode", "debug_time_offset")

    @property
    def time_offset(self) -> int:
        return self.debug_time_offset if self.debug_mode else 0

    def strip_local_only(self) -> "Settings":
        """Copy with device-local keys reset, for sync or export."""
        defaults = Settings()
        return self.model_copy(update={k: getattr(defaults, k) for k in self.LOCAL_ONLY_KEYS})

    def merge_remote(self, remote: "Settings") -> "Settings":
        """Take a remote copy but keep this device's local-only keys."""
        return remote.model_copy(update={k: getattr(self, k) for k in self.LOCAL_ONLY_KEYS})


# ============================================
# TIMER MODELS
# ============================================

class TimerState(BaseModel):
    model_config = RECORD_CONFIG

    active_task_id: Optional[int] = None
    elapsed_minutes: int = Field(default=0, ge=0)


# ============================================
# BLOCK MODELS (scheduler output)
# ============================================

class BlockBase(BaseModel):
    model_config = BLOCK_CONFIG

    id: str
    name: str
    start: str
    end: str
    start_minute: int
    end_minute: int
    is_past: bool = False
    tag_id: Optional[int] = None
    label: str = ""


class TaskBlock(BlockBase):
    kind: Literal["task"] = "task"
    task_id: int
    duration: int
    is_active: bool = False
    is_completed: bool = False
    is_split: bool = False
    block_index: int = 0
    continues_before: bool = False
    continues_after: bool = False
    is_paused_remaining: bool = False


class EventBlock(BlockBase):
    kind: Literal["event"] = "event"
    event_id: int
    column: int = 0
    total_columns: int = 1


class PauseBlock(BlockBase):
    kind: Literal["pause"] = "pause"
    task_id: int


Block = Annotated[Union[TaskBlock, EventBlock, PauseBlock], Field(discriminator="kind")]


# ============================================
# API MODELS
# ============================================

class ScheduleRequest(BaseModel):
    model_config = RECORD_CONFIG

    tasks: List[Task] = Field(default_factory=list)
    events: List[Event] = Field(default_factory=list)
    settings: Optional[Settings] = None
    timer: TimerState = Field(default_factory=TimerState)
    selected_date: Optional[str] = None
    now: Optional[int] = Field(default=None, ge=0)
    today: Optional[str] = None


class ScheduleRangeRequest(ScheduleRequest):
    days: int = Field(default=7, ge=1)


class DaySchedule(BaseModel):
    model_config = RECORD_CONFIG

    date: str
    day_kind: DayKind
    now: int
    now_label: str = ""
    blocks: List[Block]
    block_counts: dict


class TimerRequest(BaseModel):
    model_config = RECORD_CONFIG

    tasks: List[Task]
    timer: TimerState = Field(default_factory=TimerState)
    settings: Optional[Settings] = None
    task_id: Optional[int] = None
    minutes: int = 0
    now: Optional[int] = Field(default=None, ge=0)
    today: Optional[str] = None


class TimerResponse(BaseModel):
    model_config = RECORD_CONFIG

    tasks: List[Task]
    timer: TimerState
    status: Optional[TaskStatus] = None
    elapsed_label: str = ""


class TaskListRequest(BaseModel):
    model_config = RECORD_CONFIG

    tasks: List[Task] = Field(default_factory=list)
    task_id: Optional[int] = None
    from_index: int = 0
    to_index: int = 0
    line: Optional[str] = None
    tags: List[Tag] = Field(default_factory=list)
    to_top: bool = False


class TaskListResponse(BaseModel):
    model_config = RECORD_CONFIG

    tasks: List[Task]
    total_incomplete_duration: int


class ParseTaskRequest(BaseModel):
    model_config = RECORD_CONFIG

    line: str
    tags: List[Tag] = Field(default_factory=list)
    default_duration: Optional[int] = Field(default=None, ge=5)


class ParsedTask(BaseModel):
    model_config = RECORD_CONFIG

    name: str
    duration: int
    tag_id: Optional[int] = None


class HealthStatus(BaseModel):
    status: str = "healthy"
    version: str = "1.0.0"
