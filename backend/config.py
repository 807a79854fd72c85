"""
Day Planner - Configuration Management
Supports .env files and runtime configuration for planner defaults and the API server.
"""

from typing import Dict, Any, List
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache

from models import Settings


# ============================================
# PLANNER DEFAULTS
# ============================================

class PlannerConfig(BaseSettings):
    """
    Default day-planner settings.
    Used to seed a Settings record when the caller does not send one.
    """
    workday_start: str = Field(
        default="09:00",
        pattern=r"^\d{1,2}:\d{2}$",
        description="Start of the working day (HH:MM)"
    )
    workday_end: str = Field(
        default="17:00",
        pattern=r"^\d{1,2}:\d{2}$",
        description="End of the working day (HH:MM)"
    )
    extended_start: str = Field(
        default="06:00",
        pattern=r"^\d{1,2}:\d{2}$",
        description="Start of the extended display window (HH:MM)"
    )
    extended_end: str = Field(
        default="23:59",
        pattern=r"^\d{1,2}:\d{2}$",
        description="End of the extended display window (HH:MM)"
    )
    use_extended_hours: bool = Field(
        default=True,
        description="Show the extended window instead of the workday only"
    )
    restrict_tasks_to_work_hours: bool = Field(
        default=True,
        description="Only pack tasks into workday hours"
    )
    min_fragment_minutes: int = Field(
        default=5,
        ge=1,
        le=120,
        description="Smallest mid-task fragment the packer will emit"
    )
    default_task_duration: int = Field(
        default=30,
        ge=5,
        le=480,
        description="Duration used when a task line carries no explicit minutes"
    )
    max_range_days: int = Field(
        default=14,
        ge=1,
        le=62,
        description="Maximum number of days a single range request may schedule"
    )

    model_config = {
        "env_prefix": "PLANNER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


# ============================================
# SERVER CONFIGURATION
# ============================================

class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    host: str = Field(
        default="127.0.0.1",
        description="Interface the API binds to"
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port the API listens on"
    )
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the API from a browser"
    )
    log_level: str = Field(
        default="info",
        description="Uvicorn log level"
    )

    model_config = {
        "env_prefix": "SERVER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


# ============================================
# CACHED CONFIGURATION INSTANCES
# ============================================

@lru_cache()
def get_planner_config() -> PlannerConfig:
    """Get cached planner configuration instance."""
    return PlannerConfig()


@lru_cache()
def get_server_config() -> ServerConfig:
    """Get cached server configuration instance."""
    return ServerConfig()


def reload_config():
    """Clear configuration cache and reload from environment."""
    get_planner_config.cache_clear()
    get_server_config.cache_clear()


def default_settings() -> Settings:
    """Build a Settings record from the configured planner defaults."""
    planner = get_planner_config()
    return Settings(
        workday_start=planner.workday_start,
        workday_end=planner.workday_end,
        extended_start=planner.extended_start,
        extended_end=planner.extended_end,
        use_extended_hours=planner.use_extended_hours,
        restrict_tasks_to_work_hours=planner.restrict_tasks_to_work_hours,
        min_fragment_minutes=planner.min_fragment_minutes,
        default_task_duration=planner.default_task_duration,
    )


# ============================================
# CONFIGURATION SUMMARY
# ============================================

def get_config_summary() -> Dict[str, Any]:
    """
    Get a summary of all configuration values.
    Useful for debugging and settings display.
    """
    planner = get_planner_config()
    server = get_server_config()

    return {
        "planner": {
            "workday": f"{planner.workday_start} - {planner.workday_end}",
            "extended": f"{planner.extended_start} - {planner.extended_end}",
            "use_extended_hours": planner.use_extended_hours,
            "restrict_tasks_to_work_hours": planner.restrict_tasks_to_work_hours,
            "min_fragment_minutes": planner.min_fragment_minutes,
            "default_task_duration": planner.default_task_duration,
            "max_range_days": planner.max_range_days,
        },
        "server": {
            "host": server.host,
            "port": server.port,
            "cors_origins": server.cors_origins,
            "log_level": server.log_level,
        },
    }
