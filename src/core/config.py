"""Core configuration dataclasses.

Config parsing lives in ``settings.py``; these dataclasses define the shape
the core expects so adapters and the frontend can build it safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from core.ports import SchedulerPort


@dataclass(frozen=True)
class ListConfig:
    """Paging and search debounce settings for list pages."""

    page_size: int = 10
    search_delay: float = 0.4


@dataclass(frozen=True)
class FormConfig:
    """Debounce settings for form dialogs."""

    validation_delay: float = 0.3


@dataclass(frozen=True)
class ApiConfig:
    """Where the REST collaborator lives and how long to wait for it."""

    base_url: str = "http://localhost:8000/api"
    timeout_seconds: float = 15.0
    token: Optional[str] = None


@dataclass(frozen=True)
class ConsoleContext:
    """Explicit context handed to controllers instead of module globals."""

    scheduler: SchedulerPort
    api: Any
    lists: ListConfig = ListConfig()
    forms: FormConfig = FormConfig()
