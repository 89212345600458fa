"""Data models for History Slackbot."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class HistoricalEvent:
    """Represents a single "this day in history" feed item."""

    year: str
    title: str
    description: str
    category: str
    link: str
    published: datetime | None = None


@dataclass
class Holiday:
    """Represents a holiday feed item."""

    title: str
    description: str
    link: str


@dataclass
class SelectedEvent:
    """An event chosen and re-described by the LLM."""

    year: str
    title: str
    description: str
    category: str


@dataclass
class JobResult:
    """Outcome of a single job invocation."""

    success: bool
    started_at: datetime
    finished_at: datetime
    error: Exception | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()
