"""Live class ODM schema."""

from datetime import datetime
from enum import Enum
from typing import Any

from beanie import Document, Indexed
from pydantic import BaseModel, Field, field_validator

from .schema_utils import parse_mongo_datetime


class LiveClassStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    ENDED = "ended"


class RecordingStatus(str, Enum):
    RECORDING = "recording"
    STOPPED = "stopped"


class RecordingAttemptPhase(str, Enum):
    ACQUIRING = "acquiring"
    STARTING = "starting"
    RECORDED = "recorded"
    # Provider returned a sid but the recording could not be saved locally
    STARTED_UNCONFIRMED = "started_unconfirmed"
    FAILED = "failed"

    @classmethod
    def pending_phases(cls) -> list["RecordingAttemptPhase"]:
        return [cls.ACQUIRING, cls.STARTING, cls.STARTED_UNCONFIRMED]


class RecordingInfo(BaseModel):
    """Committed cloud recording handle; only written after a provider call succeeds."""

    resource_id: str
    sid: str
    status: RecordingStatus
    started_at: datetime | None = None
    stopped_at: datetime | None = None
    file_list: list[dict[str, Any]] | None = None

    @field_validator("started_at", "stopped_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class RecordingAttempt(BaseModel):
    """Progress of the latest recording start, kept apart from `recording`.

    An attempt left in a pending phase after its provider resource was acquired
    may correspond to a provider-side recording nobody will stop.
    """

    phase: RecordingAttemptPhase
    requested_by: str
    resource_id: str | None = None
    sid: str | None = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class LiveClass(Document):
    """Scheduled live class bound to a real-time channel."""

    live_class_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    teacher_id: Indexed(str)  # type: ignore[valid-type]
    unit_id: Indexed(str)  # type: ignore[valid-type]
    channel_name: Indexed(str, unique=True)  # type: ignore[valid-type]

    title: str
    description: str | None = None
    status: LiveClassStatus = LiveClassStatus.SCHEDULED

    start_time: datetime
    end_time: datetime | None = None

    recording: RecordingInfo | None = None
    # Text form written by older deployments: JSON metadata or a bare URL
    recording_url: str | None = None
    recording_attempt: RecordingAttempt | None = None

    created_at: datetime
    updated_at: datetime

    @field_validator("start_time", "end_time", "created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    @property
    def has_recording(self) -> bool:
        return self.recording is not None or bool(self.recording_url)

    class Settings:
        name = "live_classes"
        indexes = [
            [("unit_id", 1), ("start_time", 1)],
            "recording_attempt.phase",
        ]


__all__ = [
    "LiveClass",
    "LiveClassStatus",
    "RecordingAttempt",
    "RecordingAttemptPhase",
    "RecordingInfo",
    "RecordingStatus",
]
