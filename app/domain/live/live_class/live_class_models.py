"""Live class domain models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from app.schemas import LiveClass, LiveClassStatus, RecordingAttemptPhase, UserRole


class Actor(BaseModel):
    """Authenticated caller as seen by the live class operations."""

    user_id: str
    role: UserRole
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


class LiveClassCreateParams(BaseModel):
    unit_id: str
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime | None = None


class LiveClassResponse(BaseModel):
    live_class_id: str
    teacher_id: str
    unit_id: str
    channel_name: str
    title: str
    description: str | None = None
    status: LiveClassStatus
    start_time: datetime
    end_time: datetime | None = None
    has_recording: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: LiveClass) -> "LiveClassResponse":
        return cls(
            live_class_id=doc.live_class_id,
            teacher_id=doc.teacher_id,
            unit_id=doc.unit_id,
            channel_name=doc.channel_name,
            title=doc.title,
            description=doc.description,
            status=doc.status,
            start_time=doc.start_time,
            end_time=doc.end_time,
            has_recording=doc.has_recording,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )


class LiveClassCreateResult(BaseModel):
    live_class: LiveClassResponse
    app_id: str | None
    channel: str | None = None
    token: str


class JoinTokenResult(BaseModel):
    app_id: str | None
    channel: str | None = None
    class_id: str | None = None
    role: str
    user_name: str | None = None
    uid: int
    token: str
    screen_share_uid: int
    screen_share_token: str
    rtm_user_id: str
    rtm_token: str
    expires_at: int


class SessionInfo(BaseModel):
    live_class_id: str
    title: str
    channel_name: str
    status: LiveClassStatus
    teacher_id: str
    unit_id: str
    start_time: datetime
    end_time: datetime | None = None
    has_recording: bool


class RecordingStartResult(BaseModel):
    live_class_id: str
    resource_id: str
    sid: str
    started_at: datetime


class RecordingStopParams(BaseModel):
    channel: str | None = None
    resource_id: str
    sid: str
    live_class_id: str | None = None


class RecordingStopResult(BaseModel):
    resource_id: str
    sid: str
    stopped_at: datetime
    file_list: list[dict[str, Any]]
    persisted: bool


class RecordingView(BaseModel):
    live_class_id: str
    recording: dict[str, Any] | None = None


class OrphanedRecording(BaseModel):
    """Recording start that never reached a terminal phase."""

    live_class_id: str
    channel_name: str
    phase: RecordingAttemptPhase
    requested_by: str
    resource_id: str | None = None
    sid: str | None = None
    created_at: datetime
    updated_at: datetime
