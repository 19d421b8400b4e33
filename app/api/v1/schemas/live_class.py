from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_serializer

from app.schemas import LiveClassStatus, RecordingAttemptPhase

from .serializers import serialize_optional_utc_datetime, serialize_utc_datetime


class CreateLiveClassIn(BaseModel):
    unit_id: str = Field(description="Unit the class belongs to")
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime | None = None


class LiveClassOut(BaseModel):
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

    @field_serializer("start_time", "created_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)

    @field_serializer("end_time")
    @classmethod
    def serialize_optional_datetime(cls, v: datetime | None) -> str | None:
        return serialize_optional_utc_datetime(v)


class CreateLiveClassOut(BaseModel):
    live_class: LiveClassOut
    app_id: str | None
    channel: str
    token: str


class ListLiveClassesOut(BaseModel):
    live_classes: list[LiveClassOut]


class UpdateStatusIn(BaseModel):
    status: str = Field(description="scheduled, live or ended")


class JoinTokenOut(BaseModel):
    app_id: str | None
    channel: str
    class_id: str | None = None
    role: str = Field(description="'teacher' or 'student'; informational only")
    user_name: str | None = None
    uid: int
    token: str
    screen_share_uid: int
    screen_share_token: str
    rtm_user_id: str
    rtm_token: str
    expires_at: int


class SessionInfoOut(BaseModel):
    live_class_id: str
    title: str
    channel_name: str
    status: LiveClassStatus
    teacher_id: str
    unit_id: str
    start_time: datetime
    end_time: datetime | None = None
    has_recording: bool

    @field_serializer("start_time")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)

    @field_serializer("end_time")
    @classmethod
    def serialize_optional_datetime(cls, v: datetime | None) -> str | None:
        return serialize_optional_utc_datetime(v)


class StartRecordingIn(BaseModel):
    class_id: str = Field(validation_alias=AliasChoices("class_id", "classId"))


class StartRecordingOut(BaseModel):
    class_id: str
    resource_id: str
    sid: str
    started_at: datetime

    @field_serializer("started_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)


class StopRecordingIn(BaseModel):
    channel: str | None = Field(
        default=None,
        validation_alias=AliasChoices("channel", "channelName"),
        description="Defaults to the class channel; required without class_id",
    )
    resource_id: str = Field(validation_alias=AliasChoices("resource_id", "resourceId"))
    sid: str
    class_id: str | None = Field(default=None, validation_alias=AliasChoices("class_id", "classId"))


class StopRecordingOut(BaseModel):
    resource_id: str
    sid: str
    stopped_at: datetime
    file_list: list[dict[str, Any]]
    persisted: bool

    @field_serializer("stopped_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)


class RecordingOut(BaseModel):
    id: str
    recording: dict[str, Any] | None = None


class RecordingFilesOut(BaseModel):
    class_id: str
    files: list[dict[str, Any]]


class OrphanedRecordingOut(BaseModel):
    live_class_id: str
    channel_name: str
    phase: RecordingAttemptPhase
    requested_by: str
    resource_id: str | None = None
    sid: str | None = None
    updated_at: datetime

    @field_serializer("updated_at")
    @classmethod
    def serialize_datetime(cls, v: datetime) -> str:
        return serialize_utc_datetime(v)


class ListOrphanedRecordingsOut(BaseModel):
    recordings: list[OrphanedRecordingOut]
