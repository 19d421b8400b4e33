"""Tests for reading recording metadata in structured and legacy forms."""

from datetime import datetime, timezone

import pytest

from app.domain.live.live_class.recording_meta import (
    parse_legacy_recording,
    read_recording,
    recording_files,
)
from app.schemas import LiveClass, RecordingInfo, RecordingStatus

# Documents can only be instantiated once Beanie is initialised
pytestmark = pytest.mark.usefixtures("beanie_db")


def _live_class(**kwargs) -> LiveClass:
    now = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
    fields = {
        "live_class_id": "lc_1",
        "teacher_id": "us_t1",
        "unit_id": "unit-1",
        "channel_name": "class-abc123",
        "title": "Algebra",
        "start_time": now,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(kwargs)
    return LiveClass(**fields)


class TestParseLegacy:
    async def test_json_object(self):
        assert parse_legacy_recording('{"resourceId": "r", "sid": "s"}') == {"resourceId": "r", "sid": "s"}

    async def test_plain_url(self):
        assert parse_legacy_recording("https://cdn.example.com/rec.mp4") == {"url": "https://cdn.example.com/rec.mp4"}

    async def test_json_non_object_is_treated_as_url(self):
        assert parse_legacy_recording("[1, 2]") == {"url": "[1, 2]"}


class TestReadRecording:
    async def test_structured_round_trip(self):
        started = datetime(2024, 5, 1, 9, 5, tzinfo=timezone.utc)
        live_class = _live_class(
            recording=RecordingInfo(resource_id="r1", sid="s1", status=RecordingStatus.RECORDING, started_at=started)
        )

        recording = read_recording(live_class)

        assert recording["resource_id"] == "r1"
        assert recording["sid"] == "s1"
        assert recording["status"] == "recording"
        assert recording["started_at"].startswith("2024-05-01T09:05:00")

    async def test_structured_wins_over_legacy(self):
        live_class = _live_class(
            recording=RecordingInfo(resource_id="r1", sid="s1", status=RecordingStatus.STOPPED),
            recording_url="https://old.example.com/rec.mp4",
        )

        assert read_recording(live_class)["sid"] == "s1"

    async def test_legacy_url(self):
        live_class = _live_class(recording_url="https://old.example.com/rec.mp4")

        assert read_recording(live_class) == {"url": "https://old.example.com/rec.mp4"}

    async def test_nothing_recorded(self):
        assert read_recording(_live_class()) is None


class TestRecordingFiles:
    async def test_structured_file_list(self):
        files = [{"fileName": "a.mp4"}]
        live_class = _live_class(
            recording=RecordingInfo(resource_id="r", sid="s", status=RecordingStatus.STOPPED, file_list=files)
        )

        assert recording_files(live_class) == files

    async def test_structured_without_files(self):
        live_class = _live_class(recording=RecordingInfo(resource_id="r", sid="s", status=RecordingStatus.RECORDING))

        assert recording_files(live_class) == []

    async def test_legacy_json_with_file_list(self):
        live_class = _live_class(recording_url='{"sid": "s", "fileList": [{"fileName": "b.mp4"}]}')

        assert recording_files(live_class) == [{"fileName": "b.mp4"}]

    async def test_legacy_json_without_file_list_returns_record(self):
        live_class = _live_class(recording_url='{"sid": "s"}')

        assert recording_files(live_class) == [{"sid": "s"}]

    async def test_legacy_url(self):
        live_class = _live_class(recording_url="https://old.example.com/rec.mp4")

        assert recording_files(live_class) == [{"url": "https://old.example.com/rec.mp4"}]

    async def test_no_recording(self):
        assert recording_files(_live_class()) is None
