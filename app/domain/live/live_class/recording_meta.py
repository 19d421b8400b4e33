"""Readers for recording metadata in both its structured and legacy text forms."""

from typing import Any

import orjson

from app.schemas import LiveClass


def parse_legacy_recording(value: str) -> dict[str, Any]:
    """Decode the legacy `recording_url` text.

    JSON objects are returned as-is; anything else is treated as a plain URL.
    """
    try:
        parsed = orjson.loads(value)
    except orjson.JSONDecodeError:
        return {"url": value}
    if isinstance(parsed, dict):
        return parsed
    return {"url": value}


def read_recording(live_class: LiveClass) -> dict[str, Any] | None:
    if live_class.recording is not None:
        return live_class.recording.model_dump(mode="json", by_alias=True)
    if live_class.recording_url:
        return parse_legacy_recording(live_class.recording_url)
    return None


def recording_files(live_class: LiveClass) -> list[dict[str, Any]] | None:
    """Downloadable files of a class recording, or None when nothing was recorded."""
    if live_class.recording is not None:
        return list(live_class.recording.file_list or [])

    if not live_class.recording_url:
        return None

    parsed = parse_legacy_recording(live_class.recording_url)
    files = parsed.get("fileList")
    if isinstance(files, list):
        return [item if isinstance(item, dict) else {"fileName": str(item)} for item in files]
    if isinstance(files, str) and files:
        return [{"fileName": files}]
    return [parsed]
