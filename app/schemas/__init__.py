"""Beanie ODM schemas for MongoDB collections."""

from .academic import Course, Department, LecturerUnit
from .id_sequence import IdRole, IdSequence
from .init import BEANIE_MODELS, init_beanie_odm
from .live_class import (
    LiveClass,
    LiveClassStatus,
    RecordingAttempt,
    RecordingAttemptPhase,
    RecordingInfo,
    RecordingStatus,
)
from .user import (
    AdminDetails,
    RefreshToken,
    StudentDetails,
    TeacherDetails,
    User,
    UserRole,
)

__all__ = [
    "AdminDetails",
    "BEANIE_MODELS",
    "Course",
    "Department",
    "IdRole",
    "IdSequence",
    "LecturerUnit",
    "LiveClass",
    "LiveClassStatus",
    "RecordingAttempt",
    "RecordingAttemptPhase",
    "RecordingInfo",
    "RecordingStatus",
    "RefreshToken",
    "StudentDetails",
    "TeacherDetails",
    "User",
    "UserRole",
    "init_beanie_odm",
]
