"""Per (year, role) counters backing issued public identifiers."""

from enum import Enum

from beanie import Document
from pymongo import ASCENDING, IndexModel


class IdRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

    @property
    def prefix(self) -> str:
        return _ROLE_PREFIXES[self]


_ROLE_PREFIXES = {
    IdRole.STUDENT: "STU",
    IdRole.TEACHER: "TCH",
    IdRole.ADMIN: "ADM",
}


class IdSequence(Document):
    """One row per (year, role); `current_sequence` only ever grows."""

    year: int
    role: IdRole
    current_sequence: int = 0

    class Settings:
        name = "id_sequences"
        indexes = [
            IndexModel(
                [("year", ASCENDING), ("role", ASCENDING)],
                unique=True,
                name="year_role_unique",
            ),
        ]
