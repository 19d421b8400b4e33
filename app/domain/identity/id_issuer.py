"""Sequential public identifiers such as `STU/CS/2024/0007`."""

from loguru import logger
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.domain.utils.clock import current_year
from app.schemas import Department, IdRole, IdSequence
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

SEQUENCE_WIDTH = 4
_UPSERT_ATTEMPTS = 3


def format_identifier(role: IdRole, scope: str | None, year: int, sequence: int) -> str:
    seq = str(sequence).zfill(SEQUENCE_WIDTH)
    if role is IdRole.ADMIN:
        return f"{role.prefix}/{year}/{seq}"
    return f"{role.prefix}/{scope}/{year}/{seq}"


class IdIssuer:
    """Issues identifiers from a per (year, role) counter held in MongoDB.

    Each issuance is one store-side `$inc` with upsert, so concurrent callers
    always receive distinct sequence numbers. The formatted identifier itself
    carries no uniqueness constraint.
    """

    async def next_sequence(self, year: int, role: IdRole) -> int:
        collection = IdSequence.get_motor_collection()

        # Two first-time upserts for the same key can race on the unique index;
        # the loser retries and increments the row the winner created.
        for attempt in range(1, _UPSERT_ATTEMPTS + 1):
            try:
                row = await collection.find_one_and_update(
                    {"year": year, "role": role.value},
                    {"$inc": {"current_sequence": 1}},
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
                return int(row["current_sequence"])
            except DuplicateKeyError:
                if attempt == _UPSERT_ATTEMPTS:
                    raise
                logger.debug("Sequence upsert race for year={} role={}, retrying", year, role.value)

        raise RuntimeError("unreachable")

    async def _resolve_scope(self, role: IdRole, scope_code: str | None) -> str | None:
        if role is IdRole.ADMIN:
            return None

        if not scope_code:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg=f"Scope code is required for {role.value} identifiers",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        if role is IdRole.TEACHER:
            department = await Department.find_one(Department.department_id == scope_code)
            if not department:
                raise AppError(
                    errcode=AppErrorCode.E_DEPARTMENT_NOT_FOUND,
                    errmesg=f"Department not found: {scope_code}",
                    status_code=HttpStatusCode.NOT_FOUND,
                )
            return department.short_code

        return scope_code

    async def issue(self, role: IdRole, scope_code: str | None = None, year: int | None = None) -> str:
        """
        Issue the next identifier for `role`.

        Args:
            role: Identifier family
            scope_code: Course short code for students, department id for
                teachers; ignored for admins
            year: Defaults to the current UTC year

        Raises:
            AppError: missing scope (400) or unknown department (404)
        """
        year = year or current_year()
        scope = await self._resolve_scope(role, scope_code)
        sequence = await self.next_sequence(year, role)

        identifier = format_identifier(role, scope, year, sequence)
        logger.info("Issued identifier {}", identifier)
        return identifier


id_issuer = IdIssuer()
