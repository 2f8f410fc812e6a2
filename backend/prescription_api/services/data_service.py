"""
Prescription API — Data Service (Database Collaborator)
========================================================

What:  The only module that issues SQL. Exposes the four operations the
       prescription handlers need from the hosted database:
         - list_prescription_ids(): stored procedure display_prescription_id
         - add_prescription():      stored procedure add_prescription
         - read_one():              single-row read from a known table
         - update_one():            keyed update on a known table
How:   SQLAlchemy Core constructs (table/column/select/update) and text()
       for stored procedures, executed on the request's AsyncSession.
Who:   Called by PrescriptionService; never by routes directly.

Failure contract:
    Any error reported by the database (or the driver failing to reach it)
    is raised as DataServiceError carrying the database's message.
    A single-row read that matches nothing raises NotFoundError.
    Nothing is retried here.

The schema itself is owned by the database. Tables are addressed by name
with only the columns a statement needs; rows come back as plain dicts
with every column the table has.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping

from sqlalchemy import column, literal_column, select, table, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from prescription_api.exceptions import DataServiceError, NotFoundError

logger = logging.getLogger(__name__)


# ── Known Tables ──────────────────────────────────────────────────────────
PRESCRIPTION_TABLE = "prescription"
LEFT_EYE_TABLE = "left_eye"
RIGHT_EYE_TABLE = "right_eye"
ADDITIONAL_DETAILS_TABLE = "additional_details"

KNOWN_TABLES = frozenset(
    {PRESCRIPTION_TABLE, LEFT_EYE_TABLE, RIGHT_EYE_TABLE, ADDITIONAL_DETAILS_TABLE}
)

# ── Stored Procedure Signatures ───────────────────────────────────────────
LIST_PRESCRIPTION_IDS_SQL = "SELECT * FROM display_prescription_id(p_id => :p_id)"

# Named arguments of add_prescription, in declaration order
ADD_PRESCRIPTION_ARGUMENTS = (
    "p_id",
    "d_id",
    "l_without_dv", "l_without_nv", "l_with_dv", "l_with_nv",
    "l_sphere_dv", "l_cyl_dv", "l_axis_dv", "l_vision_dv",
    "l_sphere_nv", "l_cyl_nv", "l_axis_nv", "l_vision_nv",
    "r_without_dv", "r_without_nv", "r_with_dv", "r_with_nv",
    "r_sphere_dv", "r_cyl_dv", "r_axis_dv", "r_vision_dv",
    "r_sphere_nv", "r_cyl_nv", "r_axis_nv", "r_vision_nv",
    "p_ipd",
    "p_bifocal",
    "p_colour",
    "p_remarks",
)

_INTEGER_IDENTIFIER = re.compile(r"^[+-]?\d+$")


def coerce_identifier(value: Any) -> Any:
    """
    Converts an identifier received as text into the value bound to SQL.

    Digit-only strings become Python ints (arbitrary precision, so IDs above
    2^53 survive unchanged). Anything else, e.g. a UUID, is bound as-is.

    >>> coerce_identifier("9007199254740993")
    9007199254740993
    >>> coerce_identifier("3f2b6c1e-0000-4000-8000-000000000000")
    '3f2b6c1e-0000-4000-8000-000000000000'
    """
    if isinstance(value, str):
        stripped = value.strip()
        if _INTEGER_IDENTIFIER.match(stripped):
            return int(stripped)
        return stripped
    return value


def describe_error(exc: BaseException) -> str:
    """
    Extracts the database's own error text from a SQLAlchemy/driver exception.

    SQLAlchemy wraps driver errors (DBAPIError.orig), and the asyncpg adapter
    wraps asyncpg's exception again (chained as __cause__); the innermost
    message is the one worth returning.
    """
    inner: BaseException = getattr(exc, "orig", None) or exc
    if inner.__cause__ is not None:
        inner = inner.__cause__
    return str(inner) or type(inner).__name__


def _flatten_identifiers(values: Iterable[Any]) -> List[Any]:
    """
    Normalizes procedure output to a flat list of identifiers.

    display_prescription_id may be declared as SETOF (one ID per row) or as
    returning an array (one row holding every ID, NULL when empty).
    """
    values = list(values)
    if len(values) == 1 and (values[0] is None or isinstance(values[0], (list, tuple))):
        return list(values[0] or [])
    return [value for value in values if value is not None]


class DataService:
    """
    Stateless gateway to the hosted database.

    Every method takes the request's AsyncSession as its first argument;
    transaction boundaries belong to the caller (get_db_session).
    """

    async def list_prescription_ids(self, db: AsyncSession, patient_id: str) -> List[Any]:
        """
        Calls display_prescription_id for a patient.

        Returns:
            Identifiers in the order the procedure produced them (possibly empty).

        Raises:
            DataServiceError: The procedure call failed.
        """
        try:
            result = await db.execute(
                text(LIST_PRESCRIPTION_IDS_SQL),
                {"p_id": coerce_identifier(patient_id)},
            )
            rows = result.all()
        except (SQLAlchemyError, OSError) as e:
            self._log_failure("display_prescription_id", e)
            raise DataServiceError(
                message=describe_error(e),
                operation="display_prescription_id",
                context={"error_type": type(e).__name__},
            ) from e

        return _flatten_identifiers(row[0] for row in rows)

    async def add_prescription(self, db: AsyncSession, arguments: Mapping[str, Any]) -> Any:
        """
        Calls add_prescription with named arguments.

        Args:
            db: Async database session
            arguments: Mapping of procedure argument name → value. Names must
                       come from ADD_PRESCRIPTION_ARGUMENTS; values are bound
                       as-is (None binds NULL).

        Returns:
            Whatever the procedure returns (the new prescription identifier).

        Raises:
            ValueError: An argument name is not part of the procedure signature.
            DataServiceError: The procedure call failed.
        """
        unknown = set(arguments) - set(ADD_PRESCRIPTION_ARGUMENTS)
        if unknown:
            raise ValueError(f"Unknown add_prescription arguments: {sorted(unknown)}")

        names = [name for name in ADD_PRESCRIPTION_ARGUMENTS if name in arguments]
        call = ", ".join(f"{name} => :{name}" for name in names)

        try:
            result = await db.execute(
                text(f"SELECT add_prescription({call})"),
                {name: arguments[name] for name in names},
            )
            return result.scalar()
        except (SQLAlchemyError, OSError) as e:
            self._log_failure("add_prescription", e)
            raise DataServiceError(
                message=describe_error(e),
                operation="add_prescription",
                context={"error_type": type(e).__name__},
            ) from e

    async def read_one(
        self,
        db: AsyncSession,
        table_name: str,
        key_column: str,
        key_value: Any,
        for_update: bool = False,
    ) -> Dict[str, Any]:
        """
        Reads exactly one row: SELECT * FROM <table> WHERE <key_column> = :value.

        Args:
            db: Async database session
            table_name: One of KNOWN_TABLES
            key_column: Column to match on (a constant chosen by the caller)
            key_value: Identifier as received from the client
            for_update: Lock the row until the surrounding transaction ends

        Returns:
            The row as a dict of column name → value.

        Raises:
            NotFoundError: No row matched.
            DataServiceError: The query failed, or more than one row matched.
        """
        target = self._table(table_name, key_column)
        stmt = (
            select(literal_column("*"))
            .select_from(target)
            .where(target.c[key_column] == coerce_identifier(key_value))
        )
        if for_update:
            stmt = stmt.with_for_update()

        try:
            result = await db.execute(stmt)
            rows = result.mappings().all()
        except (SQLAlchemyError, OSError) as e:
            self._log_failure(f"read {table_name}", e)
            raise DataServiceError(
                message=describe_error(e),
                operation=f"read {table_name}",
                context={"error_type": type(e).__name__},
            ) from e

        if not rows:
            raise NotFoundError(resource=table_name, resource_id=str(key_value))
        if len(rows) > 1:
            raise DataServiceError(
                message=f"Expected a single {table_name} row, found {len(rows)}",
                operation=f"read {table_name}",
                context={"key_column": key_column},
            )
        return dict(rows[0])

    async def update_one(
        self,
        db: AsyncSession,
        table_name: str,
        key_column: str,
        key_value: Any,
        fields: Mapping[str, Any],
    ) -> int:
        """
        UPDATE <table> SET <fields> WHERE <key_column> = :value.

        Returns:
            Number of rows the database reports as updated.

        Raises:
            DataServiceError: The update failed.
        """
        target = self._table(table_name, key_column, *fields)
        stmt = (
            update(target)
            .where(target.c[key_column] == coerce_identifier(key_value))
            .values(**dict(fields))
        )

        try:
            result = await db.execute(stmt)
        except (SQLAlchemyError, OSError) as e:
            self._log_failure(f"update {table_name}", e)
            raise DataServiceError(
                message=describe_error(e),
                operation=f"update {table_name}",
                context={"error_type": type(e).__name__},
            ) from e

        return result.rowcount

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _table(table_name: str, *column_names: str):
        if table_name not in KNOWN_TABLES:
            raise ValueError(f"Unknown table '{table_name}'")
        return table(table_name, *(column(name) for name in dict.fromkeys(column_names)))

    @staticmethod
    def _log_failure(operation: str, exc: BaseException) -> None:
        logger.error(
            "Data service call failed: %s (%s: %s)",
            operation,
            type(exc).__name__,
            describe_error(exc),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
data_service = DataService()
