"""
PostgreSQL repository adapter - Implements RegistrationStore protocol.

This module provides the PostgreSQL implementation of the domain's
store port using psycopg3 with raw SQL.

Conflict Policy:
----------------
How a repeat submission is handled depends on the runtime environment
and is fixed when the store is constructed:

1. **AmendOnConflict** (dev, pre): if a registration with the same
   (email, vat_id) exists it is amended in place, taking the new
   registration id and personal data. Otherwise a new row is inserted.
   The lookup and the write are not atomic; two simultaneous first
   submissions for the same pair may both try to insert, and the loser
   fails on the UNIQUE constraint.

2. **StrictInsert** (pro): always INSERT. registration_id, email and
   vat_id are each UNIQUE, so any conflict fails with
   DuplicateRegistration and the existing row is left untouched.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import psycopg
from psycopg.rows import class_row
from psycopg_pool import ConnectionPool

from src.domain.exceptions import DuplicateRegistration, StoreError
from src.domain.ports import Registration

logger = logging.getLogger(__name__)

_COLUMNS = """
    registration_id, email, first_name, last_name, company_name, country, vat_id,
    created_at, updated_at, issuance_at, issuance_error, notif_email_at, notif_email_error
"""

_INSERT_SQL = f"""
    INSERT INTO registrations ({_COLUMNS})
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
"""

_AMEND_SQL = """
    UPDATE registrations
    SET registration_id = %s,
        first_name = %s,
        last_name = %s,
        company_name = %s,
        country = %s,
        updated_at = %s,
        issuance_at = %s,
        issuance_error = %s,
        notif_email_at = %s,
        notif_email_error = %s
    WHERE email = %s AND vat_id = %s
"""

_UPDATE_STATUS_SQL = """
    UPDATE registrations
    SET updated_at = %s,
        issuance_at = %s,
        issuance_error = %s,
        notif_email_at = %s,
        notif_email_error = %s
    WHERE registration_id = %s AND email = %s
"""

_SELECT_ONE_SQL = f"SELECT {_COLUMNS} FROM registrations WHERE vat_id = %s AND email = %s"

_SELECT_PAGE_SQL = f"""
    SELECT {_COLUMNS} FROM registrations
    ORDER BY created_at DESC
    LIMIT %s OFFSET %s
"""


def _insert_params(reg: Registration) -> tuple:
    return (
        reg.registration_id,
        reg.email,
        reg.first_name,
        reg.last_name,
        reg.company_name,
        reg.country,
        reg.vat_id,
        reg.created_at,
        reg.updated_at,
        reg.issuance_at,
        reg.issuance_error,
        reg.notif_email_at,
        reg.notif_email_error,
    )


class ConflictPolicy(Protocol):
    """Strategy deciding how a new registration is written."""

    def save(self, conn: psycopg.Connection, registration: Registration) -> None: ...


class StrictInsert:
    """Always insert; any uniqueness conflict is a hard failure."""

    def save(self, conn: psycopg.Connection, registration: Registration) -> None:
        try:
            conn.execute(_INSERT_SQL, _insert_params(registration))
        except psycopg.errors.UniqueViolation as exc:
            raise DuplicateRegistration(
                f"registration already exists for {registration.email} / {registration.vat_id}"
            ) from exc


class AmendOnConflict:
    """Amend the existing (email, vat_id) registration, or insert a new one."""

    def save(self, conn: psycopg.Connection, registration: Registration) -> None:
        row = conn.execute(
            "SELECT 1 FROM registrations WHERE email = %s AND vat_id = %s",
            (registration.email, registration.vat_id),
        ).fetchone()

        if row is None:
            logger.info(
                "Registration does not exist, inserting (vat_id=%s, email=%s)",
                registration.vat_id,
                registration.email,
            )
            StrictInsert().save(conn, registration)
            return

        logger.info(
            "Registration already exists, amending (vat_id=%s, email=%s)",
            registration.vat_id,
            registration.email,
        )
        conn.execute(
            _AMEND_SQL,
            (
                registration.registration_id,
                registration.first_name,
                registration.last_name,
                registration.company_name,
                registration.country,
                registration.updated_at,
                registration.issuance_at,
                registration.issuance_error,
                registration.notif_email_at,
                registration.notif_email_error,
                registration.email,
                registration.vat_id,
            ),
        )


def conflict_policy_for(environment: str) -> ConflictPolicy:
    """Pick the conflict policy for a runtime environment (dev, pre or pro)."""
    if environment == "pro":
        return StrictInsert()
    if environment in ("dev", "pre"):
        return AmendOnConflict()
    raise ValueError(f"unknown runtime environment: {environment}")


class PostgresRegistrationStore:
    """
    Implements RegistrationStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool, policy: ConflictPolicy) -> None:
        """
        Initialize store with connection pool and conflict policy.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            policy: Strategy for repeat submissions (see module docstring)
        """
        self._pool = pool
        self._policy = policy

    def save_registration(self, registration: Registration) -> None:
        """
        Persist a new registration according to the conflict policy.

        Stamps created/updated times and resets both error fields.

        Raises:
            DuplicateRegistration: If the policy rejects a conflicting row
            StoreError: On any other database failure
        """
        now = datetime.now(timezone.utc)
        registration.created_at = now
        registration.updated_at = now
        registration.issuance_error = ""
        registration.notif_email_error = ""

        try:
            with self._pool.connection() as conn:
                self._policy.save(conn, registration)
        except psycopg.Error as exc:
            raise StoreError(f"failed to save registration: {exc}") from exc

    def update_registration_status(self, registration: Registration) -> None:
        """
        Persist issuance and notification outcome fields.

        Raises:
            StoreError: On database failure
        """
        registration.updated_at = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                conn.execute(
                    _UPDATE_STATUS_SQL,
                    (
                        registration.updated_at,
                        registration.issuance_at,
                        registration.issuance_error,
                        registration.notif_email_at,
                        registration.notif_email_error,
                        registration.registration_id,
                        registration.email,
                    ),
                )
        except psycopg.Error as exc:
            raise StoreError(f"failed to update registration status: {exc}") from exc

    def get_registration(self, vat_id: str, email: str) -> Registration | None:
        """Return the registration for a (vat_id, email) pair, or None."""
        try:
            with self._pool.connection() as conn, conn.cursor(
                row_factory=class_row(Registration)
            ) as cursor:
                cursor.execute(_SELECT_ONE_SQL, (vat_id, email))
                return cursor.fetchone()
        except psycopg.Error as exc:
            raise StoreError(f"failed to read registration: {exc}") from exc

    def list_registrations(self, limit: int = 50, offset: int = 0) -> list[Registration]:
        """Return registrations newest first, for operator tooling."""
        try:
            with self._pool.connection() as conn, conn.cursor(
                row_factory=class_row(Registration)
            ) as cursor:
                cursor.execute(_SELECT_PAGE_SQL, (limit, offset))
                return cursor.fetchall()
        except psycopg.Error as exc:
            raise StoreError(f"failed to list registrations: {exc}") from exc


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
