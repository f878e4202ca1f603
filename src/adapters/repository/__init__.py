"""Repository adapters - Database implementations."""

from .postgres import (
    AmendOnConflict,
    PostgresRegistrationStore,
    StrictInsert,
    conflict_policy_for,
    run_migrations,
)

__all__ = [
    "AmendOnConflict",
    "PostgresRegistrationStore",
    "StrictInsert",
    "conflict_policy_for",
    "run_migrations",
]
