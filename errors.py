"""Storage error taxonomy handed to the HTTP layer.

Repositories never retry and never recover locally. Every SQLAlchemy failure
is classified into one of the types below and re-raised with the original
exception chained as ``__cause__``.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError

logger = logging.getLogger(__name__)

# Postgres SQLSTATE codes for the constraint violations reported as conflicts
_CONFLICT_SQLSTATES = {
    "23505": "unique",
    "23503": "foreign_key",
    "23502": "not_null",
}

_CONFLICT_SQLITE_MESSAGES = {
    "UNIQUE constraint failed": "unique",
    "FOREIGN KEY constraint failed": "foreign_key",
    "NOT NULL constraint failed": "not_null",
}


class LedgerError(Exception):
    """Base class for classified storage failures."""


class NotFoundError(LedgerError, LookupError):
    """A row required by the operation does not exist."""


class ConflictError(LedgerError):
    """A unique, foreign-key or not-null constraint was violated."""


class InternalError(LedgerError):
    """Connectivity loss, pool timeout or any unclassified engine error."""


def _constraint_kind(exc: IntegrityError) -> Optional[str]:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return _CONFLICT_SQLSTATES.get(sqlstate)
    message = str(orig)
    for needle, kind in _CONFLICT_SQLITE_MESSAGES.items():
        if needle in message:
            return kind
    return None


def classify_storage_error(exc: Exception) -> LedgerError:
    if isinstance(exc, LedgerError):
        return exc
    if isinstance(exc, NoResultFound):
        return NotFoundError("Record not found")
    if isinstance(exc, IntegrityError):
        kind = _constraint_kind(exc)
        if kind is not None:
            return ConflictError(f"Constraint violation: {kind}")
    return InternalError("Storage failure")


@contextmanager
def storage_errors() -> Iterator[None]:
    try:
        yield
    except LedgerError:
        raise
    except SQLAlchemyError as exc:
        error = classify_storage_error(exc)
        logger.debug(f"storage_error: kind={type(error).__name__} detail={exc}")
        raise error from exc
