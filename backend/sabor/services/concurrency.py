# Overview: Transaction boundaries and locking helpers shared by the write services.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


class ConcurrencyConflictError(Exception):
    """A concurrent write invalidated data read earlier in this unit of work."""


class StorageUnavailableError(Exception):
    """The database could not complete the unit of work (locks, connectivity)."""


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the unit of work
    takes the database write lock up front instead (see begin_write).
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Serialize writers on SQLite by taking the RESERVED lock immediately.

    Without this two deferred transactions can both read the same stock
    level and then deadlock (SQLITE_BUSY) when upgrading to write.
    """
    if db.engine.dialect.name != "sqlite":
        return
    # pysqlite only opens a transaction on the first DML statement, so the
    # session may already be "in a transaction" after plain SELECTs.
    raw = db.session.connection().connection.dbapi_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def unit_of_work():
    """
    Explicit atomic boundary for a business operation.

    Everything done with db.session inside the block is committed together
    when the block exits normally, or rolled back if anything raises.
    Storage-level failures are translated:

    - StaleDataError   -> ConcurrencyConflictError (optimistic version check)
    - OperationalError -> StorageUnavailableError

    No retry happens here; retrying with fresh data is the caller's call.
    """
    try:
        begin_write()
        yield db.session
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        raise ConcurrencyConflictError(
            "The record was changed by another operation; reload and try again"
        ) from exc
    except OperationalError as exc:
        db.session.rollback()
        raise StorageUnavailableError("Storage is unavailable") from exc
    except BaseException:
        db.session.rollback()
        raise
