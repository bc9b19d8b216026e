# Overview: Translates SQLAlchemy failures into StorageError for callers.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError


@contextmanager
def storage_errors(operation: str, session=None):
    """
    Re-raise any SQLAlchemyError raised inside the block as StorageError.

    No retries: the caller surfaces the error and the user resubmits. When a
    session is given it is rolled back so it stays usable afterwards.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        if session is not None:
            session.rollback()
        raise StorageError(f"{operation} failed", {"operation": operation}) from exc


def commit(session, operation: str) -> None:
    """Commit the session, mapping database failures to StorageError."""
    with storage_errors(operation, session=session):
        session.commit()
