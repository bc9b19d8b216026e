# Overview: Allocation of sequential human-readable document numbers.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ValidationError
from ..models import DocumentSequence
from .storage import storage_errors


def next_sequence_number(*, document_type: str, scope_key: str) -> int:
    """
    Allocate the next number for (document_type, scope_key), starting at 1.

    Increments in place with a single UPDATE; the first allocation inserts the
    sequence row. Runs inside the caller's transaction (flush, no commit).
    """
    if not document_type:
        raise ValidationError("document_type is required")
    if not scope_key:
        raise ValidationError("scope_key is required")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.scope_key == scope_key,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    def _current() -> int:
        db.session.flush()
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(document_type=document_type, scope_key=scope_key)
            .scalar()
        )
        return current - 1

    with storage_errors("document sequence allocation", session=db.session):
        result = db.session.execute(stmt)
        if result.rowcount:
            return _current()

        seq = DocumentSequence(document_type=document_type, scope_key=scope_key, next_number=2)
        db.session.add(seq)
        try:
            db.session.flush()
            return 1
        except IntegrityError:
            # Another writer created the row first; fall back to incrementing it.
            db.session.rollback()
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            return _current()
