# Overview: Allocates human-facing document references (TR-000001, S-000001).

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from .errors import MotostockError


TRANSFER_DOCUMENT = "TRANSFER"
SALE_DOCUMENT = "SALE"


class DocumentSequenceError(MotostockError):
    """Raised when document sequence operations fail."""
    pass


def _bump(document_type: str) -> int | None:
    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_type == document_type)
        .values(next_number=DocumentSequence.next_number + 1)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )
    return current - 1


def next_reference(*, document_type: str, prefix: str, pad: int = 6) -> str:
    """
    Atomically allocate the next reference for a document type.

    The UPDATE takes a row lock on the sequence, so two concurrent requests
    never receive the same number. The first allocation creates the row
    inside a savepoint; losing that insert race falls back to the UPDATE
    without discarding the caller's pending work.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    number = _bump(document_type)
    if number is None:
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(document_type=document_type, next_number=2))
            number = 1
        except IntegrityError:
            number = _bump(document_type)
            if number is None:
                raise

    return f"{prefix}-{number:0{pad}d}"
