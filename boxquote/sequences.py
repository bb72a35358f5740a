"""
Sequence service for quote and order numbers.

Numbers come from a per-(doc_type, year) counter row, incremented under a
row lock where the dialect supports it. Allocation is never retried by
callers: a failure aborts the surrounding creation before anything else is
written.

Format: PREFIX-YYYY-NNNNN, e.g. COT-2026-00042
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .errors import SequenceAllocationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentNumber:
    doc_type: str
    year: int
    seq: int
    formatted: str


def format_document_number(prefix: str, year: int, seq: int) -> str:
    return f"{prefix}-{year}-{seq:05d}"


def next_document_number(
    db: Session,
    *,
    doc_type: str,
    prefix: str,
    now: datetime = None,
    max_retries: int = 5,
) -> DocumentNumber:
    now = now or datetime.utcnow()
    year = now.year

    dialect = getattr(getattr(db, "bind", None), "dialect", None)
    dialect_name = getattr(dialect, "name", "") or ""

    try:
        for _ in range(max_retries):
            query = db.query(models.DocumentSequence).filter(
                models.DocumentSequence.doc_type == doc_type,
                models.DocumentSequence.year == year,
            )
            # SQLite has no FOR UPDATE; its writer lock serializes instead.
            if dialect_name.lower() != "sqlite":
                query = query.with_for_update()

            row = query.first()
            if row is None:
                row = models.DocumentSequence(doc_type=doc_type, year=year, last_seq=0)
                db.add(row)
                try:
                    with db.begin_nested():
                        db.flush()
                except IntegrityError:
                    continue

            row.last_seq = int(row.last_seq or 0) + 1
            db.flush()
            seq = int(row.last_seq)
            return DocumentNumber(
                doc_type=doc_type,
                year=year,
                seq=seq,
                formatted=format_document_number(prefix, year, seq),
            )
    except SQLAlchemyError as e:
        logger.error("Sequence allocation failed for %s/%s: %s", doc_type, year, e)
        raise SequenceAllocationError(f"Could not allocate a {doc_type} number") from e

    logger.error("Sequence allocation exhausted retries for %s/%s", doc_type, year)
    raise SequenceAllocationError(f"Could not allocate a {doc_type} number")


def next_quote_number(db: Session, now: datetime = None) -> str:
    return next_document_number(db, doc_type="quote", prefix=settings.QUOTE_NUMBER_PREFIX, now=now).formatted


def next_order_number(db: Session, now: datetime = None) -> str:
    return next_document_number(db, doc_type="order", prefix=settings.ORDER_NUMBER_PREFIX, now=now).formatted
