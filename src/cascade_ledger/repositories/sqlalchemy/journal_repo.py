"""SQLAlchemy implementation of JournalRepository."""

from datetime import date
from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, selectinload

from cascade_ledger.domain.models import Posting, Transaction
from cascade_ledger.repositories.sqlalchemy.orm_models import (
    JournalTransactionORM,
    PostingORM,
)

# Rows fetched per round trip when streaming postings
_STREAM_BATCH_SIZE = 500


class SqlAlchemyJournalRepository:
    """SQLAlchemy-backed append-only journal."""

    def __init__(self, db: Session):
        self._db = db

    def add(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction with its postings."""
        orm_txn = self._to_orm(transaction)
        self._db.add(orm_txn)
        try:
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(orm_txn)
        return self._to_domain(orm_txn)

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        orm_txn = self._db.query(JournalTransactionORM).filter(
            JournalTransactionORM.txn_id == txn_id
        ).first()
        return self._to_domain(orm_txn) if orm_txn else None

    def find_reversal(self, txn_id: str) -> Optional[Transaction]:
        """Return the transaction reversing ``txn_id``, if any."""
        orm_txn = self._db.query(JournalTransactionORM).filter(
            JournalTransactionORM.reverses_txn_id == txn_id
        ).first()
        return self._to_domain(orm_txn) if orm_txn else None

    def max_sequence(self, account_id: str) -> int:
        """Highest sequence assigned in the account, 0 when empty."""
        value = self._db.query(func.max(JournalTransactionORM.sequence)).filter(
            JournalTransactionORM.account_id == account_id
        ).scalar()
        return int(value or 0)

    def list_by_account(
        self,
        account_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Transaction]:
        """List transactions ordered by (txn_date, sequence)."""
        conditions = [JournalTransactionORM.account_id == account_id]
        if start:
            conditions.append(JournalTransactionORM.txn_date >= start)
        if end:
            conditions.append(JournalTransactionORM.txn_date <= end)

        query = (
            self._db.query(JournalTransactionORM)
            .options(selectinload(JournalTransactionORM.postings))
            .filter(and_(*conditions))
            .order_by(JournalTransactionORM.txn_date, JournalTransactionORM.sequence)
        )
        return [self._to_domain(t) for t in query.all()]

    def iter_postings(
        self,
        account_ids: list[str],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Iterator[Posting]:
        """Stream postings ordered by (txn_date, sequence, line_no)."""
        if not account_ids:
            return

        conditions = [JournalTransactionORM.account_id.in_(account_ids)]
        if start:
            conditions.append(JournalTransactionORM.txn_date >= start)
        if end:
            conditions.append(JournalTransactionORM.txn_date <= end)

        query = (
            self._db.query(PostingORM, JournalTransactionORM)
            .join(JournalTransactionORM, PostingORM.txn_id == JournalTransactionORM.txn_id)
            .filter(and_(*conditions))
            .order_by(
                JournalTransactionORM.txn_date,
                JournalTransactionORM.account_id,
                JournalTransactionORM.sequence,
                PostingORM.line_no,
            )
            .yield_per(_STREAM_BATCH_SIZE)
        )
        for orm_posting, orm_txn in query:
            yield self._posting_to_domain(orm_posting, orm_txn)

    def list_batch(self, batch_id: str) -> list[Transaction]:
        """List transactions created by one import batch."""
        query = (
            self._db.query(JournalTransactionORM)
            .filter(JournalTransactionORM.batch_id == batch_id)
            .order_by(JournalTransactionORM.txn_date, JournalTransactionORM.sequence)
        )
        return [self._to_domain(t) for t in query.all()]

    def delete_batch(self, batch_id: str) -> int:
        """Remove every transaction of a batch in one unit of work."""
        orm_txns = self._db.query(JournalTransactionORM).filter(
            JournalTransactionORM.batch_id == batch_id
        ).all()
        try:
            for orm_txn in orm_txns:
                self._db.delete(orm_txn)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return len(orm_txns)

    def _to_orm(self, txn: Transaction) -> JournalTransactionORM:
        """Convert domain model to ORM model."""
        return JournalTransactionORM(
            txn_id=txn.txn_id,
            account_id=txn.account_id,
            txn_date=txn.txn_date,
            sequence=txn.sequence,
            txn_type=txn.txn_type,
            description=txn.description,
            category=txn.category,
            batch_id=txn.batch_id,
            reverses_txn_id=txn.reverses_txn_id,
            created_at_est=txn.created_at_est,
            postings=[
                PostingORM(
                    posting_id=p.posting_id,
                    txn_id=txn.txn_id,
                    line_no=p.line_no,
                    account_type=p.account_type,
                    ledger_account=p.ledger_account,
                    side=p.side,
                    amount=p.amount,
                    quantity=p.quantity,
                    quantity_unit=p.quantity_unit,
                    category=p.category,
                )
                for p in txn.postings
            ],
        )

    @classmethod
    def _to_domain(cls, orm: JournalTransactionORM) -> Transaction:
        """Convert ORM model to domain model."""
        return Transaction(
            txn_id=orm.txn_id,
            account_id=orm.account_id,
            txn_date=orm.txn_date,
            sequence=orm.sequence,
            description=orm.description or "",
            txn_type=orm.txn_type,
            postings=[cls._posting_to_domain(p, orm) for p in orm.postings],
            category=orm.category,
            batch_id=orm.batch_id,
            reverses_txn_id=orm.reverses_txn_id,
            created_at_est=orm.created_at_est,
        )

    @staticmethod
    def _posting_to_domain(orm: PostingORM, orm_txn: JournalTransactionORM) -> Posting:
        """Convert ORM posting to domain model, carrying the transaction's ordering keys."""
        return Posting(
            posting_id=orm.posting_id,
            txn_id=orm.txn_id,
            account_id=orm_txn.account_id,
            account_type=orm.account_type,
            ledger_account=orm.ledger_account,
            side=orm.side,
            amount=Decimal(str(orm.amount)),
            txn_date=orm_txn.txn_date,
            sequence=orm_txn.sequence,
            line_no=orm.line_no,
            txn_type=orm_txn.txn_type,
            quantity=Decimal(str(orm.quantity)) if orm.quantity is not None else None,
            quantity_unit=orm.quantity_unit,
            category=orm.category,
        )
