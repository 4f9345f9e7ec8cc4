"""SQLAlchemy ORM model definitions."""

from datetime import datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Enum as SqlEnum,
)
from sqlalchemy.orm import relationship

from cascade_ledger.repositories.sqlalchemy.database import Base
from cascade_ledger.domain.models.journal import AMOUNT_SCALE, QUANTITY_SCALE
from cascade_ledger.domain.models.enums import (
    AccountType,
    PostingSide,
    PriceSource,
    TransactionType,
)


class AccountORM(Base):
    """SQLAlchemy model for Account."""

    __tablename__ = "accounts"

    account_id = Column(String(36), primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    institution = Column(String(255), nullable=True)
    created_at_est = Column(DateTime, nullable=False, default=datetime.utcnow)

    transactions = relationship("JournalTransactionORM", back_populates="account")


class JournalTransactionORM(Base):
    """SQLAlchemy model for a journal transaction (header of a posting group)."""

    __tablename__ = "journal_transactions"
    __table_args__ = (
        UniqueConstraint("account_id", "sequence", name="uq_journal_account_sequence"),
    )

    txn_id = Column(String(36), primary_key=True)
    account_id = Column(String(36), ForeignKey("accounts.account_id"), nullable=False, index=True)
    txn_date = Column(Date, nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    txn_type = Column(SqlEnum(TransactionType), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(255), nullable=True)
    batch_id = Column(String(64), nullable=True, index=True)
    reverses_txn_id = Column(String(36), nullable=True, index=True)
    created_at_est = Column(DateTime, nullable=False, default=datetime.utcnow)

    account = relationship("AccountORM", back_populates="transactions")
    postings = relationship(
        "PostingORM",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="PostingORM.line_no",
    )


class PostingORM(Base):
    """SQLAlchemy model for one debit or credit line."""

    __tablename__ = "postings"

    posting_id = Column(String(36), primary_key=True)
    txn_id = Column(String(36), ForeignKey("journal_transactions.txn_id"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False)
    account_type = Column(SqlEnum(AccountType), nullable=False)
    ledger_account = Column(String(255), nullable=False)
    side = Column(SqlEnum(PostingSide), nullable=False)
    amount = Column(Numeric(precision=18, scale=AMOUNT_SCALE), nullable=False)
    quantity = Column(Numeric(precision=18, scale=QUANTITY_SCALE), nullable=True)
    quantity_unit = Column(String(32), nullable=True)
    category = Column(String(255), nullable=True)

    transaction = relationship("JournalTransactionORM", back_populates="postings")


class PricePointORM(Base):
    """SQLAlchemy model for PricePoint."""

    __tablename__ = "price_points"

    asset_id = Column(String(32), primary_key=True)
    price_date = Column(Date, primary_key=True)
    price = Column(Numeric(precision=18, scale=6), nullable=False)
    source = Column(SqlEnum(PriceSource), nullable=False, default=PriceSource.MANUAL)
