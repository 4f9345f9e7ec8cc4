"""SQLAlchemy implementation of AccountRepository."""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cascade_ledger.core.exceptions import ValidationError
from cascade_ledger.domain.models import Account
from cascade_ledger.repositories.sqlalchemy.orm_models import AccountORM


class SqlAlchemyAccountRepository:
    """SQLAlchemy-backed owning accounts."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, account: Account) -> Account:
        """Persist a new account; the unique name index settles concurrent creates."""
        orm_account = AccountORM(
            account_id=account.account_id,
            name=account.name,
            institution=account.institution,
            created_at_est=account.created_at_est,
        )
        self._db.add(orm_account)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise ValidationError(f"Account with name '{account.name}' already exists")
        self._db.refresh(orm_account)
        return self._to_domain(orm_account)

    def get_by_id(self, account_id: str) -> Optional[Account]:
        orm_account = self._db.get(AccountORM, account_id)
        return self._to_domain(orm_account) if orm_account else None

    def get_by_name(self, name: str) -> Optional[Account]:
        orm_account = self._db.query(AccountORM).filter(AccountORM.name == name).one_or_none()
        return self._to_domain(orm_account) if orm_account else None

    def list_all(self) -> list[Account]:
        rows = self._db.query(AccountORM).order_by(AccountORM.name).all()
        return [self._to_domain(a) for a in rows]

    def list_ids(self) -> list[str]:
        rows = self._db.query(AccountORM.account_id).order_by(AccountORM.account_id).all()
        return [r[0] for r in rows]

    @staticmethod
    def _to_domain(orm: AccountORM) -> Account:
        return Account(
            account_id=orm.account_id,
            name=orm.name,
            institution=orm.institution,
            created_at_est=orm.created_at_est,
        )
