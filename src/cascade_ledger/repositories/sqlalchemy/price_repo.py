"""SQLAlchemy implementation of PriceRepository."""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from cascade_ledger.domain.models import PricePoint
from cascade_ledger.repositories.sqlalchemy.orm_models import PricePointORM


class SqlAlchemyPriceRepository:
    """SQLAlchemy-backed price history."""

    def __init__(self, db: Session):
        self._db = db

    def upsert_many(self, points: list[PricePoint]) -> int:
        """Insert or replace points keyed by (asset_id, price_date)."""
        for point in points:
            self._db.merge(
                PricePointORM(
                    asset_id=point.asset_id,
                    price_date=point.price_date,
                    price=point.price,
                    source=point.source,
                )
            )
        self._db.commit()
        return len(points)

    def list_for_asset(
        self,
        asset_id: str,
        end: Optional[date] = None,
    ) -> list[PricePoint]:
        """Points for one asset ordered by date."""
        query = self._db.query(PricePointORM).filter(PricePointORM.asset_id == asset_id)
        if end:
            query = query.filter(PricePointORM.price_date <= end)
        query = query.order_by(PricePointORM.price_date)
        return [self._to_domain(p) for p in query.all()]

    def list_assets(self) -> list[str]:
        """Assets with at least one price point."""
        rows = self._db.query(PricePointORM.asset_id).distinct().order_by(PricePointORM.asset_id).all()
        return [r[0] for r in rows]

    @staticmethod
    def _to_domain(orm: PricePointORM) -> PricePoint:
        """Convert ORM model to domain model."""
        return PricePoint(
            asset_id=orm.asset_id,
            price_date=orm.price_date,
            price=Decimal(str(orm.price)),
            source=orm.source,
        )
