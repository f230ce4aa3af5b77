from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from core.errors import RepositoryError
from modules.goods import models, schemas
from modules.goods.types import GoodType

T = TypeVar("T")

# Wire name -> column name for plain scalar fields
_SCALAR_COLUMNS = {
    "name": "name",
    "cost": "cost",
    "processTime": "process_time",
    "process_time": "process_time",
    "vendor": "vendor",
    "price": "price",
}


class GoodsRepository(Protocol):
    """
    Storage contract consumed by the goods service.

    "Not found" is reported as ``None`` or ``0`` affected rows. Storage failures
    raise RepositoryError. Implementations must tolerate concurrent calls.
    """

    async def list_all(self) -> List[Dict[str, Any]]: ...

    async def find_by_id(self, good_id: int) -> Optional[Dict[str, Any]]: ...

    async def list_by_type(self, good_type: GoodType, include_archived: bool = False) -> List[Dict[str, Any]]: ...

    async def list_archived_by_type(self, good_type: GoodType) -> List[Dict[str, Any]]: ...

    async def insert(self, good: schemas.Good) -> int: ...

    async def set_archived(self, good_id: int, archived: bool) -> int: ...

    async def update(self, good_id: int, fields: Dict[str, Any]) -> int: ...


def _serialize_good(good: models.Good) -> Dict[str, Any]:
    return {
        "id": good.id,
        "name": good.name,
        "type": good.type,
        "cost": good.cost,
        "processTime": good.process_time,
        "archived": bool(good.archived),
        "vendor": good.vendor,
        "price": good.price,
        "properties": [{"name": p.name, "value": p.value} for p in good.properties],
        "components": [{"id": c.component_id, "quantity": c.quantity} for c in good.components],
    }


def _property_rows(properties: Sequence[Union[schemas.Property, Mapping]]) -> List[models.GoodProperty]:
    rows = []
    for position, prop in enumerate(properties):
        if isinstance(prop, Mapping):
            prop = schemas.Property(**prop)
        rows.append(models.GoodProperty(position=position, name=prop.name, value=prop.value))
    return rows


def _component_rows(components: Sequence[Union[schemas.ComponentRef, Mapping]]) -> List[models.GoodComponent]:
    rows = []
    for position, component in enumerate(components):
        if isinstance(component, Mapping):
            component = schemas.ComponentRef(**component)
        rows.append(
            models.GoodComponent(position=position, component_id=component.id, quantity=component.quantity)
        )
    return rows


def _build_row(good: schemas.Good) -> models.Good:
    row = models.Good(
        name=good.name,
        type=good.type,
        cost=good.cost,
        process_time=good.process_time,
        archived=False,
    )
    if isinstance(good, schemas.RawGood):
        row.vendor = good.vendor
    elif isinstance(good, schemas.FinishedGood):
        row.price = good.price
    row.properties = _property_rows(good.properties)
    row.components = _component_rows(good.components)
    return row


class SqlGoodsRepository:
    """
    SQLAlchemy-backed goods repository.

    Each call runs in a worker thread with its own session, so concurrent calls
    share nothing but the engine's connection pool. A single call is a single
    transaction.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def _run(self, work: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._run_sync, work)

    def _run_sync(self, work: Callable[[Session], T]) -> T:
        try:
            with self._session_factory() as session:
                return work(session)
        except (SQLAlchemyError, OverflowError) as exc:
            # OverflowError: DB-API drivers reject ints wider than the column when binding
            raise RepositoryError(str(exc)) from exc

    @staticmethod
    def _goods_query(db: Session):
        return db.query(models.Good).options(
            selectinload(models.Good.properties),
            selectinload(models.Good.components),
        )

    async def list_all(self) -> List[Dict[str, Any]]:
        def work(db: Session):
            goods = self._goods_query(db).order_by(models.Good.id).all()
            return [_serialize_good(g) for g in goods]

        return await self._run(work)

    async def find_by_id(self, good_id: int) -> Optional[Dict[str, Any]]:
        def work(db: Session):
            good = self._goods_query(db).filter(models.Good.id == good_id).first()
            return _serialize_good(good) if good else None

        return await self._run(work)

    async def list_by_type(self, good_type: GoodType, include_archived: bool = False) -> List[Dict[str, Any]]:
        def work(db: Session):
            query = self._goods_query(db).filter(models.Good.type == GoodType(good_type).value)
            if not include_archived:
                query = query.filter(models.Good.archived.is_(False))
            return [_serialize_good(g) for g in query.order_by(models.Good.id).all()]

        return await self._run(work)

    async def list_archived_by_type(self, good_type: GoodType) -> List[Dict[str, Any]]:
        def work(db: Session):
            goods = (
                self._goods_query(db)
                .filter(models.Good.type == GoodType(good_type).value)
                .filter(models.Good.archived.is_(True))
                .order_by(models.Good.id)
                .all()
            )
            return [_serialize_good(g) for g in goods]

        return await self._run(work)

    async def insert(self, good: schemas.Good) -> int:
        def work(db: Session):
            row = _build_row(good)
            db.add(row)
            db.commit()
            return row.id

        return await self._run(work)

    async def set_archived(self, good_id: int, archived: bool) -> int:
        def work(db: Session):
            affected = (
                db.query(models.Good)
                .filter(models.Good.id == good_id)
                .update({models.Good.archived: archived}, synchronize_session=False)
            )
            db.commit()
            return int(affected or 0)

        return await self._run(work)

    async def update(self, good_id: int, fields: Dict[str, Any]) -> int:
        def work(db: Session):
            good = self._goods_query(db).filter(models.Good.id == good_id).first()
            if not good:
                return 0
            for key, value in fields.items():
                if key in _SCALAR_COLUMNS:
                    setattr(good, _SCALAR_COLUMNS[key], value)
                elif key == "properties":
                    good.properties = _property_rows(value or [])
                elif key == "components":
                    good.components = _component_rows(value or [])
            db.commit()
            return 1

        return await self._run(work)
