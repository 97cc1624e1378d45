# marketplace/store/sql.py
import logging
from contextlib import contextmanager
from typing import Any, List, Mapping, Optional

from sqlalchemy import and_, inspect, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from marketplace.core.errors import NotFound, StoreUnavailable
from marketplace.db.base import Base, make_engine, make_session_factory
from marketplace.db.models import Booking, Category, Provider, Service, User
from marketplace.store.base import (
    OrderBy,
    Record,
    RecordStore,
    Where,
    check_collection,
    order_fields,
)

logger = logging.getLogger(__name__)

MODELS = {
    "users": User,
    "providers": Provider,
    "services": Service,
    "service_categories": Category,
    "bookings": Booking,
}


def _column(model, field: str):
    column = model.__table__.columns.get(field)
    if column is None:
        raise ValueError(f"{model.__tablename__} has no field {field!r}")
    return getattr(model, field)


def _where_clause(model, where: Where):
    clauses = []
    for key, value in where.items():
        if key == "AND":
            clauses.append(and_(*[_where_clause(model, w) for w in value]))
        elif key == "OR":
            clauses.append(or_(*[_where_clause(model, w) for w in value]))
        elif value is None:
            clauses.append(_column(model, key).is_(None))
        else:
            clauses.append(_column(model, key) == value)
    return and_(*clauses)


def _to_record(obj) -> Record:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


class SqlRecordStore(RecordStore):
    """
    RecordStore backed by SQLAlchemy.

    One session per call; SQLAlchemy failures are rolled back and surface as
    StoreUnavailable without retrying.
    """

    def __init__(self, engine):
        self.engine = engine
        self._session_factory = make_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlRecordStore":
        store = cls(make_engine(database_url))
        store.create_all()
        return store

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self, collection: str):
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Record store failure", exc_info=True, extra={"collection": collection})
            raise StoreUnavailable(f"Record store failure on {collection}") from exc
        finally:
            session.close()

    def _model(self, collection: str):
        check_collection(collection)
        return MODELS[collection]

    def list(
        self,
        collection: str,
        where: Optional[Where] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        model = self._model(collection)
        stmt = select(model)
        if where:
            stmt = stmt.where(_where_clause(model, where))
        for field, descending in order_fields(order_by):
            column = _column(model, field)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._session(collection) as session:
            return [_to_record(obj) for obj in session.scalars(stmt).all()]

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        model = self._model(collection)
        with self._session(collection) as session:
            obj = session.get(model, record_id)
            return _to_record(obj) if obj is not None else None

    def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        model = self._model(collection)
        for field in record:
            _column(model, field)
        with self._session(collection) as session:
            obj = model(**dict(record))
            session.add(obj)
            session.flush()
            session.refresh(obj)
            return _to_record(obj)

    def update(
        self,
        collection: str,
        record_id: str,
        changes: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Record]:
        model = self._model(collection)
        changes = {k: v for k, v in changes.items() if k != "id"}
        for field in changes:
            _column(model, field)
        if not changes:
            current = self.get(collection, record_id)
            if current is None:
                raise NotFound(f"{collection} record {record_id} not found")
            return current

        with self._session(collection) as session:
            stmt = update(model).where(model.id == record_id)
            if expected:
                stmt = stmt.where(_where_clause(model, expected))
            result = session.execute(stmt.values(**changes).execution_options(synchronize_session=False))

            if result.rowcount == 0:
                if session.get(model, record_id) is None:
                    raise NotFound(f"{collection} record {record_id} not found")
                return None

            obj = session.get(model, record_id, populate_existing=True)
            return _to_record(obj)

    def delete(self, collection: str, record_id: str) -> None:
        model = self._model(collection)
        with self._session(collection) as session:
            obj = session.get(model, record_id)
            if obj is None:
                raise NotFound(f"{collection} record {record_id} not found")
            session.delete(obj)

    def close(self) -> None:
        self.engine.dispose()
