from contextlib import contextmanager
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

from .errors import InternalError

logger = logging.getLogger(__name__)

class RecordStore:
    """Create/find/update/delete for one model.

    ``populate`` names relationship attributes to load alongside the records.
    Which fields of the referenced rows reach a caller is decided by the
    response schemas, never by the store.
    """

    def __init__(self, db: Session, model):
        self.db = db
        self.model = model

    def create(self, fields: Dict[str, Any]):
        record = self.model(**fields)
        with self._writing():
            self.db.add(record)
        self.db.refresh(record)
        return record

    def find_by_id(self, record_id: int, populate: Sequence[str] = ()):
        query = self._with_populate(self.db.query(self.model), populate)
        return query.filter(self.model.id == record_id).first()

    def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        populate: Sequence[str] = (),
        order_by: Iterable = (),
    ) -> List:
        """Equality-filtered query, e.g. ``find({"doctor_id": 3})``."""
        query = self._with_populate(self.db.query(self.model), populate)
        if filters:
            query = query.filter_by(**filters)
        order_by = tuple(order_by) or (self.model.id,)
        return query.order_by(*order_by).all()

    def update_by_id(self, record_id: int, patch: Dict[str, Any]):
        record = self.db.query(self.model).filter(self.model.id == record_id).first()
        if record is None:
            return None
        with self._writing():
            for field, value in patch.items():
                setattr(record, field, value)
        self.db.refresh(record)
        return record

    def delete_by_id(self, record_id: int, nullify: Sequence = (), cascade: Sequence = ()) -> None:
        """Delete one record in a single transaction.

        ``nullify`` and ``cascade`` are columns of other tables that point at
        this record, e.g. ``MedicalRecord.appointment_id``. Rows referencing
        it through a ``nullify`` column have the reference cleared, rows
        referencing it through a ``cascade`` column are deleted first.
        """
        with self._writing():
            for column in nullify:
                self.db.query(column.class_).filter(column == record_id).update(
                    {column: None}, synchronize_session=False
                )
            for column in cascade:
                self.db.query(column.class_).filter(column == record_id).delete(
                    synchronize_session=False
                )
            self.db.query(self.model).filter(self.model.id == record_id).delete(
                synchronize_session=False
            )

    def _with_populate(self, query, populate: Sequence[str]):
        for name in populate:
            query = query.options(selectinload(getattr(self.model, name)))
        return query

    @contextmanager
    def _writing(self):
        # Statements and commit succeed or fail together
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"{self.model.__name__} write failed: {str(exc)}")
            raise InternalError(f"Failed to save {self.model.__name__}") from exc
