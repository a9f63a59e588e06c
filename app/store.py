from contextlib import contextmanager
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.errors import PersistenceError
from app.logging_config import Events
from app.models import Transaction

log = structlog.get_logger(__name__)

VOIDED = "VOIDED"


class TransactionStore:
    """Records order lifecycle transitions in the transactions table.

    Each write is a single-row update committed on its own. Writes overwrite
    the same columns, so replaying one leaves the row unchanged. `get` and
    `get_by_authorization` are the read side, for operators and tests.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _write(self, operation: str, **reference):
        try:
            with self.session_factory() as db:
                yield db
                db.commit()
        except SQLAlchemyError as e:
            log.error(Events.RECORD_FAILED, operation=operation, error=str(e), **reference)
            raise PersistenceError(f"Failed to record {operation}") from e

    def get(self, order_id: str) -> Optional[Transaction]:
        with self.session_factory() as db:
            return db.get(Transaction, order_id)

    def get_by_authorization(self, authorization_id: str) -> Optional[Transaction]:
        with self.session_factory() as db:
            return db.query(Transaction).filter_by(authorization_id=authorization_id).first()

    def record_created(self, order_id: str, status: Optional[str], amount: str, currency: str) -> None:
        with self._write("create-order", order_id=order_id) as db:
            existing = db.get(Transaction, order_id)
            if existing:
                # amount and currency are fixed at creation
                existing.status = status
            else:
                db.add(Transaction(
                    order_id=order_id,
                    status=status,
                    amount=amount,
                    currency=currency,
                ))
        log.info(Events.RECORD_WRITTEN, operation="create-order", order_id=order_id, status=status)

    def record_authorized(
        self,
        order_id: str,
        authorization_id: str,
        status: Optional[str],
        payer_email: Optional[str] = None,
    ) -> bool:
        with self._write("authorize-order", order_id=order_id) as db:
            transaction = db.get(Transaction, order_id)
            if transaction:
                transaction.authorization_id = authorization_id
                transaction.status = status
                if payer_email:
                    transaction.payer_email = payer_email
        if not transaction:
            log.warning(Events.RECORD_MISSING, operation="authorize-order", order_id=order_id)
            return False
        log.info(
            Events.RECORD_WRITTEN,
            operation="authorize-order",
            order_id=order_id,
            authorization_id=authorization_id,
            status=status,
        )
        return True

    def record_captured(self, authorization_id: str, capture_id: str, status: Optional[str]) -> bool:
        with self._write("capture", authorization_id=authorization_id) as db:
            transaction = db.query(Transaction).filter_by(authorization_id=authorization_id).first()
            if transaction:
                transaction.capture_id = capture_id
                transaction.status = status
        if not transaction:
            log.warning(Events.RECORD_MISSING, operation="capture", authorization_id=authorization_id)
            return False
        log.info(
            Events.RECORD_WRITTEN,
            operation="capture",
            authorization_id=authorization_id,
            capture_id=capture_id,
            status=status,
        )
        return True

    def record_voided(self, authorization_id: str) -> bool:
        with self._write("void", authorization_id=authorization_id) as db:
            transaction = db.query(Transaction).filter_by(authorization_id=authorization_id).first()
            if transaction:
                transaction.status = VOIDED
        if not transaction:
            log.warning(Events.RECORD_MISSING, operation="void", authorization_id=authorization_id)
            return False
        log.info(Events.RECORD_WRITTEN, operation="void", authorization_id=authorization_id, status=VOIDED)
        return True
