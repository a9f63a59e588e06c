from sqlalchemy import Column, String

from app.database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    order_id = Column(String(64), primary_key=True)      # PayPal order ID
    status = Column(String(32))                          # CREATED | COMPLETED | CAPTURED | VOIDED ...
    amount = Column(String(32))
    currency = Column(String(3))
    authorization_id = Column(String(64), unique=True, index=True, nullable=True)
    capture_id = Column(String(64), nullable=True)
    payer_email = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Transaction(order_id={self.order_id}, status={self.status})>"
