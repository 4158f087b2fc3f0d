# clinicstock/models/checkout_session.py
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Uuid

from clinicstock.db.base import Base


class CheckoutSession(Base):
    """
    Pedido de checkout preenchido de forma assíncrona.
    A rota de checkout aguarda até que url ou error_message sejam gravados.
    """
    __tablename__ = "checkout_sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    price_id = Column(String(100), nullable=False)
    success_url = Column(String(500), nullable=False)
    cancel_url = Column(String(500), nullable=False)

    # Preenchidos pelo worker
    stripe_session_id = Column(String(255), nullable=True)
    url = Column(String(1000), nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_resolved(self) -> bool:
        return bool(self.url or self.error_message)
