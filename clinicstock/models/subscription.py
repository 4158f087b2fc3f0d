# clinicstock/models/subscription.py
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid, Index
from sqlalchemy.orm import relationship

from clinicstock.core.constants import ACTIVE_SUBSCRIPTION_STATUSES
from clinicstock.db.base import Base


class Subscription(Base):
    """
    Espelho da assinatura no processador de pagamentos (Stripe).
    Escrito apenas pela sincronização do webhook.
    """
    __tablename__ = "subscriptions"

    id = Column(String(100), primary_key=True, comment="ID da assinatura no Stripe")
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(
        String(30),
        nullable=False,
        index=True,
        comment="active, trialing, past_due, canceled, incomplete, incomplete_expired, unpaid, paused"
    )
    price_id = Column(String(100), nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="subscriptions")

    __table_args__ = (
        Index("ix_subscriptions_user_status", "user_id", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_SUBSCRIPTION_STATUSES

    def __repr__(self):
        return f"<Subscription {self.id} - {self.status}>"
