# clinicstock/models/device_token.py
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from clinicstock.db.base import Base


class DeviceToken(Base):
    """Token de dispositivo registrado para notificações push (FCM)"""
    __tablename__ = "device_tokens"

    token = Column(String(512), primary_key=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_agent = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_seen_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="device_tokens")
