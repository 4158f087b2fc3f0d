# clinicstock/models/user.py
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, Uuid, Index
from sqlalchemy.orm import relationship

from clinicstock.db.base import Base


class User(Base):
    """
    Espelho local do usuário autenticado.
    A identidade pode vir do login por senha ou do provedor federado (Firebase).
    """
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=True, comment="Nulo para contas federadas")

    # =====================================
    # PERFIL
    # =====================================
    display_name = Column(String(150), nullable=True)
    photo_url = Column(String(500), nullable=True)
    photo_public_id = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)

    # =====================================
    # PROVEDORES EXTERNOS
    # =====================================
    auth_provider = Column(String(20), nullable=False, default="password", comment="password, firebase")
    provider_uid = Column(String(128), nullable=True, unique=True)
    stripe_customer_id = Column(String(100), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # =====================================
    # RELAÇÕES
    # =====================================
    products = relationship("Product", back_populates="owner", cascade="all, delete-orphan")
    device_tokens = relationship("DeviceToken", back_populates="user", cascade="all, delete-orphan")
    subscriptions = relationship("Subscription", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_users_provider", "auth_provider", "provider_uid"),
    )

    def __repr__(self):
        return f"<User {self.email}>"
