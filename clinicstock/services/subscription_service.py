# clinicstock/services/subscription_service.py
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from clinicstock.core.constants import ACTIVE_SUBSCRIPTION_STATUSES
from clinicstock.models.subscription import Subscription


def get_active_subscription(db: Session, user_id: UUID) -> Optional[Subscription]:
    """Assinatura ativa (active ou trialing) mais recente do usuário"""
    return (
        db.query(Subscription)
        .filter(
            Subscription.user_id == user_id,
            Subscription.status.in_(ACTIVE_SUBSCRIPTION_STATUSES),
        )
        .order_by(Subscription.current_period_end.desc())
        .first()
    )


def get_latest_subscription(db: Session, user_id: UUID) -> Optional[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id)
        .order_by(Subscription.updated_at.desc())
        .first()
    )


def is_subscription_active(db: Session, user_id: UUID) -> bool:
    """
    Verifica se o usuário tem uma assinatura que libera o acesso.
    O status vem do Stripe; nenhuma data é comparada aqui.
    """
    return get_active_subscription(db, user_id) is not None
