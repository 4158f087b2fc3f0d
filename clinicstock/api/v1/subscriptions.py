# clinicstock/api/v1/subscriptions.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinicstock.api.deps import get_current_active_user
from clinicstock.core.config import settings
from clinicstock.db.session import get_db
from clinicstock.models.user import User
from clinicstock.schemas.subscription import Plan, SubscriptionStatusResponse
from clinicstock.services.subscription_service import get_active_subscription, get_latest_subscription

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def available_plans() -> List[Plan]:
    return [
        Plan(
            id="monthly",
            name="Plano Mensal",
            price="R$ 39,90",
            interval="mês",
            price_id=settings.STRIPE_PRICE_ID_MONTHLY,
            features=[
                "Gerenciamento de Produtos",
                "Controle de Estoque e Validade",
                "Histórico de Movimentações",
                "Alertas de Estoque Baixo",
                "Exportação de Dados",
            ],
            available=bool(settings.STRIPE_PRICE_ID_MONTHLY),
        ),
        Plan(
            id="yearly",
            name="Plano Anual",
            price="R$ 399",
            interval="ano",
            price_id=settings.STRIPE_PRICE_ID_YEARLY,
            features=[
                "Todos os benefícios do plano mensal",
                "2 meses de desconto",
                "Suporte prioritário",
                "Acesso a novas funcionalidades",
            ],
            available=bool(settings.STRIPE_PRICE_ID_YEARLY),
        ),
    ]


@router.get("/plans", response_model=List[Plan])
def list_plans():
    return available_plans()


@router.get("/status", response_model=SubscriptionStatusResponse)
def subscription_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Estado da assinatura do usuário, como sincronizado pelo webhook"""
    subscription = get_active_subscription(db, current_user.id) or get_latest_subscription(db, current_user.id)
    if subscription is None:
        return SubscriptionStatusResponse(active=False)
    return SubscriptionStatusResponse(
        active=subscription.is_active,
        subscription_id=subscription.id,
        status=subscription.status,
        subscription=subscription,
    )
