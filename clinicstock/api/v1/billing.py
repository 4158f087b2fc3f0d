# clinicstock/api/v1/billing.py
import logging

from fastapi import APIRouter, Depends, Request, Header
from sqlalchemy.orm import Session
from typing import Optional

from clinicstock.api.deps import get_current_active_user, get_origin
from clinicstock.db.session import get_db
from clinicstock.models.user import User
from clinicstock.schemas.subscription import CheckoutRequest, UrlResponse
from clinicstock.services import billing_service

router = APIRouter(prefix="/billing", tags=["Billing"])
logger = logging.getLogger(__name__)


@router.post("/create-checkout-session", response_model=UrlResponse)
def create_checkout_session(
    data: CheckoutRequest,
    origin: str = Depends(get_origin),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Sessão de Checkout do Stripe para assinar um plano"""
    url = billing_service.create_checkout_session(db, current_user, data.price_id, origin)
    return UrlResponse(url=url)


@router.post("/checkout", response_model=UrlResponse)
async def checkout(
    data: CheckoutRequest,
    origin: str = Depends(get_origin),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Fluxo legado: o pedido é gravado, preenchido em segundo plano
    e a rota aguarda a URL até o tempo limite.
    """
    url = await billing_service.start_checkout(db, current_user, data.price_id, origin)
    return UrlResponse(url=url)


@router.post("/manage-subscription", response_model=UrlResponse)
def manage_subscription(
    origin: str = Depends(get_origin),
    current_user: User = Depends(get_current_active_user)
):
    """Portal de cobrança do Stripe"""
    return UrlResponse(url=billing_service.create_portal_session(current_user, origin))


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db)
):
    payload = await request.body()
    event_type = billing_service.handle_webhook(db, payload, stripe_signature)
    return {"received": True, "type": event_type}
