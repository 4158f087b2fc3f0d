# clinicstock/services/billing_service.py
import asyncio
import json
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

import stripe
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from clinicstock.core.config import settings
from clinicstock.db import session as db_session
from clinicstock.models.checkout_session import CheckoutSession
from clinicstock.models.subscription import Subscription
from clinicstock.models.user import User

logger = logging.getLogger(__name__)

SUBSCRIPTION_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "customer.subscription.paused",
    "customer.subscription.resumed",
)


def _ensure_configured() -> None:
    if not settings.STRIPE_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pagamentos não configurados"
        )
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.api_version = settings.STRIPE_API_VERSION


def success_url(origin: str) -> str:
    return f"{origin}/profile?session_id={{CHECKOUT_SESSION_ID}}"


def cancel_url(origin: str) -> str:
    return f"{origin}/subscription"


# =====================================
# CLIENTE & SESSÕES
# =====================================
def ensure_customer(db: Session, user: User) -> str:
    """Reutiliza o cliente Stripe do usuário ou cria um novo"""
    if user.stripe_customer_id:
        return user.stripe_customer_id

    _ensure_configured()
    customer = stripe.Customer.create(
        email=user.email,
        name=user.display_name,
        metadata={"user_id": str(user.id)},
    )
    user.stripe_customer_id = customer.id
    db.commit()
    logger.info(f"Cliente Stripe criado para {user.email}: {customer.id}")
    return customer.id


def _create_stripe_session(db: Session, user: User, price_id: str,
                           success: str, cancel: str):
    customer_id = ensure_customer(db, user)
    return stripe.checkout.Session.create(
        mode="subscription",
        customer=customer_id,
        client_reference_id=str(user.id),
        line_items=[{"price": price_id, "quantity": 1}],
        subscription_data={"metadata": {"user_id": str(user.id)}},
        success_url=success,
        cancel_url=cancel,
    )


def create_checkout_session(db: Session, user: User, price_id: Optional[str], origin: str) -> str:
    """Cria uma sessão de Checkout (modo assinatura) e devolve a URL"""
    if not price_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ID do preço é obrigatório")
    _ensure_configured()

    try:
        session = _create_stripe_session(db, user, price_id, success_url(origin), cancel_url(origin))
    except stripe.StripeError as e:
        logger.error(f"Erro ao criar sessão de checkout para {user.email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro ao criar sessão de pagamento"
        )

    logger.info(f"Sessão de checkout criada para {user.email}: {session.id}")
    return session.url


def create_portal_session(user: User, origin: str) -> str:
    """Sessão do portal de cobrança para gerenciar a assinatura"""
    if not user.stripe_customer_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente Stripe não encontrado")
    _ensure_configured()

    try:
        portal = stripe.billing_portal.Session.create(
            customer=user.stripe_customer_id,
            return_url=f"{origin}/profile",
        )
    except stripe.StripeError as e:
        logger.error(f"Erro ao criar sessão do portal para {user.email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro ao abrir o portal de assinatura"
        )
    return portal.url


# =====================================
# CHECKOUT ASSÍNCRONO (fluxo legado)
# =====================================
def create_checkout_request(db: Session, user: User, price_id: Optional[str], origin: str) -> CheckoutSession:
    """Grava o pedido de checkout que será preenchido pelo worker"""
    if not price_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ID do preço é obrigatório")
    _ensure_configured()

    checkout = CheckoutSession(
        user_id=user.id,
        price_id=price_id,
        success_url=success_url(origin),
        cancel_url=cancel_url(origin),
    )
    db.add(checkout)
    db.commit()
    db.refresh(checkout)
    return checkout


def fulfill_checkout_session(checkout_id: UUID) -> None:
    """
    Executado fora da requisição: pede a sessão ao Stripe e grava
    url ou error_message no pedido. Usa sua própria sessão de banco.
    """
    db = db_session.SessionLocal()
    try:
        checkout = db.get(CheckoutSession, checkout_id)
        if checkout is None:
            logger.warning(f"Pedido de checkout {checkout_id} não encontrado")
            return
        user = db.get(User, checkout.user_id)

        try:
            session = _create_stripe_session(
                db, user, checkout.price_id, checkout.success_url, checkout.cancel_url
            )
            checkout.stripe_session_id = session.id
            checkout.url = session.url
        except stripe.StripeError as e:
            logger.error(f"Erro ao preencher checkout {checkout_id}: {e}")
            checkout.error_message = str(e.user_message or e)

        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Erro inesperado no checkout {checkout_id}")
        raise
    finally:
        db.close()


async def wait_for_checkout(db: Session, checkout_id: UUID,
                            timeout: float = None, interval: float = None,
                            worker: Optional[asyncio.Future] = None) -> str:
    """
    Aguarda o worker gravar url ou erro no pedido.
    URL -> devolvida; erro (gravado ou levantado pelo worker) -> 500;
    prazo esgotado -> 504.
    """
    timeout = settings.CHECKOUT_TIMEOUT_SECONDS if timeout is None else timeout
    interval = settings.CHECKOUT_POLL_INTERVAL_SECONDS if interval is None else interval
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while True:
        db.expire_all()
        checkout = db.get(CheckoutSession, checkout_id)
        if checkout is not None and checkout.url:
            return checkout.url
        if checkout is not None and checkout.error_message:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=checkout.error_message
            )
        if worker is not None and worker.done() and worker.exception() is not None:
            logger.error(f"Worker do checkout {checkout_id} falhou: {worker.exception()}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Erro ao criar sessão de pagamento"
            )
        if loop.time() >= deadline:
            logger.warning(f"Tempo esgotado aguardando checkout {checkout_id}")
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail="Tempo esgotado ao criar sessão de pagamento"
            )
        await asyncio.sleep(interval)


async def start_checkout(db: Session, user: User, price_id: Optional[str], origin: str) -> str:
    checkout = create_checkout_request(db, user, price_id, origin)
    loop = asyncio.get_running_loop()
    worker = loop.run_in_executor(None, fulfill_checkout_session, checkout.id)
    return await wait_for_checkout(db, checkout.id, worker=worker)


# =====================================
# WEBHOOK
# =====================================
def _timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.utcfromtimestamp(int(value))


def _period_end(data: dict) -> Optional[datetime]:
    # Versões recentes da API movem o período para os itens da assinatura
    if data.get("current_period_end"):
        return _timestamp(data["current_period_end"])
    items = (data.get("items") or {}).get("data") or []
    if items and items[0].get("current_period_end"):
        return _timestamp(items[0]["current_period_end"])
    return None


def _price_id(data: dict) -> Optional[str]:
    items = (data.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


def _find_user(db: Session, data: dict) -> Optional[User]:
    user_id = (data.get("metadata") or {}).get("user_id") or data.get("client_reference_id")
    if user_id:
        try:
            user = db.get(User, UUID(user_id))
        except ValueError:
            user = None
        if user:
            return user
    customer_id = data.get("customer")
    if customer_id:
        return db.query(User).filter(User.stripe_customer_id == customer_id).first()
    return None


def sync_subscription(db: Session, data: dict) -> Optional[Subscription]:
    """Grava o estado atual da assinatura vindo do Stripe"""
    user = _find_user(db, data)
    if user is None:
        logger.warning(f"Assinatura {data.get('id')} sem usuário correspondente")
        return None

    subscription = db.get(Subscription, data["id"])
    if subscription is None:
        subscription = Subscription(id=data["id"], user_id=user.id)
        db.add(subscription)

    subscription.status = data["status"]
    subscription.price_id = _price_id(data)
    subscription.current_period_end = _period_end(data)
    subscription.cancel_at_period_end = bool(data.get("cancel_at_period_end"))
    if not user.stripe_customer_id and data.get("customer"):
        user.stripe_customer_id = data["customer"]

    db.commit()
    logger.info(f"Assinatura {subscription.id} sincronizada: {subscription.status}")
    return subscription


def handle_webhook(db: Session, payload: bytes, signature: Optional[str]) -> str:
    """
    Valida a assinatura do webhook e sincroniza o evento.
    Devolve o tipo do evento processado.
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhook de pagamentos não configurado"
        )
    try:
        stripe.Webhook.construct_event(payload, signature or "", settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning(f"Webhook Stripe rejeitado: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assinatura do webhook inválida")

    event = json.loads(payload)
    event_type = event["type"]
    data = event["data"]["object"]

    if event_type in SUBSCRIPTION_EVENTS:
        sync_subscription(db, data)
    elif event_type == "checkout.session.completed":
        user = _find_user(db, data)
        if user and data.get("customer") and user.stripe_customer_id != data["customer"]:
            user.stripe_customer_id = data["customer"]
            db.commit()
            logger.info(f"Cliente Stripe vinculado a {user.email}")
    else:
        logger.debug(f"Evento Stripe ignorado: {event_type}")

    return event_type
