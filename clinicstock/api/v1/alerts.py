# clinicstock/api/v1/alerts.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinicstock.api.deps import subscription_required
from clinicstock.db.session import get_db
from clinicstock.models.user import User
from clinicstock.schemas.alert import AlertsResponse, DashboardSummary, SendAlertResponse
from clinicstock.services.alert_service import classify_products, count_alerts, dashboard_summary
from clinicstock.services.notification_service import NotificationService
from clinicstock.services.product_service import ProductService

router = APIRouter(tags=["Alerts"])
logger = logging.getLogger(__name__)


@router.get("/alerts", response_model=AlertsResponse)
def get_alerts(
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    """Produtos vencidos, vencendo em 7 e 30 dias, e com estoque baixo"""
    alerts = classify_products(ProductService(db, current_user).all())
    return AlertsResponse(**alerts, total=count_alerts(alerts))


@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    return dashboard_summary(ProductService(db, current_user).all())


@router.post("/alerts/send", response_model=SendAlertResponse)
def send_alerts(
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    """
    Envia o resumo de alertas para os dispositivos do usuário (push)
    e, se houver telefone cadastrado, uma cópia por SMS.
    """
    result = NotificationService(db).send_stock_alerts(current_user)
    logger.info(
        f"Alertas enviados para {current_user.email}: "
        f"{result['alerts_found']} alerta(s), {result['notifications_sent']} push"
    )
    return result


# Caminho usado pelos clientes antigos
legacy_router = APIRouter(tags=["Alerts"])
legacy_router.add_api_route(
    "/api/send-alert",
    send_alerts,
    methods=["POST"],
    response_model=SendAlertResponse,
)
