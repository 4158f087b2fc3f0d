# clinicstock/services/alert_service.py
"""
Classificação de alertas de estoque.

Tudo aqui é puro e recalculado a cada requisição a partir dos produtos:
nada é armazenado em cache nem persistido.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Any, Optional

from clinicstock.core.config import settings
from clinicstock.core.constants import (
    EXPIRY_CRITICAL_DAYS,
    EXPIRY_WARNING_DAYS,
    NEXT_EXPIRIES_LIMIT,
)
from clinicstock.utils.dates import local_today

logger = logging.getLogger(__name__)

ALERT_ORDER = ("expired", "expiring_7", "expiring_30", "low_stock")


def days_until_expiry(expiry_date: date, today: date) -> int:
    """Dias inteiros entre hoje e a validade (negativo se vencido)"""
    return (expiry_date - today).days


def is_low_stock(product) -> bool:
    """Estoque baixo: há estoque, mas no máximo o mínimo configurado"""
    return 0 < product.current_stock <= product.minimum_stock


def _alert_item(product, days: int) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "photo_url": product.photo_url,
        "current_stock": product.current_stock,
        "minimum_stock": product.minimum_stock,
        "unit": product.unit,
        "expiry_date": product.expiry_date,
        "days_until_expiry": days,
    }


def classify_products(products: Iterable, today: Optional[date] = None) -> Dict[str, List[Dict[str, Any]]]:
    """
    Distribui os produtos nos baldes de alerta.

    Cada balde é avaliado de forma independente: um produto que vence
    em 5 dias está em expiring_7 e em expiring_30, e pode estar também
    em low_stock. Produtos com estoque zerado não geram alerta.
    """
    today = today or local_today()
    alerts: Dict[str, List[Dict[str, Any]]] = {key: [] for key in ALERT_ORDER}

    for product in products:
        if product.current_stock == 0:
            continue

        days = days_until_expiry(product.expiry_date, today)
        item = _alert_item(product, days)

        if days < 0:
            alerts["expired"].append(item)
        if 0 <= days <= EXPIRY_CRITICAL_DAYS:
            alerts["expiring_7"].append(item)
        if 0 <= days <= EXPIRY_WARNING_DAYS:
            alerts["expiring_30"].append(item)

        if is_low_stock(product):
            alerts["low_stock"].append(item)

    for key in ("expired", "expiring_7", "expiring_30"):
        alerts[key].sort(key=lambda i: i["expiry_date"])
    alerts["low_stock"].sort(key=lambda i: (i["current_stock"], i["name"]))

    return alerts


def count_alerts(alerts: Dict[str, List[Any]]) -> int:
    return sum(len(alerts[key]) for key in ALERT_ORDER)


def expiry_badge(expiry_date: date, today: Optional[date] = None) -> Dict[str, Any]:
    """Selo de validade exibido no dashboard"""
    days = days_until_expiry(expiry_date, today or local_today())
    if days < 0:
        return {"days": days, "level": "expired", "label": "Vencido"}
    if days < EXPIRY_CRITICAL_DAYS:
        return {"days": days, "level": "critical", "label": f"{days}d"}
    if days <= EXPIRY_WARNING_DAYS:
        return {"days": days, "level": "warning", "label": f"{days}d"}
    return {"days": days, "level": "ok", "label": f"{days}d"}


def dashboard_summary(products: List, today: Optional[date] = None) -> Dict[str, Any]:
    """Indicadores do dashboard"""
    today = today or local_today()

    expiring_30_count = len([
        p for p in products
        if p.current_stock > 0
        and 0 <= days_until_expiry(p.expiry_date, today) <= EXPIRY_WARNING_DAYS
    ])
    low_stock_count = len([p for p in products if is_low_stock(p)])
    total_value = sum(float(p.cost_price or 0) * p.current_stock for p in products)

    upcoming = sorted(
        (p for p in products if days_until_expiry(p.expiry_date, today) >= 0),
        key=lambda p: p.expiry_date,
    )[:NEXT_EXPIRIES_LIMIT]

    next_expiries = [
        {
            "id": p.id,
            "name": p.name,
            "expiry_date": p.expiry_date,
            "badge": expiry_badge(p.expiry_date, today),
        }
        for p in upcoming
    ]

    return {
        "total_products": len(products),
        "expiring_30_count": expiring_30_count,
        "low_stock_count": low_stock_count,
        "total_value": round(total_value, 2),
        "currency": settings.DEFAULT_CURRENCY,
        "next_expiries": next_expiries,
        "has_urgent_expiries": any(
            item["badge"]["days"] <= EXPIRY_WARNING_DAYS for item in next_expiries
        ),
    }


def build_alert_digest(products: Iterable, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Resumo enviado por notificação push: produtos vencendo em até 7 dias
    e produtos com estoque baixo.
    """
    today = today or local_today()
    expiring_soon: List[str] = []
    low_stock: List[str] = []

    for product in products:
        if product.current_stock == 0:
            continue

        if product.expiry_date:
            days = days_until_expiry(product.expiry_date, today)
            if 0 <= days <= EXPIRY_CRITICAL_DAYS:
                expiring_soon.append(product.name)

        if is_low_stock(product):
            low_stock.append(product.name)

    total = len(expiring_soon) + len(low_stock)
    title = ""
    body = ""

    if total > 0:
        title = "Alerta de Estoque!"
        if expiring_soon and low_stock:
            body = (
                f"Você tem {len(expiring_soon)} produto(s) vencendo "
                f"e {len(low_stock)} com estoque baixo."
            )
        elif expiring_soon:
            body = f"Você tem {len(expiring_soon)} produto(s) vencendo em breve."
        else:
            body = f"Você tem {len(low_stock)} produto(s) com estoque baixo."

    logger.debug(f"Resumo de alertas: {len(expiring_soon)} vencendo, {len(low_stock)} estoque baixo")

    return {
        "alerts_found": total,
        "expiring_soon": expiring_soon,
        "low_stock": low_stock,
        "title": title,
        "body": body,
    }
