# clinicstock/schemas/alert.py
from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class AlertProduct(BaseModel):
    id: UUID
    name: str
    photo_url: Optional[str] = None
    current_stock: int
    minimum_stock: int
    unit: str
    expiry_date: date
    days_until_expiry: int


class AlertsResponse(BaseModel):
    """
    Alertas por categoria. As categorias são avaliadas de forma independente
    (expiring_7 está contido em expiring_30), então `total` conta
    ocorrências nas categorias, não produtos distintos.
    """
    expired: List[AlertProduct]
    expiring_7: List[AlertProduct]
    expiring_30: List[AlertProduct]
    low_stock: List[AlertProduct]
    total: int


class ExpiryBadge(BaseModel):
    days: int
    level: str
    label: str


class UpcomingExpiry(BaseModel):
    id: UUID
    name: str
    expiry_date: date
    badge: ExpiryBadge


class DashboardSummary(BaseModel):
    total_products: int
    expiring_30_count: int
    low_stock_count: int
    total_value: float
    currency: str
    next_expiries: List[UpcomingExpiry]
    has_urgent_expiries: bool


class SendAlertResponse(BaseModel):
    success: bool
    message: str
    alerts_found: int
    notifications_sent: int
    sms_sent: bool = False
    expiring_soon: List[str] = []
    low_stock: List[str] = []
