# clinicstock/schemas/subscription.py
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionOut(BaseModel):
    id: str
    status: str
    price_id: Optional[str] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class SubscriptionStatusResponse(BaseModel):
    active: bool
    subscription_id: Optional[str] = None
    status: Optional[str] = None
    subscription: Optional[SubscriptionOut] = None


class Plan(BaseModel):
    id: str
    name: str
    price: str
    interval: str
    price_id: str
    features: List[str] = []
    available: bool


class CheckoutRequest(BaseModel):
    price_id: Optional[str] = Field(None, description="ID do preço no Stripe")


class UrlResponse(BaseModel):
    url: str
