# clinicstock/schemas/stock_movement.py
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from clinicstock.core.constants import MovementType, MovementReason
from clinicstock.schemas.product import ProductOut


class MovementCreate(BaseModel):
    """Registro de uma entrada ou saída de estoque"""
    type: MovementType
    quantity: int = Field(..., gt=0, description="Quantidade movimentada")
    reason: Optional[MovementReason] = None
    notes: Optional[str] = None
    professional_name: Optional[str] = Field(None, max_length=150)

    # Somente para entradas
    new_batch_number: Optional[str] = Field(None, max_length=100)
    new_expiry_date: Optional[date] = None
    new_cost_price: Optional[Decimal] = Field(None, ge=Decimal("0.00"))

    @model_validator(mode="after")
    def default_reason(self):
        """Motivo padrão conforme o tipo do lançamento"""
        if self.reason is None:
            self.reason = (
                MovementReason.MANUAL_IN if self.type == MovementType.ENTRADA
                else MovementReason.MANUAL_OUT
            )
        return self


class MovementOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: str
    type: str
    quantity: int
    reason: str
    date: datetime
    previous_stock: int
    new_stock: int
    notes: Optional[str] = None
    professional_name: Optional[str] = None
    new_batch_number: Optional[str] = None
    new_expiry_date: Optional[date] = None
    new_cost_price: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class MovementResponse(BaseModel):
    message: str
    movement: MovementOut
    product: ProductOut


class MovementListResponse(BaseModel):
    items: List[MovementOut]
    total: int
    page: int
    size: int
    pages: int
