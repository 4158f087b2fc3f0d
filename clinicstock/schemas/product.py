# clinicstock/schemas/product.py
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from clinicstock.core.constants import ProductCategory, ProductUnit


# =======================
# SCHEMAS DE BASE
# =======================
class ProductBase(BaseModel):
    """Campos editáveis de um produto"""
    name: str = Field(..., min_length=1, max_length=200, description="Nome do produto")
    category: ProductCategory = Field(default=ProductCategory.OTHER)
    unit: ProductUnit = Field(default=ProductUnit.UNIT)
    minimum_stock: int = Field(default=10, ge=0, description="Estoque mínimo para alerta")
    expiry_date: date = Field(..., description="Data de validade")
    batch_number: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=200)
    cost_price: Decimal = Field(default=Decimal("0.00"), ge=Decimal("0.00"), description="Preço de custo")
    notes: Optional[str] = None
    barcode: Optional[str] = Field(None, max_length=100)


class ProductCreate(ProductBase):
    current_stock: int = Field(default=0, ge=0, description="Estoque inicial")


class ProductUpdate(BaseModel):
    """Atualização parcial; alterar current_stock gera um lançamento de Ajuste"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[ProductCategory] = None
    unit: Optional[ProductUnit] = None
    current_stock: Optional[int] = Field(None, ge=0)
    minimum_stock: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=200)
    cost_price: Optional[Decimal] = Field(None, ge=Decimal("0.00"))
    notes: Optional[str] = None
    barcode: Optional[str] = Field(None, max_length=100)


# =======================
# RESPOSTAS
# =======================
class ProductOut(BaseModel):
    id: UUID
    name: str
    category: str
    unit: str
    photo_url: Optional[str] = None
    current_stock: int
    minimum_stock: int
    expiry_date: date
    batch_number: Optional[str] = None
    supplier: Optional[str] = None
    cost_price: float
    notes: Optional[str] = None
    barcode: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductResponse(BaseModel):
    message: str
    product: ProductOut


class ProductListResponse(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    size: int
    pages: int
