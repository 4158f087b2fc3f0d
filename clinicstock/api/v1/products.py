# clinicstock/api/v1/products.py
import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File, Form
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from clinicstock.api.deps import subscription_required
from clinicstock.core.constants import ProductCategory, ProductUnit
from clinicstock.db.session import get_db
from clinicstock.models.user import User
from clinicstock.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductOut,
    ProductResponse,
    ProductListResponse,
)
from clinicstock.services.product_service import ProductService
from clinicstock.utils.dates import local_today
from clinicstock.utils.export import TabularExporter, product_rows, media_type_for

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger(__name__)


def _form_payload(schema, **fields):
    """Valida campos de formulário multipart com o schema JSON equivalente"""
    try:
        return schema(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False, include_input=False)
        )


async def _read_photo(photo: Optional[UploadFile]):
    if photo is None or not photo.filename:
        return None
    return await photo.read(), photo.filename


# -----------------------------
# Listagem
# -----------------------------
@router.get("", response_model=ProductListResponse)
def list_products(
    q: Optional[str] = Query(None, description="Busca por nome, fornecedor, lote ou código de barras"),
    category: Optional[ProductCategory] = None,
    stock_status: Optional[str] = Query(None, pattern="^(low_stock|out_of_stock)$"),
    expiry_status: Optional[str] = Query(None, pattern="^(expired|expiring_7|expiring_30)$"),
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    items, meta = ProductService(db, current_user).search(
        query=q,
        category=category.value if category else None,
        stock_status=stock_status,
        expiry_status=expiry_status,
        page=page,
        size=size,
    )
    return ProductListResponse(items=items, **meta)


@router.get("/export")
def export_products(
    format: str = Query("xlsx", pattern="^(xlsx|csv)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    """Exporta o cadastro de produtos em Excel ou CSV"""
    products = ProductService(db, current_user).all()
    output = TabularExporter().export(product_rows(products), format, sheet_name="Produtos")
    filename = f"produtos_{local_today().isoformat()}.{format}"
    return StreamingResponse(
        output,
        media_type=media_type_for(format),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    return ProductService(db, current_user).get(product_id)


# -----------------------------
# Criação
# -----------------------------
@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    product = ProductService(db, current_user).create(data)
    return ProductResponse(message="Produto cadastrado com sucesso", product=product)


@router.post("/form", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product_form(
    name: str = Form(...),
    expiry_date: date = Form(...),
    category: Optional[ProductCategory] = Form(None),
    unit: Optional[ProductUnit] = Form(None),
    current_stock: Optional[int] = Form(None),
    minimum_stock: Optional[int] = Form(None),
    batch_number: Optional[str] = Form(None),
    supplier: Optional[str] = Form(None),
    cost_price: Optional[Decimal] = Form(None),
    notes: Optional[str] = Form(None),
    barcode: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    """Cadastro pelo formulário, com foto opcional"""
    data = _form_payload(
        ProductCreate,
        name=name, expiry_date=expiry_date, category=category, unit=unit,
        current_stock=current_stock, minimum_stock=minimum_stock,
        batch_number=batch_number, supplier=supplier, cost_price=cost_price,
        notes=notes, barcode=barcode,
    )
    product = ProductService(db, current_user).create(data, photo=await _read_photo(photo))
    return ProductResponse(message="Produto cadastrado com sucesso", product=product)


# -----------------------------
# Edição
# -----------------------------
@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: UUID,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    product = ProductService(db, current_user).update(product_id, data)
    return ProductResponse(message="Produto atualizado com sucesso", product=product)


@router.patch("/{product_id}/form", response_model=ProductResponse)
async def update_product_form(
    product_id: UUID,
    name: Optional[str] = Form(None),
    expiry_date: Optional[date] = Form(None),
    category: Optional[ProductCategory] = Form(None),
    unit: Optional[ProductUnit] = Form(None),
    current_stock: Optional[int] = Form(None),
    minimum_stock: Optional[int] = Form(None),
    batch_number: Optional[str] = Form(None),
    supplier: Optional[str] = Form(None),
    cost_price: Optional[Decimal] = Form(None),
    notes: Optional[str] = Form(None),
    barcode: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    """Edição pelo formulário; uma nova foto substitui a anterior"""
    data = _form_payload(
        ProductUpdate,
        name=name, expiry_date=expiry_date, category=category, unit=unit,
        current_stock=current_stock, minimum_stock=minimum_stock,
        batch_number=batch_number, supplier=supplier, cost_price=cost_price,
        notes=notes, barcode=barcode,
    )
    product = ProductService(db, current_user).update(product_id, data, photo=await _read_photo(photo))
    return ProductResponse(message="Produto atualizado com sucesso", product=product)


# -----------------------------
# Exclusão
# -----------------------------
@router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    """Remove o produto; o histórico de movimentações é mantido"""
    return ProductService(db, current_user).delete(product_id)
