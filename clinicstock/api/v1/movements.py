# clinicstock/api/v1/movements.py
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from clinicstock.api.deps import subscription_required
from clinicstock.core.constants import MovementType
from clinicstock.db.session import get_db
from clinicstock.models.user import User
from clinicstock.schemas.stock_movement import MovementCreate, MovementResponse, MovementListResponse
from clinicstock.services import movement_service
from clinicstock.utils.dates import local_today
from clinicstock.utils.export import TabularExporter, movement_rows, media_type_for

router = APIRouter(tags=["Movements"])
logger = logging.getLogger(__name__)


# -----------------------------
# Registro de entrada / saída
# -----------------------------
@router.post(
    "/products/{product_id}/movements",
    response_model=MovementResponse,
    status_code=status.HTTP_201_CREATED
)
def create_movement(
    product_id: UUID,
    data: MovementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    """
    Registra uma movimentação: o estoque do produto e o lançamento
    no histórico são gravados juntos ou nenhum dos dois.
    """
    movement, product = movement_service.record_movement(db, current_user, product_id, data)
    label = "Entrada" if movement.type == MovementType.ENTRADA.value else "Saída"
    return MovementResponse(
        message=f"{label} registrada com sucesso",
        movement=movement,
        product=product,
    )


# -----------------------------
# Histórico
# -----------------------------
@router.get("/movements", response_model=MovementListResponse)
def list_movements(
    type: Optional[MovementType] = Query(None, description="entrada ou saida"),
    product_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    items, meta = movement_service.list_movements(
        db, current_user,
        movement_type=type,
        product_id=product_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        size=size,
    )
    return MovementListResponse(items=items, **meta)


@router.get("/movements/export")
def export_movements(
    format: str = Query("xlsx", pattern="^(xlsx|csv)$"),
    type: Optional[MovementType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(subscription_required)
):
    """Exporta o histórico filtrado em Excel ou CSV"""
    items, _ = movement_service.list_movements(
        db, current_user,
        movement_type=type,
        start_date=start_date,
        end_date=end_date,
        page=1,
        size=100_000,
        max_size=100_000,
    )
    output = TabularExporter().export(movement_rows(items), format, sheet_name="Movimentações")
    filename = f"movimentacoes_{local_today().isoformat()}.{format}"
    return StreamingResponse(
        output,
        media_type=media_type_for(format),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
