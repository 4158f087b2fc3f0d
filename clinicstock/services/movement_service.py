# clinicstock/services/movement_service.py
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Tuple, List
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicstock.core.constants import MovementType, MovementReason
from clinicstock.models.product import Product
from clinicstock.models.stock_movement import StockMovement
from clinicstock.models.user import User
from clinicstock.schemas.stock_movement import MovementCreate
from clinicstock.utils.dates import local_day_start_utc
from clinicstock.utils.pagination import paginate
from clinicstock.utils.validators import validate_stock_availability

logger = logging.getLogger(__name__)


def get_owned_product(db: Session, owner_id: UUID, product_id: UUID, lock: bool = False) -> Product:
    """Produto do usuário ou 404"""
    query = db.query(Product).filter(Product.id == product_id, Product.owner_id == owner_id)
    if lock:
        query = query.with_for_update()
    product = query.first()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")
    return product


def apply_movement(db: Session, owner_id: UUID, product: Product, data: MovementCreate) -> StockMovement:
    """
    Aplica o lançamento ao produto e adiciona a linha do livro na sessão.
    Não faz commit: quem chama decide a fronteira da transação.
    """
    previous_stock = product.current_stock

    if data.type == MovementType.SAIDA:
        validate_stock_availability(product, data.quantity)
        new_stock = previous_stock - data.quantity
    else:
        new_stock = previous_stock + data.quantity

    product.current_stock = new_stock

    is_entry = data.type == MovementType.ENTRADA
    if is_entry:
        if data.new_expiry_date:
            product.expiry_date = data.new_expiry_date
        if data.new_batch_number:
            product.batch_number = data.new_batch_number
        if data.new_cost_price is not None:
            product.cost_price = data.new_cost_price

    movement = StockMovement(
        owner_id=owner_id,
        product_id=product.id,
        product_name=product.name,
        type=data.type.value,
        quantity=data.quantity,
        reason=data.reason.value,
        previous_stock=previous_stock,
        new_stock=new_stock,
        notes=data.notes,
        professional_name=data.professional_name,
        new_batch_number=data.new_batch_number if is_entry else None,
        new_expiry_date=data.new_expiry_date if is_entry else None,
        new_cost_price=data.new_cost_price if is_entry else None,
        date=datetime.utcnow(),
    )
    db.add(movement)
    return movement


def adjustment_for(previous_stock: int, target_stock: int) -> Optional[MovementCreate]:
    """Lançamento de Ajuste que leva o estoque de previous_stock a target_stock"""
    delta = target_stock - previous_stock
    if delta == 0:
        return None
    return MovementCreate(
        type=MovementType.ENTRADA if delta > 0 else MovementType.SAIDA,
        quantity=abs(delta),
        reason=MovementReason.ADJUSTMENT,
        notes="Ajuste pela edição do produto",
    )


def record_movement(db: Session, owner: User, product_id: UUID, data: MovementCreate) -> Tuple[StockMovement, Product]:
    """
    Registra uma entrada/saída de forma atômica:
    atualização do produto + lançamento no livro na mesma transação.
    """
    product = get_owned_product(db, owner.id, product_id, lock=True)

    try:
        movement = apply_movement(db, owner.id, product, data)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except (SQLAlchemyError, ValueError) as e:
        db.rollback()
        logger.error(f"Erro ao registrar movimentação do produto {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro ao registrar a movimentação"
        )

    db.refresh(product)
    logger.info(
        f"Movimentação {movement.type} de {movement.quantity} {product.unit} em {product.name}: "
        f"{movement.previous_stock} -> {movement.new_stock} ({owner.email})"
    )
    return movement, product


def list_movements(
    db: Session,
    owner: User,
    movement_type: Optional[MovementType] = None,
    product_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    size: int = 50,
    max_size: int = 500,
) -> Tuple[List[StockMovement], dict]:
    """Histórico de movimentações, mais recentes primeiro"""
    query = db.query(StockMovement).filter(StockMovement.owner_id == owner.id)

    if movement_type:
        query = query.filter(StockMovement.type == movement_type.value)
    if product_id:
        query = query.filter(StockMovement.product_id == product_id)
    # Período em dias locais; os carimbos estão em UTC
    if start_date:
        query = query.filter(StockMovement.date >= local_day_start_utc(start_date))
    if end_date:
        query = query.filter(StockMovement.date < local_day_start_utc(end_date + timedelta(days=1)))

    query = query.order_by(StockMovement.date.desc())
    return paginate(query, page=page, size=size, max_size=max_size)
