# clinicstock/services/product_service.py
import logging
import uuid
from datetime import timedelta
from typing import Optional, Tuple, List

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicstock.core.constants import (
    MovementType,
    MovementReason,
    EXPIRY_CRITICAL_DAYS,
    EXPIRY_WARNING_DAYS,
)
from clinicstock.models.product import Product
from clinicstock.models.user import User
from clinicstock.schemas.product import ProductCreate, ProductUpdate
from clinicstock.schemas.stock_movement import MovementCreate
from clinicstock.services import storage_service
from clinicstock.utils.dates import local_today
from clinicstock.services.movement_service import apply_movement, adjustment_for, get_owned_product
from clinicstock.utils.pagination import paginate

logger = logging.getLogger(__name__)

Photo = Tuple[bytes, str]


class ProductService:
    """Cadastro de produtos de um usuário"""

    def __init__(self, db: Session, owner: User):
        self.db = db
        self.owner = owner

    # -----------------------------
    # Consulta
    # -----------------------------
    def get(self, product_id: uuid.UUID) -> Product:
        return get_owned_product(self.db, self.owner.id, product_id)

    def all(self) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.owner_id == self.owner.id)
            .order_by(Product.name)
            .all()
        )

    def search(
        self,
        query: Optional[str] = None,
        category: Optional[str] = None,
        stock_status: Optional[str] = None,
        expiry_status: Optional[str] = None,
        page: int = 1,
        size: int = 50,
    ) -> Tuple[List[Product], dict]:
        """Lista com busca textual e filtros de estoque/validade"""
        q = self.db.query(Product).filter(Product.owner_id == self.owner.id)

        if query:
            q = q.filter(
                or_(
                    Product.name.ilike(f"%{query}%"),
                    Product.supplier.ilike(f"%{query}%"),
                    Product.batch_number.ilike(f"%{query}%"),
                    Product.barcode == query,
                )
            )
        if category:
            q = q.filter(Product.category == category)

        if stock_status == "out_of_stock":
            q = q.filter(Product.current_stock <= 0)
        elif stock_status == "low_stock":
            q = q.filter(Product.current_stock > 0, Product.current_stock <= Product.minimum_stock)

        if expiry_status:
            today = local_today()
            if expiry_status == "expired":
                q = q.filter(Product.expiry_date < today)
            elif expiry_status == "expiring_7":
                q = q.filter(
                    Product.expiry_date >= today,
                    Product.expiry_date <= today + timedelta(days=EXPIRY_CRITICAL_DAYS),
                )
            elif expiry_status == "expiring_30":
                q = q.filter(
                    Product.expiry_date >= today,
                    Product.expiry_date <= today + timedelta(days=EXPIRY_WARNING_DAYS),
                )

        return paginate(q.order_by(Product.name), page=page, size=size)

    # -----------------------------
    # Escrita
    # -----------------------------
    def create(self, data: ProductCreate, photo: Optional[Photo] = None) -> Product:
        """
        Cria o produto. Um estoque inicial vira uma entrada no livro,
        gravada na mesma transação.
        """
        product_id = uuid.uuid4()
        photo_url, photo_public_id = None, None
        if photo:
            photo_url, photo_public_id = storage_service.upload_image(
                photo[0], photo[1], storage_service.product_photo_folder(self.owner.id, product_id)
            )

        fields = data.model_dump(exclude={"current_stock"})
        fields["category"] = data.category.value
        fields["unit"] = data.unit.value
        product = Product(
            id=product_id,
            owner_id=self.owner.id,
            current_stock=0,
            photo_url=photo_url,
            photo_public_id=photo_public_id,
            **fields,
        )

        try:
            self.db.add(product)
            self.db.flush()
            if data.current_stock > 0:
                apply_movement(
                    self.db,
                    self.owner.id,
                    product,
                    MovementCreate(
                        type=MovementType.ENTRADA,
                        quantity=data.current_stock,
                        reason=MovementReason.MANUAL_IN,
                        notes="Estoque inicial",
                    ),
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            storage_service.delete_image(photo_public_id)
            logger.error(f"Erro ao criar o produto: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Não foi possível salvar o produto. Tente novamente."
            )

        self.db.refresh(product)
        logger.info(f"Produto criado: {product.name} ({product.current_stock} {product.unit}) por {self.owner.email}")
        return product

    def update(self, product_id: uuid.UUID, data: ProductUpdate, photo: Optional[Photo] = None) -> Product:
        """
        Atualiza o produto. Uma mudança de current_stock é registrada como
        Ajuste no livro, na mesma transação.
        """
        product = get_owned_product(self.db, self.owner.id, product_id, lock=True)
        update_data = data.model_dump(exclude_unset=True)
        target_stock = update_data.pop("current_stock", None)

        old_public_id, new_public_id = None, None
        if photo:
            photo_url, photo_public_id = storage_service.upload_image(
                photo[0], photo[1], storage_service.product_photo_folder(self.owner.id, product.id)
            )
            old_public_id = product.photo_public_id if product.photo_public_id != photo_public_id else None
            new_public_id = photo_public_id
            product.photo_url = photo_url
            product.photo_public_id = photo_public_id

        try:
            for field, value in update_data.items():
                if value is None and field in ("name", "category", "unit", "minimum_stock", "expiry_date", "cost_price"):
                    continue
                if hasattr(value, "value"):
                    value = value.value
                setattr(product, field, value)

            if target_stock is not None:
                adjustment = adjustment_for(product.current_stock, target_stock)
                if adjustment:
                    apply_movement(self.db, self.owner.id, product, adjustment)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            storage_service.delete_image(new_public_id)
            logger.error(f"Erro ao atualizar o produto {product_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Não foi possível atualizar o produto."
            )

        if old_public_id:
            storage_service.delete_image(old_public_id)

        self.db.refresh(product)
        logger.info(f"Produto atualizado: {product.name} por {self.owner.email}")
        return product

    def delete(self, product_id: uuid.UUID) -> dict:
        """
        Remove o produto e, na medida do possível, sua foto.
        O histórico de movimentações é mantido.
        """
        product = get_owned_product(self.db, self.owner.id, product_id)
        public_id = product.photo_public_id
        name = product.name

        self.db.delete(product)
        self.db.commit()

        photo_deleted = storage_service.delete_image(public_id) if public_id else False
        logger.info(f"Produto removido: {name} por {self.owner.email}")
        return {
            "message": "Produto excluído com sucesso",
            "photo_deleted": photo_deleted,
        }
