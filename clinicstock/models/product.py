# clinicstock/models/product.py
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, Date, Text, ForeignKey, Numeric, Index, Uuid
from sqlalchemy.orm import relationship, validates

from clinicstock.db.base import Base


class Product(Base):
    """
    Produto do estoque de um usuário.
    O estoque atual só deve mudar junto com um lançamento em StockMovement.
    """
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # =====================================
    # IDENTIFICAÇÃO
    # =====================================
    name = Column(String(200), nullable=False, index=True)
    category = Column(String(50), nullable=False, default="Outros",
                      comment="Injetáveis, Cosméticos Profissionais, Materiais Descartáveis, Equipamentos, Outros")
    barcode = Column(String(100), nullable=True, index=True)
    photo_url = Column(String(500), nullable=True)
    photo_public_id = Column(String(255), nullable=True, comment="Identificador no armazenamento de arquivos")

    # =====================================
    # ESTOQUE
    # =====================================
    current_stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=10)
    unit = Column(String(20), nullable=False, default="Un", comment="Un, Caixa, Frasco, ml, Ampola")

    # =====================================
    # VALIDADE E LOTE
    # =====================================
    expiry_date = Column(Date, nullable=False, index=True)
    batch_number = Column(String(100), nullable=True)

    # =====================================
    # FORNECEDOR E CUSTO
    # =====================================
    supplier = Column(String(200), nullable=True)
    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="products")

    __table_args__ = (
        Index("ix_products_owner_name", "owner_id", "name"),
        Index("ix_products_owner_expiry", "owner_id", "expiry_date"),
    )

    # =====================================
    # VALIDAÇÕES
    # =====================================
    @validates("current_stock", "minimum_stock")
    def validate_stock(self, key, value):
        """Estoques nunca são negativos"""
        if value is not None and value < 0:
            raise ValueError(f"O campo {key} não pode ser negativo")
        return value

    @validates("cost_price")
    def validate_cost_price(self, key, value):
        if value is not None and value < 0:
            raise ValueError("O preço de custo não pode ser negativo")
        return value

    # =====================================
    # PROPRIEDADES CALCULADAS
    # =====================================
    @property
    def stock_value(self) -> float:
        """Valor de custo do estoque atual"""
        return float((self.cost_price or 0) * self.current_stock)

    def __repr__(self):
        return f"<Product {self.name} ({self.current_stock} {self.unit})>"
