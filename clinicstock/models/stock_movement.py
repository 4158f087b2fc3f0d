# clinicstock/models/stock_movement.py
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, Date, Text, ForeignKey, Numeric, Index, Uuid

from clinicstock.db.base import Base


class StockMovement(Base):
    """
    Lançamento imutável do livro de movimentações de estoque.
    product_id não tem chave estrangeira: o histórico sobrevive à exclusão do produto.
    """
    __tablename__ = "stock_movements"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    product_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    product_name = Column(String(200), nullable=False)

    # Tipo e motivo
    type = Column(String(10), nullable=False, index=True, comment="entrada, saida")
    reason = Column(String(30), nullable=False,
                    comment="Uso, Venda, Perda, Vencimento, Compra, Ajuste, Entrada Manual, Saída Manual")

    # Quantidades
    quantity = Column(Integer, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)

    notes = Column(Text, nullable=True)
    professional_name = Column(String(150), nullable=True)

    # Dados de reposição (somente entradas)
    new_batch_number = Column(String(100), nullable=True)
    new_expiry_date = Column(Date, nullable=True)
    new_cost_price = Column(Numeric(12, 2), nullable=True)

    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_stock_movements_owner_date", "owner_id", "date"),
        Index("ix_stock_movements_product_date", "product_id", "date"),
    )

    @property
    def delta(self) -> int:
        """Variação assinada do estoque"""
        return self.quantity if self.type == "entrada" else -self.quantity

    def __repr__(self):
        return f"<StockMovement {self.type} {self.delta:+} for {self.product_id}>"
