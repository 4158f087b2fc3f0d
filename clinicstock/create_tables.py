# clinicstock/create_tables.py
"""
Script simples para criar as tabelas
"""
import logging

from clinicstock.db.session import Base, engine
# Importar todos os modelos para registrá-los no metadata
from clinicstock import models  # noqa: F401

logger = logging.getLogger(__name__)


def create_all_tables(bind=None) -> None:
    """Cria todas as tabelas do banco de dados"""
    logger.info("Criando tabelas...")
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Tabelas criadas com sucesso")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_all_tables()
