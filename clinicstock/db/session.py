# clinicstock/db/session.py
from typing import Generator
import logging

from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from clinicstock.core.config import settings
from clinicstock.db.base import Base

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.SQLALCHEMY_ECHO,
    **settings.SQLALCHEMY_ENGINE_OPTIONS,
)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependência de banco por requisição
    - 1 sessão / requisição
    - commit automático em caso de sucesso
    - rollback garantido
    """
    db: Session = SessionLocal()
    try:
        yield db
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Erro SQLAlchemy")
        raise HTTPException(
            status_code=500,
            detail="Erro interno de banco de dados"
        ) from e
    except Exception:
        db.rollback()
        logger.exception("Erro inesperado")
        raise
    finally:
        db.close()


__all__ = ["Base", "engine", "SessionLocal", "get_db"]
