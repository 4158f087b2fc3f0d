# clinicstock/utils/validators.py

from pathlib import Path
import logging

from fastapi import HTTPException, status

from clinicstock.core.config import settings

logger = logging.getLogger(__name__)


def validate_stock_availability(product, quantity: int) -> None:
    """
    Valida se há estoque suficiente para uma saída.

    :param product: produto (Product ou equivalente)
    :param quantity: quantidade solicitada
    :raises HTTPException: se o estoque for insuficiente
    """
    available_stock = getattr(product, "current_stock", 0)

    if quantity > available_stock:
        logger.warning(
            f"Estoque insuficiente para {getattr(product, 'name', 'Desconhecido')}: "
            f"solicitado {quantity}, disponível {available_stock}"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Estoque insuficiente para esta saída",
                "product": getattr(product, "name", "Desconhecido"),
                "requested": quantity,
                "available": available_stock,
            }
        )


def validate_upload(filename: str, content: bytes) -> None:
    """
    Valida extensão e tamanho de uma imagem enviada.

    :raises HTTPException: 400 para extensão inválida, 413 para arquivo grande demais
    """
    extension = Path(filename or "").suffix.lower()
    if extension not in settings.ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Formato de arquivo não permitido. Use: {', '.join(settings.ALLOWED_EXTENSIONS)}"
        )

    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Arquivo vazio")

    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Arquivo muito grande (máximo de {settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB)"
        )
