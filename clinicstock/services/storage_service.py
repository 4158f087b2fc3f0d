# clinicstock/services/storage_service.py
import logging
from typing import Optional, Tuple

import cloudinary
import cloudinary.uploader
from fastapi import HTTPException, status

from clinicstock.core.config import settings
from clinicstock.utils.validators import validate_upload

logger = logging.getLogger(__name__)

_configured = False


def is_storage_configured() -> bool:
    return bool(
        settings.CLOUDINARY_CLOUD_NAME
        and settings.CLOUDINARY_API_KEY
        and settings.CLOUDINARY_API_SECRET
    )


def _ensure_configured() -> None:
    global _configured
    if _configured:
        return
    if not is_storage_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Armazenamento de arquivos não configurado"
        )
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )
    _configured = True


def product_photo_folder(user_id, product_id) -> str:
    return f"users/{user_id}/products/{product_id}"


def profile_photo_folder(user_id) -> str:
    return f"users/{user_id}/profile"


def upload_image(content: bytes, filename: str, folder: str) -> Tuple[str, str]:
    """
    Envia uma imagem ao Cloudinary.

    Returns:
        (url segura, public_id)
    """
    validate_upload(filename, content)
    _ensure_configured()

    try:
        result = cloudinary.uploader.upload(
            content,
            folder=folder,
            resource_type="image",
            overwrite=True,
        )
    except Exception as e:
        logger.error(f"Erro ao enviar imagem para {folder}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Não foi possível enviar a imagem"
        )

    logger.info(f"Imagem enviada: {result.get('public_id')}")
    return result["secure_url"], result["public_id"]


def delete_image(public_id: Optional[str]) -> bool:
    """Remove uma imagem; falhas são registradas e ignoradas"""
    if not public_id:
        return False
    if not is_storage_configured():
        logger.warning(f"Armazenamento não configurado, imagem {public_id} não removida")
        return False

    try:
        _ensure_configured()
        result = cloudinary.uploader.destroy(public_id, resource_type="image")
        deleted = result.get("result") == "ok"
        if not deleted:
            logger.warning(f"Imagem {public_id} não removida: {result}")
        return deleted
    except Exception as e:
        logger.error(f"Erro ao remover imagem {public_id}: {e}")
        return False
