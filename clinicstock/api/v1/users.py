# clinicstock/api/v1/users.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from sqlalchemy.orm import Session

from clinicstock.api.deps import get_current_active_user
from clinicstock.db.session import get_db
from clinicstock.models.user import User
from clinicstock.schemas.user import UserOut, UserUpdate, DeviceTokenCreate, DeviceTokenOut
from clinicstock.services import storage_service
from clinicstock.services.notification_service import NotificationService

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


# -----------------------------
# Perfil
# -----------------------------
@router.get("/me", response_model=UserOut)
def get_profile(current_user: User = Depends(get_current_active_user)):
    return current_user


@router.patch("/me", response_model=UserOut)
def update_profile(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Atualiza nome de exibição e telefone (usado para alertas por SMS)"""
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    logger.info(f"Perfil atualizado: {current_user.email}")
    return current_user


@router.post("/me/photo", response_model=UserOut)
async def upload_profile_photo(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    content = await file.read()
    photo_url, public_id = storage_service.upload_image(
        content, file.filename, storage_service.profile_photo_folder(current_user.id)
    )

    old_public_id = current_user.photo_public_id
    current_user.photo_url = photo_url
    current_user.photo_public_id = public_id
    db.commit()
    db.refresh(current_user)

    if old_public_id and old_public_id != public_id:
        storage_service.delete_image(old_public_id)

    logger.info(f"Foto de perfil atualizada: {current_user.email}")
    return current_user


# -----------------------------
# Tokens de dispositivo (push)
# -----------------------------
@router.post("/me/device-tokens", response_model=DeviceTokenOut)
def register_device_token(
    data: DeviceTokenCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Registra o token FCM do navegador; chamadas repetidas apenas renovam o registro"""
    return NotificationService(db).register_token(current_user, data.token, data.user_agent)


@router.delete("/me/device-tokens/{token}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_device_token(
    token: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    if not NotificationService(db).revoke_token(current_user, token):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Token não encontrado")
