# clinicstock/api/deps.py
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from clinicstock.core.config import settings
from clinicstock.core.security import decode_access_token
from clinicstock.db.session import get_db
from clinicstock.models.user import User
from clinicstock.services.subscription_service import is_subscription_active

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login")


# ======================================================
# AUTENTICAÇÃO
# ======================================================

def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Usuário atual a partir do token JWT"""

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token inválido ou expirado",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if not payload:
        raise credentials_exception

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise credentials_exception
    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise credentials_exception

    user = db.query(User).filter(User.id == user_uuid).first()
    if not user:
        raise credentials_exception

    return user


def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """Garante que a conta está ativa"""

    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuário inativo ou suspenso"
        )

    return current_user


# ======================================================
# ASSINATURA
# ======================================================

def subscription_required(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
) -> User:
    """Libera o acesso apenas com assinatura ativa (active ou trialing)"""

    if settings.SUBSCRIPTION_REQUIRED and not is_subscription_active(db, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Assinatura inativa ou expirada"
        )

    return current_user


# ======================================================
# ORIGEM
# ======================================================

def get_origin(request: Request) -> str:
    """Origem do cliente, usada nas URLs de retorno do Stripe"""
    origin = request.headers.get("origin") or settings.FRONTEND_URL
    return origin.rstrip("/")


__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "subscription_required",
    "get_origin",
    "oauth2_scheme",
]
