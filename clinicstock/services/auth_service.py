# clinicstock/services/auth_service.py
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from firebase_admin import auth as firebase_auth
from sqlalchemy.orm import Session

from clinicstock.core.constants import AuthProvider
from clinicstock.core.firebase import get_firebase_app
from clinicstock.core.rate_limit import rate_limit_check, reset_rate_limit
from clinicstock.core.security import hash_password, verify_password, create_access_token
from clinicstock.models.user import User
from clinicstock.schemas.user import UserRegister

logger = logging.getLogger(__name__)

MAX_LOGIN_ATTEMPTS = 5
LOGIN_WINDOW_SECONDS = 15 * 60


def issue_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "email": user.email})


def register_user(db: Session, data: UserRegister) -> User:
    """Cadastro por e-mail e senha"""
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="E-mail já cadastrado")

    user = User(
        email=email,
        hashed_password=hash_password(data.password),
        display_name=data.display_name or email.split("@")[0],
        auth_provider=AuthProvider.PASSWORD.value,
        last_login=datetime.utcnow(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Usuário cadastrado: {user.email}")
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Login por e-mail e senha com limite de tentativas"""
    email = email.lower()
    key = f"login_{email}"
    if not rate_limit_check(key, max_attempts=MAX_LOGIN_ATTEMPTS, window_seconds=LOGIN_WINDOW_SECONDS):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Muitas tentativas. Tente novamente em 15 minutos."
        )

    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Falha de login para {email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="E-mail ou senha incorretos")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Conta desativada")

    reset_rate_limit(key)
    user.last_login = datetime.utcnow()
    db.commit()
    return user


def verify_firebase_token(id_token: str) -> dict:
    """Valida o ID token no Firebase Auth"""
    app = get_firebase_app()
    if app is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Login federado não configurado"
        )
    try:
        return firebase_auth.verify_id_token(id_token, app=app)
    except (firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, ValueError) as e:
        logger.warning(f"ID token do Firebase rejeitado: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token do provedor inválido ou expirado")


def login_with_firebase(db: Session, id_token: str) -> User:
    """
    Login federado: espelha uid, e-mail, nome e foto do provedor
    no registro local do usuário.
    """
    claims = verify_firebase_token(id_token)
    uid: str = claims["uid"]
    email: Optional[str] = claims.get("email")
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A conta do provedor não possui e-mail")
    email = email.lower()

    user = db.query(User).filter(User.provider_uid == uid).first()
    if not user:
        user = db.query(User).filter(User.email == email).first()

    if user is None:
        user = User(
            email=email,
            auth_provider=AuthProvider.FIREBASE.value,
            provider_uid=uid,
            display_name=claims.get("name") or email.split("@")[0],
            photo_url=claims.get("picture"),
        )
        db.add(user)
        logger.info(f"Usuário federado criado: {email}")
    else:
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Conta desativada")
        user.provider_uid = uid
        user.email = email
        if claims.get("name") and not user.display_name:
            user.display_name = claims["name"]
        if claims.get("picture") and not user.photo_public_id:
            user.photo_url = claims["picture"]

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return user
