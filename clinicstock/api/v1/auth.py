# clinicstock/api/v1/auth.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from clinicstock.api.deps import get_current_active_user
from clinicstock.db.session import get_db
from clinicstock.models.user import User
from clinicstock.schemas.user import (
    UserRegister,
    LoginSchema,
    FirebaseLoginSchema,
    TokenResponse,
    UserOut,
)
from clinicstock.services import auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=auth_service.issue_token(user),
        user=UserOut.model_validate(user),
    )


# =========================
# CADASTRO
# =========================
@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(data: UserRegister, db: Session = Depends(get_db)):
    """Cadastro por e-mail e senha; devolve o token de acesso"""
    user = auth_service.register_user(db, data)
    return _token_response(user)


# =========================
# LOGIN
# =========================
@router.post("/login", response_model=TokenResponse)
def login(data: LoginSchema, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, data.email, data.password)
    logger.info(f"Login bem-sucedido: {user.email}")
    return _token_response(user)


@router.post("/firebase", response_model=TokenResponse)
def login_firebase(data: FirebaseLoginSchema, db: Session = Depends(get_db)):
    """
    Login federado (Google e outros provedores do Firebase Auth).
    O ID token é validado no Firebase e trocado por um token da API.
    """
    user = auth_service.login_with_firebase(db, data.id_token)
    logger.info(f"Login federado bem-sucedido: {user.email}")
    return _token_response(user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_active_user)):
    return current_user
