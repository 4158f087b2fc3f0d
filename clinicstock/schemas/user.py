# clinicstock/schemas/user.py
from datetime import datetime
from typing import Optional
from uuid import UUID
import re

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


# =========================
# Autenticação
# =========================

class UserRegister(BaseModel):
    email: EmailStr
    password: str
    confirm_password: Optional[str] = None
    display_name: Optional[str] = Field(None, max_length=150)

    @field_validator("password")
    def password_strength(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Senha muito curta (mínimo de 6 caracteres)")
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Senha muito longa (máximo de 72 caracteres)")
        return v

    @model_validator(mode="after")
    def check_passwords(self):
        if self.confirm_password and self.password != self.confirm_password:
            raise ValueError("As senhas não coincidem")
        return self


class LoginSchema(BaseModel):
    email: EmailStr
    password: str


class FirebaseLoginSchema(BaseModel):
    """ID token emitido pelo Firebase Auth (Google, e-mail/senha, etc.)"""
    id_token: str = Field(..., min_length=10)


# =========================
# Perfil
# =========================

class UserOut(BaseModel):
    id: UUID
    email: EmailStr
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    phone: Optional[str] = None
    auth_provider: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=2, max_length=150)
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator("phone")
    def normalize_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        digits = re.sub(r"[^\d+]", "", v)
        if len(re.sub(r"\D", "", digits)) < 10:
            raise ValueError("Número de telefone inválido (mínimo de 10 dígitos)")
        return digits


# =========================
# Tokens de dispositivo
# =========================

class DeviceTokenCreate(BaseModel):
    token: str = Field(..., min_length=10, max_length=512)
    user_agent: Optional[str] = Field(None, max_length=255)


class DeviceTokenOut(BaseModel):
    token: str
    created_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
