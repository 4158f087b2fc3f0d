# clinicstock/core/config.py
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuração da aplicação com validação Pydantic"""

    # =====================================
    # APLICAÇÃO
    # =====================================
    APP_NAME: str = "ClinicStock"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"
    FRONTEND_URL: str = "http://localhost:3000"

    # =====================================
    # SEGURANÇA JWT
    # =====================================
    SECRET_KEY: str = "troque-esta-chave-em-producao"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24h

    # =====================================
    # BANCO DE DADOS
    # =====================================
    DATABASE_URL: str = "sqlite:///./clinicstock.db"
    SQLALCHEMY_ECHO: bool = False

    @property
    def SQLALCHEMY_ENGINE_OPTIONS(self) -> dict:
        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
        }

    # =====================================
    # CORS
    # =====================================
    CORS_ORIGINS: list = ["http://localhost:3000", "http://127.0.0.1:3000"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # =====================================
    # REGRAS DE NEGÓCIO
    # =====================================
    DEFAULT_TIMEZONE: str = "America/Sao_Paulo"
    DEFAULT_CURRENCY: str = "BRL"
    DEFAULT_MINIMUM_STOCK: int = 10
    SUBSCRIPTION_REQUIRED: bool = True

    # =====================================
    # ARQUIVOS & UPLOADS (Cloudinary)
    # =====================================
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    ALLOWED_EXTENSIONS: list = [".jpg", ".jpeg", ".png", ".webp"]
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # =====================================
    # STRIPE
    # =====================================
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_API_VERSION: str = "2024-06-20"
    STRIPE_PRICE_ID_MONTHLY: str = ""
    STRIPE_PRICE_ID_YEARLY: str = ""
    CHECKOUT_TIMEOUT_SECONDS: float = 20.0
    CHECKOUT_POLL_INTERVAL_SECONDS: float = 0.5

    # =====================================
    # FIREBASE (Auth federado + Cloud Messaging)
    # =====================================
    FIREBASE_SERVICE_ACCOUNT_KEY: Optional[str] = None
    FIREBASE_API_KEY: str = ""
    FIREBASE_AUTH_DOMAIN: str = ""
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_STORAGE_BUCKET: str = ""
    FIREBASE_MESSAGING_SENDER_ID: str = ""
    FIREBASE_APP_ID: str = ""
    PUSH_ICON: str = "/logo.png"
    PUSH_LINK: str = "/alerts"

    # =====================================
    # TWILIO (cópia das alertas por SMS)
    # =====================================
    TWILIO_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    DEFAULT_COUNTRY_CODE: str = "55"

    # =====================================
    # RATE LIMIT
    # =====================================
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # =====================================
    # LOGGING
    # =====================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Instância global das configurações
settings = Settings()
