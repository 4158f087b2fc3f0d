# clinicstock/core/logging_config.py
import logging

from clinicstock.core.config import settings


def setup_logging(level: str = None) -> None:
    """Configura o logger raiz a partir das configurações"""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=settings.LOG_FORMAT,
    )
    # Os SDKs externos são muito verbosos em INFO
    for noisy in ("stripe", "urllib3", "cloudinary", "twilio.http_client"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
