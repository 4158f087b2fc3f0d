# clinicstock/core/firebase.py
import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from clinicstock.core.config import settings

logger = logging.getLogger(__name__)


def get_firebase_app() -> Optional[firebase_admin.App]:
    """
    Inicializa o Firebase Admin uma única vez.
    Sem FIREBASE_SERVICE_ACCOUNT_KEY o SDK não é inicializado e None é devolvido.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if not settings.FIREBASE_SERVICE_ACCOUNT_KEY:
        logger.warning("FIREBASE_SERVICE_ACCOUNT_KEY não definido. Firebase Admin SDK não inicializado.")
        return None

    try:
        cred = credentials.Certificate(json.loads(settings.FIREBASE_SERVICE_ACCOUNT_KEY))
        app = firebase_admin.initialize_app(cred)
        logger.info("Firebase Admin inicializado com sucesso")
        return app
    except (ValueError, json.JSONDecodeError) as e:
        logger.error(f"Erro na inicialização do Firebase Admin: {e}")
        return None


def web_config() -> dict:
    """Configuração pública usada pelo service worker de notificações"""
    return {
        "apiKey": settings.FIREBASE_API_KEY,
        "authDomain": settings.FIREBASE_AUTH_DOMAIN,
        "projectId": settings.FIREBASE_PROJECT_ID,
        "storageBucket": settings.FIREBASE_STORAGE_BUCKET,
        "messagingSenderId": settings.FIREBASE_MESSAGING_SENDER_ID,
        "appId": settings.FIREBASE_APP_ID,
    }
