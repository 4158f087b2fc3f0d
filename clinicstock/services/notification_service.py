import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging
from sqlalchemy.orm import Session
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from clinicstock.core.config import settings
from clinicstock.core.firebase import get_firebase_app
from clinicstock.models.device_token import DeviceToken
from clinicstock.models.product import Product
from clinicstock.models.user import User
from clinicstock.services.alert_service import build_alert_digest

logger = logging.getLogger(__name__)

# Tokens que o FCM rejeita definitivamente
STALE_TOKEN_ERRORS = (messaging.UnregisteredError, firebase_exceptions.InvalidArgumentError)


class NotificationService:
    """
    Serviço de notificações do ClinicStock
    Push (Firebase Cloud Messaging) e cópia por SMS (Twilio)
    """

    def __init__(self, db: Session):
        self.db = db
        self._twilio_client = None
        self._initialize_clients()

    def _initialize_clients(self):
        """Inicializa o cliente Twilio, se configurado"""
        if settings.TWILIO_SID and settings.TWILIO_AUTH_TOKEN:
            try:
                self._twilio_client = Client(settings.TWILIO_SID, settings.TWILIO_AUTH_TOKEN)
                logger.info("Cliente Twilio inicializado com sucesso")
            except TwilioException as e:
                logger.error(f"Erro na inicialização do Twilio: {e}")

    # =====================================
    # TOKENS DE DISPOSITIVO
    # =====================================
    def register_token(self, user: User, token: str, user_agent: Optional[str] = None) -> DeviceToken:
        """Registra (ou renova) um token de dispositivo"""
        device = self.db.get(DeviceToken, token)
        if device and device.user_id != user.id:
            # O aparelho trocou de conta
            device.user_id = user.id
        if device is None:
            device = DeviceToken(token=token, user_id=user.id)
            self.db.add(device)
        device.user_agent = user_agent or device.user_agent
        device.last_seen_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(device)
        logger.info(f"Token de dispositivo registrado para {user.email}")
        return device

    def revoke_token(self, user: User, token: str) -> bool:
        device = self.db.query(DeviceToken).filter(
            DeviceToken.token == token,
            DeviceToken.user_id == user.id,
        ).first()
        if not device:
            return False
        self.db.delete(device)
        self.db.commit()
        logger.info(f"Token de dispositivo revogado para {user.email}")
        return True

    def user_tokens(self, user: User) -> List[str]:
        rows = self.db.query(DeviceToken.token).filter(DeviceToken.user_id == user.id).all()
        return [row[0] for row in rows]

    # =====================================
    # PUSH
    # =====================================
    def send_push(self, tokens: List[str], title: str, body: str) -> Dict[str, Any]:
        """
        Envia a mesma notificação a vários dispositivos.
        Retorna o número de sucessos e os tokens a descartar.
        """
        app = get_firebase_app()
        if app is None:
            logger.warning("Firebase não configurado, push não enviado")
            return {"success_count": 0, "stale_tokens": [], "error": "Firebase não configurado"}

        message = messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=title, body=body),
            webpush=messaging.WebpushConfig(
                notification=messaging.WebpushNotification(icon=settings.PUSH_ICON),
                fcm_options=messaging.WebpushFCMOptions(link=settings.PUSH_LINK),
            ),
        )

        try:
            response = messaging.send_each_for_multicast(message, app=app)
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"Erro no envio multicast FCM: {e}")
            return {"success_count": 0, "stale_tokens": [], "error": str(e)}

        stale_tokens = [
            tokens[index]
            for index, result in enumerate(response.responses)
            if not result.success and isinstance(result.exception, STALE_TOKEN_ERRORS)
        ]
        logger.info(f"Push enviado: {response.success_count} sucesso(s), {response.failure_count} falha(s)")
        return {"success_count": response.success_count, "stale_tokens": stale_tokens, "error": None}

    def prune_tokens(self, user: User, tokens: List[str]) -> int:
        """Remove tokens rejeitados pelo FCM"""
        if not tokens:
            return 0
        deleted = self.db.query(DeviceToken).filter(
            DeviceToken.user_id == user.id,
            DeviceToken.token.in_(tokens),
        ).delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"{deleted} token(s) inválido(s) removido(s) para {user.email}")
        return deleted

    # =====================================
    # SMS
    # =====================================
    def send_sms(self, to: str, body: str, from_: str = None) -> bool:
        """
        Envia um SMS via Twilio
        """
        if not self._twilio_client:
            logger.warning("Twilio não configurado, SMS não enviado")
            return False

        try:
            to = format_phone(to)
            message = self._twilio_client.messages.create(
                body=body,
                from_=from_ or settings.TWILIO_PHONE_NUMBER,
                to=to
            )
            logger.info(f"SMS enviado para {to}: {message.sid}")
            return True
        except TwilioException as e:
            logger.error(f"Erro no envio de SMS para {to}: {e}")
            return False

    # =====================================
    # ALERTAS
    # =====================================
    def send_stock_alerts(self, user: User) -> Dict[str, Any]:
        """
        Calcula o resumo de alertas do usuário e o envia para todos os
        dispositivos registrados (e por SMS, se houver telefone).
        """
        products = self.db.query(Product).filter(Product.owner_id == user.id).all()
        digest = build_alert_digest(products)

        result = {
            "success": True,
            "message": "",
            "alerts_found": digest["alerts_found"],
            "notifications_sent": 0,
            "sms_sent": False,
            "expiring_soon": digest["expiring_soon"],
            "low_stock": digest["low_stock"],
        }

        if digest["alerts_found"] == 0:
            result["message"] = "Nenhum alerta para enviar."
            return result

        if user.phone:
            result["sms_sent"] = self.send_sms(user.phone, f"{digest['title']} {digest['body']}")

        tokens = self.user_tokens(user)
        if not tokens:
            result["message"] = "Nenhum token de notificação encontrado para o usuário."
            return result

        push = self.send_push(tokens, digest["title"], digest["body"])
        if push["error"]:
            result["success"] = False
            result["message"] = f"Falha no envio das notificações: {push['error']}"
            return result

        self.prune_tokens(user, push["stale_tokens"])
        result["notifications_sent"] = push["success_count"]
        result["message"] = f"{push['success_count']} notificação(ões) enviada(s)."
        return result


def format_phone(phone: str) -> str:
    """Formata um número no padrão E.164 (Brasil por padrão)"""
    digits = "".join(c for c in phone if c.isdigit())
    if phone.strip().startswith("+"):
        return f"+{digits}"
    digits = digits.lstrip("0")
    if not digits.startswith(settings.DEFAULT_COUNTRY_CODE) or len(digits) <= 11:
        digits = f"{settings.DEFAULT_COUNTRY_CODE}{digits}"
    return f"+{digits}"
