# clinicstock/api/v1/service_worker.py
import json

from fastapi import APIRouter
from fastapi.responses import Response

from clinicstock.core.firebase import web_config

router = APIRouter(tags=["Push"])

FIREBASE_JS_VERSION = "9.0.0"

SERVICE_WORKER_TEMPLATE = """importScripts('https://www.gstatic.com/firebasejs/{version}/firebase-app-compat.js');
importScripts('https://www.gstatic.com/firebasejs/{version}/firebase-messaging-compat.js');

firebase.initializeApp({config});

const messaging = firebase.messaging();

messaging.onBackgroundMessage((payload) => {{
  const notificationTitle = payload.notification.title;
  const notificationOptions = {{
    body: payload.notification.body,
    icon: payload.notification.image,
  }};

  self.registration.showNotification(notificationTitle, notificationOptions);
}});
"""


def render_service_worker() -> str:
    return SERVICE_WORKER_TEMPLATE.format(
        version=FIREBASE_JS_VERSION,
        config=json.dumps(web_config(), indent=2),
    )


@router.get("/firebase-messaging-sw.js", include_in_schema=False)
def firebase_messaging_sw():
    """Service worker de notificações em segundo plano"""
    return Response(
        content=render_service_worker(),
        media_type="application/javascript",
        headers={"Service-Worker-Allowed": "/", "Cache-Control": "no-cache"},
    )
