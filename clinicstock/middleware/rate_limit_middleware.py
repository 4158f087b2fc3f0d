# clinicstock/middleware/rate_limit_middleware.py
import logging
import time
from collections import defaultdict
from typing import Dict, List

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from clinicstock.core.config import settings

logger = logging.getLogger(__name__)

# Rotas fora da limitação (documentação, saúde)
EXEMPT_PREFIXES = ("/docs", "/redoc", "/openapi.json", "/health")


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, request_limit: int = 100, window_seconds: int = 60):
        super().__init__(app)
        self.request_limit = request_limit
        self.window_seconds = window_seconds
        self.clients: Dict[str, List[float]] = defaultdict(list)
        self._last_purge = time.time()
        # O Stripe reenvia webhooks em rajadas
        self.exempt_prefixes = EXEMPT_PREFIXES + (f"{settings.API_V1_PREFIX}/billing/webhook",)

    def _purge_idle_clients(self, now: float):
        """Esquece IPs sem requisições dentro da janela"""
        if now - self._last_purge < self.window_seconds:
            return
        idle = [
            ip for ip, timestamps in self.clients.items()
            if not timestamps or now - timestamps[-1] >= self.window_seconds
        ]
        for ip in idle:
            del self.clients[ip]
        self._last_purge = now

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(self.exempt_prefixes):
            return await call_next(request)

        ip = request.client.host if request.client else "unknown"
        now = time.time()
        self._purge_idle_clients(now)

        # Janela deslizante por IP
        self.clients[ip] = [
            timestamp for timestamp in self.clients[ip]
            if now - timestamp < self.window_seconds
        ]

        if len(self.clients[ip]) >= self.request_limit:
            retry_after = max(1, int(self.window_seconds - (now - self.clients[ip][0])))
            logger.warning(f"Limite de requisições atingido para {ip}")
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Muitas requisições. Tente novamente mais tarde.",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )

        self.clients[ip].append(now)

        # Limita o tamanho da lista para evitar crescimento infinito
        if len(self.clients[ip]) > self.request_limit * 2:
            self.clients[ip] = self.clients[ip][-self.request_limit:]

        return await call_next(request)
