# clinicstock/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinicstock.api.v1.alerts import router as alerts_router, legacy_router as legacy_alerts_router
from clinicstock.api.v1.auth import router as auth_router
from clinicstock.api.v1.billing import router as billing_router
from clinicstock.api.v1.movements import router as movements_router
from clinicstock.api.v1.products import router as products_router
from clinicstock.api.v1.service_worker import router as service_worker_router
from clinicstock.api.v1.subscriptions import router as subscriptions_router
from clinicstock.api.v1.users import router as users_router
from clinicstock.core.config import settings
from clinicstock.core.logging_config import setup_logging
from clinicstock.create_tables import create_all_tables
from clinicstock.middleware.rate_limit_middleware import RateLimitMiddleware

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_all_tables()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} iniciado")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Middleware CORS primeiro
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)

app.add_middleware(
    RateLimitMiddleware,
    request_limit=settings.RATE_LIMIT_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)


@app.get("/")
def root():
    return {"message": f"Backend {settings.APP_NAME} ativo"}


@app.get("/health")
def health_check():
    """Endpoint de saúde para load balancers"""
    return {"status": "healthy"}


# Rotas
app.include_router(auth_router, prefix=settings.API_V1_PREFIX)
app.include_router(users_router, prefix=settings.API_V1_PREFIX)
app.include_router(products_router, prefix=settings.API_V1_PREFIX)
app.include_router(movements_router, prefix=settings.API_V1_PREFIX)
app.include_router(alerts_router, prefix=settings.API_V1_PREFIX)
app.include_router(billing_router, prefix=settings.API_V1_PREFIX)
app.include_router(subscriptions_router, prefix=settings.API_V1_PREFIX)
app.include_router(legacy_alerts_router)
app.include_router(service_worker_router)
