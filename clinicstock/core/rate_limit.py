# clinicstock/core/rate_limit.py
from datetime import datetime, timedelta
import logging

logger = logging.getLogger(__name__)

# Limitador simples em memória, por processo
_rate_limiter_cache = {}


def rate_limit_check(key: str, max_attempts: int = 5, window_seconds: int = 300) -> bool:
    """
    Verifica se uma ação é permitida dentro da janela de tempo.

    Args:
        key: Identificador da limitação (ex: "login_email@example.com")
        max_attempts: Número máximo de tentativas na janela
        window_seconds: Janela em segundos

    Returns:
        bool: True se permitido, False se limitado
    """
    now = datetime.utcnow()
    window_start = now - timedelta(seconds=window_seconds)

    if key in _rate_limiter_cache:
        _rate_limiter_cache[key] = [
            timestamp for timestamp in _rate_limiter_cache[key]
            if timestamp > window_start
        ]

    attempts = _rate_limiter_cache.get(key, [])
    if len(attempts) >= max_attempts:
        logger.warning(f"Limite de tentativas atingido para {key}: {len(attempts)} tentativas")
        return False

    attempts.append(now)
    _rate_limiter_cache[key] = attempts[-max_attempts:]
    return True


def reset_rate_limit(key: str) -> None:
    _rate_limiter_cache.pop(key, None)
