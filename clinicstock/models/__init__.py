# clinicstock/models/__init__.py
"""
Inicialização dos modelos - importar aqui todos os modelos para registrá-los no metadata
"""

from .user import User
from .product import Product
from .stock_movement import StockMovement
from .subscription import Subscription
from .device_token import DeviceToken
from .checkout_session import CheckoutSession


__all__ = [
    "User",
    "Product",
    "StockMovement",
    "Subscription",
    "DeviceToken",
    "CheckoutSession",
]
