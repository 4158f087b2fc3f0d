from enum import Enum


class ProductCategory(str, Enum):
    INJECTABLES = "Injetáveis"
    PROFESSIONAL_COSMETICS = "Cosméticos Profissionais"
    DISPOSABLES = "Materiais Descartáveis"
    EQUIPMENT = "Equipamentos"
    OTHER = "Outros"


class ProductUnit(str, Enum):
    UNIT = "Un"
    BOX = "Caixa"
    BOTTLE = "Frasco"
    ML = "ml"
    AMPOULE = "Ampola"


class MovementType(str, Enum):
    ENTRADA = "entrada"
    SAIDA = "saida"


class MovementReason(str, Enum):
    USE = "Uso"
    SALE = "Venda"
    LOSS = "Perda"
    EXPIRY = "Vencimento"
    PURCHASE = "Compra"
    ADJUSTMENT = "Ajuste"
    MANUAL_IN = "Entrada Manual"
    MANUAL_OUT = "Saída Manual"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"
    PAUSED = "paused"


class AuthProvider(str, Enum):
    PASSWORD = "password"
    FIREBASE = "firebase"


# Status que liberam o acesso ao app
ACTIVE_SUBSCRIPTION_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)

# Janelas de alerta de validade (dias)
EXPIRY_CRITICAL_DAYS = 7
EXPIRY_WARNING_DAYS = 30

# Quantidade de próximos vencimentos exibidos no dashboard
NEXT_EXPIRIES_LIMIT = 5
