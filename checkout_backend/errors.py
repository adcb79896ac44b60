"""
Taxonomie des erreurs métier du checkout.

Chaque erreur porte un code stable (repris dans les réponses JSON) et le statut HTTP
que la couche API doit renvoyer. Les handlers FastAPI sont enregistrés dans
checkout_backend.app_setup.exceptions.
"""
from typing import Any, Dict, Optional


class CheckoutError(Exception):
    http_status: int = 500
    code: str = "checkout_error"

    def __init__(self, message: str = "", **extra: Any):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.extra: Dict[str, Any] = extra

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "error": self.code, "detail": self.message}
        payload.update(self.extra)
        return payload


# --- Entrées appelant (4xx, jamais rejouées) ---
class ValidationError(CheckoutError):
    http_status = 400
    code = "validation_error"


class MissingFieldsError(ValidationError):
    code = "missing_fields"


class InvalidAmountError(ValidationError):
    code = "invalid_amount"


class SignatureMismatchError(CheckoutError):
    """Signature de paiement invalide. Ne révèle jamais la valeur attendue."""
    http_status = 400
    code = "signature_mismatch"


class PaymentNotSuccessfulError(CheckoutError):
    http_status = 400
    code = "payment_not_successful"


# --- Forme du panier ---
class MappingError(CheckoutError):
    http_status = 422
    code = "mapping_error"


class EmptyCartError(MappingError):
    code = "empty_cart"


class InvalidAddressError(MappingError):
    code = "invalid_address"


# --- Transport (5xx, rejouables par l'appelant avec un nouveau receipt) ---
class GatewayUnavailableError(CheckoutError):
    http_status = 502
    code = "gateway_unavailable"

    def __init__(self, message: str = "", status_code: Optional[int] = None, **extra: Any):
        super().__init__(message, **extra)
        self.status_code = status_code


class PlatformUnavailableError(CheckoutError):
    http_status = 502
    code = "platform_unavailable"


class PlatformRejectedError(CheckoutError):
    """Rejet métier de la plateforme: le corps brut est conservé pour diagnostic."""
    http_status = 502
    code = "platform_rejected"

    def __init__(self, status_code: int, body: Any, message: str = ""):
        super().__init__(message or f"Commerce platform rejected the order (HTTP {status_code})")
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["upstream_status"] = self.status_code
        payload["details"] = self.body
        return payload


# --- Store de persistance ---
class PersistenceError(CheckoutError):
    http_status = 500
    code = "persistence_error"


class OrderInsertError(PersistenceError):
    code = "order_insert_failed"


class OrderItemsInsertError(PersistenceError):
    """La commande parent existe mais ses lignes n'ont pas été écrites."""
    code = "order_items_insert_failed"


# --- Configuration / bootstrap ---
class ConfigurationError(CheckoutError):
    http_status = 503
    code = "not_configured"


class InvalidShopDomainError(ValidationError):
    code = "invalid_shop_domain"


class OAuthExchangeError(CheckoutError):
    http_status = 502
    code = "oauth_exchange_failed"
