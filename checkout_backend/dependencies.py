"""
Dépendances FastAPI: construit une seule fois la configuration et les clients,
puis les injecte dans les vues. Surchargeables en tests via app.dependency_overrides.
"""
import threading
from typing import Optional

from fastapi import Depends
from pydantic import SecretStr

from checkout_backend.config import CheckoutSettings, load_settings
from checkout_backend.orders.cart_mapper import CartMapper
from checkout_backend.orders.commerce_client import CommerceOrderClient
from checkout_backend.orders import service as orders_service
from checkout_backend.oauth import repository as oauth_repository
from checkout_backend.payments.gateway_client import GatewayOrderClient
from checkout_backend.payments.pipeline import VerificationPipeline

_clients_lock = threading.Lock()
_gateway: Optional[GatewayOrderClient] = None
_commerce: Optional[CommerceOrderClient] = None


def get_settings() -> CheckoutSettings:
    return load_settings()

def _build_commerce_client() -> CommerceOrderClient:
    settings = load_settings()
    # Token absent de l'env: repli sur celui rangé par le bootstrap OAuth
    if settings.store_domain and not settings.access_token.get_secret_value() and settings.persistence_configured:
        stored = oauth_repository.get_platform_token(settings.store_domain)
        if stored:
            settings = settings.model_copy(update={"access_token": SecretStr(stored)})
    return CommerceOrderClient(settings)

def get_gateway_client() -> GatewayOrderClient:
    global _gateway
    with _clients_lock:
        if _gateway is None:
            _gateway = GatewayOrderClient(load_settings())
        return _gateway

def get_commerce_client() -> CommerceOrderClient:
    """
    Client Shopify partagé. Un client sans token n'est jamais mémorisé:
    le token (env ou store OAuth) est relu à l'appel suivant.
    """
    global _commerce
    with _clients_lock:
        if _commerce is not None:
            return _commerce
        client = _build_commerce_client()
        if client.settings.platform_configured:
            _commerce = client
        return client

def reset_commerce_client() -> None:
    """Oublie le client Shopify courant (appelé après un nouveau token OAuth)."""
    global _commerce
    with _clients_lock:
        previous, _commerce = _commerce, None
    if previous is not None:
        previous.close()

def get_cart_mapper(settings: CheckoutSettings = Depends(get_settings)) -> CartMapper:
    return CartMapper(settings)

def get_pipeline(
    settings: CheckoutSettings = Depends(get_settings),
    gateway: GatewayOrderClient = Depends(get_gateway_client),
    mapper: CartMapper = Depends(get_cart_mapper),
    commerce: CommerceOrderClient = Depends(get_commerce_client),
) -> VerificationPipeline:
    persist = orders_service.persist_order if settings.persistence_configured else None
    return VerificationPipeline(settings, gateway, mapper, commerce, persist=persist)

def close_clients() -> None:
    """Ferme les clients HTTP partagés (appelé à l'arrêt par le lifespan)."""
    global _gateway
    with _clients_lock:
        gateway, _gateway = _gateway, None
    if gateway is not None:
        gateway.close()
    reset_commerce_client()
