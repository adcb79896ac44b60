# checkout_backend.config
from functools import lru_cache
from pathlib import Path
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, SecretStr

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du backend checkout.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Razorpay, Shopify, Supabase), CORS, timeouts
- Construit un objet CheckoutSettings immuable injecté dans les composants métier:
  aucun composant ne relit l'environnement pendant une requête.
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _split_csv(v: str) -> List[str]:
    return [p.strip() for p in (v or "").split(",") if p.strip()]

def _float_env(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name)) or default)
    except ValueError:
        return default

# Razorpay: identifiants API (Basic auth) et base REST
RAZORPAY_KEY_ID = _clean_env(os.getenv("RAZORPAY_KEY_ID") or "")
RAZORPAY_KEY_SECRET = _clean_env(os.getenv("RAZORPAY_KEY_SECRET") or "")
RAZORPAY_API_BASE = _clean_env(os.getenv("RAZORPAY_API_BASE") or "https://api.razorpay.com/v1").rstrip("/")

# Shopify: domaine de la boutique (sans schéma) et token Admin API
SHOPIFY_STORE = _clean_env(os.getenv("SHOPIFY_STORE") or "")
if SHOPIFY_STORE.startswith("https://") or SHOPIFY_STORE.startswith("http://"):
    SHOPIFY_STORE = SHOPIFY_STORE.split("://", 1)[1]
SHOPIFY_STORE = SHOPIFY_STORE.rstrip("/")
SHOPIFY_ACCESS_TOKEN = _clean_env(os.getenv("SHOPIFY_ACCESS_TOKEN") or "")
SHOPIFY_API_VERSION = _clean_env(os.getenv("SHOPIFY_API_VERSION") or "2025-01")

# OAuth Shopify (bootstrap uniquement)
SHOPIFY_API_KEY = _clean_env(os.getenv("SHOPIFY_API_KEY") or "")
SHOPIFY_API_SECRET = _clean_env(os.getenv("SHOPIFY_API_SECRET") or "")
SHOPIFY_SCOPES = _clean_env(os.getenv("SHOPIFY_SCOPES") or "read_products,write_orders,read_discounts")

# Supabase (store de persistance optionnel)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
SUPABASE_URL = SUPABASE_URL.rstrip("/")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

# CORS: liste d'origines autorisées ("*" par défaut)
CORS_ORIGINS = _split_csv(os.getenv("FRONTEND_ORIGINS", "*")) or ["*"]

# Métier
HOME_COUNTRY = _clean_env(os.getenv("HOME_COUNTRY") or "India")
CURRENCY = _clean_env(os.getenv("CURRENCY") or "INR").upper()
PAYMENT_GATEWAY_NAME = _clean_env(os.getenv("PAYMENT_GATEWAY_NAME") or "Razorpay")
ORDER_TAGS = _split_csv(os.getenv("ORDER_TAGS", "SSCheckout"))
# "numeric": ids REST Shopify (entiers, "123" ou GID); toute autre référence ("V1") est écartée du panier.
# "opaque": références non vides transmises telles quelles (catalogues à identifiants non numériques).
VARIANT_ID_FORMAT = _clean_env(os.getenv("VARIANT_ID_FORMAT") or "numeric").lower()
REQUEST_TIMEOUT_SECONDS = _float_env("REQUEST_TIMEOUT_SECONDS", 12.0)

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000").rstrip("/")


class CheckoutSettings(BaseModel):
    """
    Configuration immuable, construite une seule fois au démarrage du process
    puis passée par référence aux constructeurs des clients et du pipeline.
    """
    model_config = ConfigDict(frozen=True)

    gateway_key_id: str = ""
    gateway_key_secret: SecretStr = SecretStr("")
    gateway_api_base: str = "https://api.razorpay.com/v1"
    gateway_name: str = "Razorpay"

    store_domain: str = ""
    access_token: SecretStr = SecretStr("")
    api_version: str = "2025-01"

    oauth_client_id: str = ""
    oauth_client_secret: SecretStr = SecretStr("")
    oauth_scopes: str = "read_products,write_orders,read_discounts"

    supabase_url: str = ""
    supabase_service_key: SecretStr = SecretStr("")

    allowed_origins: tuple = ("*",)
    home_country: str = "India"
    currency: str = "INR"
    order_tags: tuple = ("SSCheckout",)
    variant_id_format: str = "numeric"
    request_timeout: float = 12.0
    base_url: str = "http://localhost:8000"

    @property
    def gateway_configured(self) -> bool:
        return bool(self.gateway_key_id and self.gateway_key_secret.get_secret_value())

    @property
    def platform_configured(self) -> bool:
        return bool(self.store_domain and self.access_token.get_secret_value())

    @property
    def persistence_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key.get_secret_value())


@lru_cache(maxsize=1)
def load_settings() -> CheckoutSettings:
    """Construit CheckoutSettings à partir des constantes du module (une fois par process)."""
    return CheckoutSettings(
        gateway_key_id=RAZORPAY_KEY_ID,
        gateway_key_secret=SecretStr(RAZORPAY_KEY_SECRET),
        gateway_api_base=RAZORPAY_API_BASE,
        gateway_name=PAYMENT_GATEWAY_NAME,
        store_domain=SHOPIFY_STORE,
        access_token=SecretStr(SHOPIFY_ACCESS_TOKEN),
        api_version=SHOPIFY_API_VERSION,
        oauth_client_id=SHOPIFY_API_KEY,
        oauth_client_secret=SecretStr(SHOPIFY_API_SECRET),
        oauth_scopes=SHOPIFY_SCOPES,
        supabase_url=SUPABASE_URL,
        supabase_service_key=SecretStr(SUPABASE_SERVICE_KEY),
        allowed_origins=tuple(CORS_ORIGINS),
        home_country=HOME_COUNTRY,
        currency=CURRENCY,
        order_tags=tuple(ORDER_TAGS),
        variant_id_format=VARIANT_ID_FORMAT,
        request_timeout=REQUEST_TIMEOUT_SECONDS,
        base_url=BASE_URL,
    )
