"""
Bootstrap OAuth Shopify (une seule fois, action d'administration):
URL d'installation puis échange du code contre un access token.
"""
import logging
import re
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, SecretStr

from checkout_backend.config import CheckoutSettings
from checkout_backend.errors import ConfigurationError, InvalidShopDomainError, OAuthExchangeError

logger = logging.getLogger(__name__)

_SHOP_RE = re.compile(r"^[a-z0-9][a-z0-9\-]*\.myshopify\.com$")


class PlatformToken(BaseModel):
    shop: str
    access_token: SecretStr
    scope: str = ""


# module checkout_backend.oauth.service
def validate_shop(shop: Optional[str]) -> str:
    """Normalise et valide un domaine boutique (<nom>.myshopify.com)."""
    value = (shop or "").strip().lower()
    if not _SHOP_RE.match(value):
        raise InvalidShopDomainError("Missing or invalid shop parameter")
    return value

def build_install_url(shop: str, settings: CheckoutSettings) -> str:
    if not settings.oauth_client_id:
        raise ConfigurationError("SHOPIFY_API_KEY is not configured")
    query = urlencode({
        "client_id": settings.oauth_client_id,
        "scope": settings.oauth_scopes,
        "redirect_uri": f"{settings.base_url}/auth/callback",
    })
    return f"https://{validate_shop(shop)}/admin/oauth/authorize?{query}"

def exchange_code(
    shop: str,
    code: str,
    settings: CheckoutSettings,
    http_client: Optional[httpx.Client] = None,
) -> PlatformToken:
    """
    POST https://<shop>/admin/oauth/access_token {client_id, client_secret, code}.
    Le token obtenu n'est jamais journalisé.
    """
    shop = validate_shop(shop)
    if not code:
        raise InvalidShopDomainError("Missing code parameter")
    if not settings.oauth_client_id or not settings.oauth_client_secret.get_secret_value():
        raise ConfigurationError("Shopify OAuth client credentials are not configured")

    client = http_client or httpx.Client(timeout=settings.request_timeout)
    try:
        resp = client.post(
            f"https://{shop}/admin/oauth/access_token",
            json={
                "client_id": settings.oauth_client_id,
                "client_secret": settings.oauth_client_secret.get_secret_value(),
                "code": code,
            },
        )
    except httpx.HTTPError as e:
        raise OAuthExchangeError(f"OAuth exchange failed for {shop}: {e}") from e
    finally:
        if http_client is None:
            client.close()

    try:
        data = resp.json()
    except ValueError:
        data = {}
    token = data.get("access_token") if isinstance(data, dict) else None
    if not resp.is_success or not token:
        raise OAuthExchangeError(f"OAuth exchange rejected for {shop} (HTTP {resp.status_code})")

    logger.info("oauth.exchange ok shop=%s scope=%s", shop, data.get("scope"))
    return PlatformToken(shop=shop, access_token=SecretStr(token), scope=str(data.get("scope") or ""))
