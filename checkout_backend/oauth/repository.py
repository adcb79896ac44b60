"""
Store de secrets pour le token Admin API (table 'platform_tokens', service-role).
"""
import logging
from typing import Optional

import checkout_backend.infra.supabase_client as supabase_client
from checkout_backend.utils.security import mask_secret
from .service import PlatformToken

logger = logging.getLogger(__name__)

# module checkout_backend.oauth.repository
def save_platform_token(token: PlatformToken) -> bool:
    """Upsert du token par boutique; retourne False (et journalise sans le secret) en cas d'erreur."""
    try:
        (
            supabase_client.get_service_supabase()
            .table("platform_tokens")
            .upsert(
                {
                    "shop": token.shop,
                    "access_token": token.access_token.get_secret_value(),
                    "scope": token.scope,
                },
                on_conflict="shop",
            )
            .execute()
        )
        logger.info("oauth.repository token stored shop=%s hint=%s", token.shop, mask_secret(token.access_token.get_secret_value()))
        return True
    except Exception:
        logger.exception("oauth.repository.save_platform_token failed shop=%s", token.shop)
        return False

def get_platform_token(shop: str) -> Optional[str]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("platform_tokens")
            .select("access_token")
            .eq("shop", shop)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0].get("access_token") if rows else None
    except Exception:
        logger.exception("oauth.repository.get_platform_token failed shop=%s", shop)
        return None
