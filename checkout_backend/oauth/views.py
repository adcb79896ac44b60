import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from checkout_backend.config import CheckoutSettings
from checkout_backend.dependencies import get_settings, reset_commerce_client
from . import repository
from . import service as oauth_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["OAuth bootstrap"])

# module checkout_backend.oauth.views
@router.get("", include_in_schema=False)
def install(shop: Optional[str] = None, settings: CheckoutSettings = Depends(get_settings)):
    """Redirige l'administrateur vers l'écran d'autorisation Shopify de la boutique."""
    url = oauth_service.build_install_url(shop, settings)
    return RedirectResponse(url=url, status_code=302)

@router.get("/callback", include_in_schema=False)
def callback(
    shop: Optional[str] = None,
    code: Optional[str] = None,
    settings: CheckoutSettings = Depends(get_settings),
):
    """
    Échange le code contre un access token et le range dans le store de secrets.
    - Le token n'apparaît ni dans la réponse ni dans les logs
    - 502 si l'échange échoue, 500 si le stockage échoue
    """
    token = oauth_service.exchange_code(shop, code, settings)
    if not repository.save_platform_token(token):
        return JSONResponse(
            status_code=500,
            content={"installed": False, "shop": token.shop, "error": "token_store_failed"},
        )
    # Nouveau token: le client Shopify partagé sera reconstruit à la prochaine commande
    reset_commerce_client()
    return {"installed": True, "shop": token.shop, "scope": token.scope}
