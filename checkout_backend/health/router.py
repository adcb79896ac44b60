import time

from fastapi import APIRouter, Depends, Request

from checkout_backend.config import CheckoutSettings
from checkout_backend.dependencies import get_settings
from checkout_backend.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/api/health", tags=["Health"])

@router.get("")
def health_root(request: Request, settings: CheckoutSettings = Depends(get_settings)):
    return {
        "ok": True,
        "ts": int(time.time() * 1000),
        "gateway_configured": settings.gateway_configured,
        "platform_configured": settings.platform_configured,
        "rate_limit": rate_limit_health_info(request),
    }
