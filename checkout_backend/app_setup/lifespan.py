"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Vérifie la présence des identifiants Razorpay/Shopify (avertissement seulement).
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Ferme les clients HTTP partagés à l’arrêt.
Variables d’environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement le rate limiting
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l’init échoue
"""
import os
import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from checkout_backend.config import load_settings
from checkout_backend.dependencies import close_clients

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except ImportError:
    FakeRedis = None

logger = logging.getLogger("uvicorn.error")

def warn_missing_credentials() -> None:
    settings = load_settings()
    missing = []
    if not settings.gateway_configured:
        missing.append("RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET")
    if not settings.store_domain:
        missing.append("SHOPIFY_STORE")
    if not settings.access_token.get_secret_value():
        missing.append("SHOPIFY_ACCESS_TOKEN")
    if missing:
        logger.warning("Required env vars are missing: %s", ", ".join(missing))

async def init_rate_limiter(app: FastAPI) -> None:
    """
    Configure le rate limiting et gère les fallbacks.
    - En cas d’échec de Redis et sans fallback, le rate limiting est désactivé proprement.
    """
    try:
        if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
            app.state.rate_limit_enabled = False
            logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
            return

        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            if not FakeRedis:
                raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = redis.from_url(redis_url, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")
        else:
            app.state.rate_limit_enabled = False
            logger.warning(f"Rate limiting disabled due to init error: {e}")

@asynccontextmanager
async def lifespan(app: FastAPI):
    warn_missing_credentials()
    await init_rate_limiter(app)
    try:
        yield
    finally:
        close_clients()
