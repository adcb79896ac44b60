"""
Registre central des routers.
- API v1: payments (intents, verify), orders (cod, store)
- OAuth bootstrap: /auth, /auth/callback
- Health: /api/health
"""
from fastapi import FastAPI
from checkout_backend.payments import views as payments_views
from checkout_backend.orders import views as orders_views
from checkout_backend.oauth import views as oauth_views
from checkout_backend.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    app.include_router(payments_views.router)
    app.include_router(orders_views.router)
    app.include_router(oauth_views.router)
    app.include_router(health_router)
