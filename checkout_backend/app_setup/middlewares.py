"""
Middlewares transverses de l’application.
- register_basic_middlewares: CORS limité aux origines du storefront (FRONTEND_ORIGINS).
- register_security_middleware: en-têtes de sécurité (équivalent helmet) sur toutes les réponses.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from checkout_backend.config import load_settings

def register_basic_middlewares(app: FastAPI) -> None:
    """
    CORSMiddleware: autorise les origines définies, méthodes GET/POST/OPTIONS.
    Les appels serveur-à-serveur (sans Origin) ne sont pas concernés par CORS.
    """
    origins = list(load_settings().allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
        if request.url.path.startswith("/api/"):
            response.headers.setdefault("Cache-Control", "no-store")
        return response
