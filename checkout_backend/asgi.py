"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn/uvicorn-workers) importe `checkout_backend.asgi:app`.
- Toute la configuration FastAPI (routes, middlewares, handlers) est centralisée dans
  checkout_backend.app_setup.factory; ce fichier ne fait qu’exposer l’instance `app`.
"""

from checkout_backend.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "checkout_backend.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8787")),
        reload=True,
    )
