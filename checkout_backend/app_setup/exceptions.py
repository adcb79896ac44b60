"""
Gestionnaires d’exceptions.
- CheckoutError: statut HTTP et code portés par l’erreur, corps {"success": false, "error", "detail"}.
- Erreurs de validation (requête ou panier): 400 avec le détail pydantic.
- HTTPException: corps FastAPI standard {"detail": ...}.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from checkout_backend.errors import CheckoutError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError):
        if exc.http_status >= 500:
            logger.error("checkout error %s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(status_code=exc.http_status, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "validation_error", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(PydanticValidationError)
    async def payload_validation_handler(request: Request, exc: PydanticValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "validation_error",
                "detail": jsonable_encoder(exc.errors(include_url=False, include_context=False)),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)
