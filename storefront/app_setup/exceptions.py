"""
Gestionnaires d'exceptions utilisés par la factory.
- Erreurs métier (storefront.errors) -> JSON {"detail", "code", ...} avec le statut HTTP associé.
- Corps de requête invalide -> 400 (ValidationError), avant toute lecture/écriture.
- HTTPException -> JSON FastAPI standard.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.errors import (
    GatewayUnreachable,
    InsufficientStock,
    NotFound,
    PartialOrderFailure,
    StoreUnavailable,
    StorefrontError,
    Unauthorized,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = [
    (ValidationError, 400),
    (InsufficientStock, 409),
    (PartialOrderFailure, 500),
    (Unauthorized, 403),
    (StoreUnavailable, 500),
    (GatewayUnreachable, 500),
]

def status_for(exc: StorefrontError) -> int:
    if isinstance(exc, NotFound):
        # Absence de session -> 401, ressource absente pour cet utilisateur -> 404
        return 401 if exc.code == "no_session" else 404
    for cls, status in STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 400

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers:
    - StorefrontError: message lisible + code stable pour le front.
    - RequestValidationError: formulaire invalide -> 400.
    - HTTPException: JSON standard.
    """
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, status, exc)
        return JSONResponse(status_code=status, content=jsonable_encoder({"detail": exc.message, "code": exc.code, **exc.extra()}))

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Formulaire invalide", "code": ValidationError.code, "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
