"""
Gestionnaires d'exceptions de l'API.

Traduit les refus du contrôle d'accès en réponses HTTP :
- Unauthenticated → 401
- WrongTenant → 403
- InsufficientRole → 403

Le corps contient `detail` (message) et `code` (nature du refus).
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.security.access import AccessDenied, DenialKind

logger = logging.getLogger(__name__)


DENIAL_STATUS_CODES = {
    DenialKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    DenialKind.WRONG_TENANT: status.HTTP_403_FORBIDDEN,
    DenialKind.INSUFFICIENT_ROLE: status.HTTP_403_FORBIDDEN,
}


async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    status_code = DENIAL_STATUS_CODES[exc.kind]
    logger.warning(f"🚫 Accès refusé ({exc.kind.value}) {request.method} {request.url.path} : {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.kind.value},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Enregistre les gestionnaires d'exceptions sur l'application."""
    app.add_exception_handler(AccessDenied, access_denied_handler)
