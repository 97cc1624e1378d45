# marketplace/core/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base class for business-rule and collaborator failures."""

    status_code = 400
    code = "marketplace_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidTransition(MarketplaceError):
    code = "invalid_transition"


class Forbidden(MarketplaceError):
    status_code = 403
    code = "forbidden"


class InvalidState(MarketplaceError):
    code = "invalid_state"


class AlreadyRated(MarketplaceError):
    code = "already_rated"


class NotFound(MarketplaceError):
    status_code = 404
    code = "not_found"


class StoreUnavailable(MarketplaceError):
    status_code = 503
    code = "store_unavailable"


class NotAuthenticated(MarketplaceError):
    status_code = 401
    code = "not_authenticated"


async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if exc.status_code >= 500:
        logger.error(
            "Request failed: %s", exc.message, extra={"request_path": request.url.path}
        )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
