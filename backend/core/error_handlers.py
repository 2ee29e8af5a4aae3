from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from core.exceptions import (
    AuditImmutableError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidStateError,
    NotFoundError,
    StockEngineError,
    StorageError,
)
from core.logging_config import get_logger

logger = get_logger("http")

# Checked in order; first isinstance match wins
STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (AuditImmutableError, status.HTTP_409_CONFLICT),
    (InvalidQuantityError, status.HTTP_400_BAD_REQUEST),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: StockEngineError) -> int:
    for cls, code in STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(StockEngineError)
    async def stock_engine_exception_handler(request: Request, exc: StockEngineError):
        code = status_for(exc)
        if code >= 500:
            logger.error("request_failed", extra={"path": request.url.path, "code": exc.code})
        return JSONResponse(content=exc.to_dict(), status_code=code)
