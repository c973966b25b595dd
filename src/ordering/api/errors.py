"""HTTP mapping for ordering business errors.

Protean's FastAPI integration already turns ``ValidationError`` into a 400
and ``ObjectNotFoundError`` into a 404. Ordering errors carry their own
status code and a machine-readable ``code``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from ordering.errors import OrderingError

logger = structlog.get_logger(__name__)


async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("Upstream failure", path=request.url.path, code=exc.code, error=exc.messages)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.messages, "code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    register_protean_handlers(app)
    app.add_exception_handler(OrderingError, ordering_error_handler)
