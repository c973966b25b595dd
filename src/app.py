"""HomeChef FastAPI application.

Web server for the ordering domain: chefs and menus, carts, checkout,
order transitions and tracking. Commands are processed synchronously per
request inside the ordering domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - default      → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.domain import ordering
from ordering.utils.logging import bind_order_context, clear_order_context, configure_logging

configure_logging()
ordering.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_DOMAIN_PREFIXES = (
    "/chefs",
    "/dishes",
    "/carts",
    "/orders",
    "/buyers",
    "/sellers",
    "/maintenance",
    "/payments",
)


def _in_domain(path: str) -> bool:
    return path.startswith(_DOMAIN_PREFIXES)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="HomeChef API",
    description="Home-cooked food marketplace: carts, checkout and order tracking",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context and tag log lines with the caller."""
    if not _in_domain(request.url.path):
        # Health check, docs, etc.
        return await call_next(request)

    bind_order_context(path=request.url.path, user_id=request.headers.get("x-user-id"))
    try:
        with ordering.domain_context():
            response = await call_next(request)
    finally:
        clear_order_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import register_exception_handlers, routers  # noqa: E402
from payments.api import payment_router  # noqa: E402

for router in routers:
    app.include_router(router)
app.include_router(payment_router)

register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "ordering": {"name": ordering.name},
            },
        }
    )
