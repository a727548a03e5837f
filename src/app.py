"""Backoffice FastAPI application.

Web server that processes backoffice commands synchronously via HTTP.
Every request runs inside the backoffice domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from backoffice.domain import backoffice
from backoffice.utils.logging import add_context, clear_context, get_logger

backoffice.init()

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Backoffice API",
    description="Order fulfillment, inventory reconciliation and bonus accounting",
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
    """Push the backoffice domain context and bind a request id to the logs."""
    if request.url.path in ("/health", "/docs", "/openapi.json"):
        return await call_next(request)

    add_context(request_id=request.headers.get("X-Request-ID", uuid4().hex), path=request.url.path)
    try:
        with backoffice.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


register_exception_handlers(app)


@app.exception_handler(ExpectedVersionError)
async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.warning("Concurrent update rejected", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=409, content={"error": str(exc)})


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from backoffice.api import account_router, order_router, product_router, settings_router  # noqa: E402

app.include_router(order_router)
app.include_router(product_router)
app.include_router(account_router)
app.include_router(settings_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": backoffice.name})
