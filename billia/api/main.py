"""
FastAPI app assembly: middleware, error mapping and router wiring.
"""
import logging
import os
from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from billia.errors import BilliaError
from billia.utils.runtime import dev_mode_requested
from billia.api.admin import router as admin_router
from billia.api.ai import router as ai_router
from billia.api.audits import router as audits_router
from billia.api.bills import router as bills_router
from billia.api.clients import router as clients_router
from billia.api.expenses import router as expenses_router
from billia.api.export import router as export_router
from billia.api.finance import router as finance_router
from billia.api.invoices import router as invoices_router
from billia.api.payments import router as payments_router, statuses_router as payment_statuses_router
from billia.api.quotes import router as quotes_router, public_router as public_quotes_router
from billia.api.reconcile import router as reconcile_router
from billia.api.recurring import router as recurring_router
from billia.api.sales import router as sales_router
from billia.api.settings import router as settings_router
from billia.api.tenants import router as tenants_router, groups_router as tenant_groups_router

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="Billia Invoicing Service",
    description="API for quotes, invoices, recurring billing, expenses and rent reconciliation.",
    version="1.0.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

_default_origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:8000",
]
origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()] or _default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Paths that accept writes without a signed-in user; routes guard themselves
_GUEST_WRITE_PREFIXES = ("/public/", "/recurring/execute")


# Middleware: enforce read-only for unauthenticated requests
@app.middleware("http")
async def enforce_readonly_for_guests(request: Request, call_next):
    if request.method in ("POST", "PUT", "PATCH", "DELETE") and not dev_mode_requested():
        path = request.url.path or ""
        if path.startswith(_GUEST_WRITE_PREFIXES):
            return await call_next(request)
        h = request.headers
        user_present = (
            h.get("x-auth-request-user")
            or h.get("x-auth-request-email")
            or h.get("x-forwarded-user")
            or h.get("x-forwarded-email")
        )
        if not user_present and not h.get("authorization"):
            return JSONResponse(
                {"detail": "Guest mode is read-only. Sign in to perform changes."},
                status_code=status.HTTP_401_UNAUTHORIZED,
            )
    return await call_next(request)


@app.exception_handler(BilliaError)
async def handle_domain_error(request: Request, exc: BilliaError):
    if exc.status_code >= 500:
        logger.warning("domain_error: path=%s status=%s message=%s", request.url.path, exc.status_code, exc.message)
    body = {"detail": exc.message}
    if exc.detail:
        body["context"] = exc.detail
    return JSONResponse(body, status_code=exc.status_code)


app.include_router(settings_router)
app.include_router(admin_router)
app.include_router(clients_router)
app.include_router(quotes_router)
app.include_router(public_quotes_router)
app.include_router(invoices_router)
app.include_router(recurring_router)
app.include_router(tenant_groups_router)
app.include_router(tenants_router)
app.include_router(payments_router)
app.include_router(payment_statuses_router)
app.include_router(reconcile_router)
app.include_router(expenses_router)
app.include_router(bills_router)
app.include_router(finance_router)
app.include_router(sales_router)
app.include_router(ai_router)
app.include_router(export_router)
app.include_router(audits_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "billia"}
