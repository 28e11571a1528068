# aquanav/main.py
import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .apps.accounts.router_public import router as accounts_public_router
from .apps.accounts.router_admin import router as accounts_admin_router
from .apps.accounts.router_company import router as company_router
from .apps.audit.router import router as audit_router
from .apps.parties.router import router as parties_router
from .apps.employees.router import router as employees_router
from .apps.inventory.router import router as inventory_router
from .apps.projects.router import router as projects_router
from .apps.payroll.router import router as payroll_router
from .apps.sales.router import router as sales_router
from .apps.purchasing.router import router as purchasing_router
from .apps.ledger.router import router as ledger_router
from .apps.assets.router import router as assets_router
from .apps.error_logs.router import router as error_logs_router
from .apps.vessels.router import router as vessels_router
from .apps.dashboard.router import router as dashboard_router


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://localhost:5000",
    ]


app = FastAPI(title="Aquanav ERP API", version="1.0.0")
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "Aquanav ERP backend is running"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


app.include_router(accounts_public_router)
app.include_router(accounts_admin_router)
app.include_router(company_router)
app.include_router(audit_router)
app.include_router(parties_router)
app.include_router(employees_router)
app.include_router(inventory_router)
app.include_router(projects_router)
app.include_router(payroll_router)
app.include_router(sales_router)
app.include_router(purchasing_router)
app.include_router(ledger_router)
app.include_router(assets_router)
app.include_router(error_logs_router)
app.include_router(vessels_router)
app.include_router(dashboard_router)
