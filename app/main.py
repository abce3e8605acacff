import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import auth, health, jobs, orders, payments, plans, subscriptions
from app.core.config import FRONTEND_URL, LOG_LEVEL, RUN_MIGRATIONS
from app.core.exceptions import MarketplaceError
from app.core.logging_config import setup_logging
from app.schemas.billing import BillingErrorResponse

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)


# ============================================
# FASTAPI APP INIT
# ============================================

app = FastAPI(title="Job Marketplace API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        FRONTEND_URL,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    body = BillingErrorResponse(error=exc.code, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.on_event("startup")
def prepare_database():
    if RUN_MIGRATIONS:
        from app.db.migrate import run_migrations
        run_migrations()
    else:
        # Local development: create missing tables without Alembic
        from app.db.init_db import init_db
        init_db()


# ============================================
# REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(plans.router)
app.include_router(orders.router)
app.include_router(subscriptions.router)
app.include_router(jobs.router)
app.include_router(payments.router)
app.include_router(health.router)


@app.get("/")
def root():
    return {"status": "Job Marketplace API running"}
