from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config.config import settings
from app.database.database import DocumentStore
from app.routes import (
    audit_log_routes,
    complaint_routes,
    customer_routes,
    delivery_routes,
    order_routes,
    report_routes,
    vendor_routes,
    verification_routes,
)
from app.utils.cron_job import sync_all_delivery_earnings
from app.utils.exception_handlers import setup_exception_handlers
from app.utils.limiter import limiter
from app.utils.logger_config import configure_production_logging, setup_logger

if settings.ENVIRONMENT == "production":
    configure_production_logging()

logger = setup_logger()


def build_scheduler(store: DocumentStore) -> AsyncIOScheduler | None:
    if not settings.SYNC_INTERVAL_HOURS or settings.TEST:
        return None
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        sync_all_delivery_earnings,
        trigger=IntervalTrigger(hours=settings.SYNC_INTERVAL_HOURS),
        args=[store],
        id="sync_delivery_earnings",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


@asynccontextmanager
async def lifespan(application: FastAPI):
    logger.info("Initializing application...")
    store = DocumentStore.from_settings(settings)
    application.state.store = store

    scheduler = build_scheduler(store) if store else None
    if scheduler:
        scheduler.start()
        logger.info(f"Scheduled jobs: {scheduler.get_jobs()}")

    try:
        yield
    finally:
        logger.info("Cleaning up resources...")
        if scheduler:
            scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown complete")
        if store:
            store.close()
        logger.info("Cleanup complete")


if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        send_default_pii=False,
        traces_sample_rate=1.0,
    )


app = FastAPI(
    title=settings.APP_NAME,
    lifespan=lifespan,
    debug=settings.DEBUG,
    summary="Admin API for the Delito food delivery platform.",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
setup_exception_handlers(app)

logfire.configure(
    service_name="delito-admin",
    token=settings.LOGFIRE_TOKEN,
    send_to_logfire="if-token-present",
)
logfire.instrument_fastapi(app=app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/api/health", tags=["Health Status"])
def api_health_check() -> dict:
    """Check the status of the API"""
    return {"status": "OK", "message": "API up and running"}


app.include_router(vendor_routes.router)
app.include_router(delivery_routes.router)
app.include_router(customer_routes.router)
app.include_router(order_routes.router)
app.include_router(complaint_routes.router)
app.include_router(report_routes.router)
app.include_router(verification_routes.router)
app.include_router(audit_log_routes.router)
