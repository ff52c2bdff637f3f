import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from gracestreak.core.config import settings, validate_config
from gracestreak.core.database import check_connection, dispose_engine
from gracestreak.core.logging import configure_logging
from gracestreak.core.middleware.request_id import RequestIdMiddleware
from gracestreak.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from gracestreak.api import grace_days

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("gracestreak")
    logger.info("Starting grace-day service...")
    app.state.startup_time = time.time()
    try:
        yield
    finally:
        logging.getLogger("gracestreak").info("Stopping grace-day service...")
        dispose_engine()


app = FastAPI(title="Grace Streak", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

# Error handlers
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(grace_days.router, tags=["grace-days"])


@app.get("/healthz")
def healthz():
    logging.getLogger("gracestreak").info("healthz")
    payload = {"status": "ok", "store": settings.STATE_STORE_BACKEND}
    if settings.STATE_STORE_BACKEND == "database":
        payload["db"] = {"connected": check_connection()}
    return payload
