import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from db import create_db_and_tables
from jobs.order_expiry_job import order_expiry_scheduler
from middleware.rate_limit import open_redis, close_redis
from middleware.security_headers import SecurityHeadersMiddleware, CSPMiddleware
from processing.processing import processing_router
from utils.config_validator import validate_or_exit
from utils.error_handler import register_exception_handlers
from web.admin_router import admin_router
from web.auth_router import auth_router, account_router
from web.cart_router import cart_router
from web.catalog_router import catalog_router
from web.checkout_router import checkout_router
from web.order_router import order_router
from web.payment_router import payment_router

# Background tasks
expiry_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    global expiry_task

    # Startup
    validate_or_exit(config)
    await create_db_and_tables()
    await open_redis()

    if config.ORDER_EXPIRY_ENABLED:
        expiry_task = asyncio.create_task(order_expiry_scheduler())
        logging.info("[Startup] Order expiry scheduler started")
    else:
        logging.info("[Startup] Order expiry scheduler disabled")

    yield

    # Shutdown
    logging.warning('Shutting down..')

    if expiry_task is not None:
        expiry_task.cancel()
        try:
            await expiry_task
        except asyncio.CancelledError:
            logging.info("[Shutdown] Order expiry scheduler stopped")
        expiry_task = None

    await close_redis()
    logging.warning('Bye!')


app = FastAPI(title="Maikanwa Store API", lifespan=lifespan)

if config.SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware)
    logging.info("[Startup] Security headers middleware enabled")

if config.CSP_ENABLED:
    app.add_middleware(CSPMiddleware)
    logging.info("[Startup] Content Security Policy middleware enabled")

if config.CORS_ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        # Session and guest-cart cookies travel cross-origin from the storefront
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
    )
    logging.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
else:
    logging.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

register_exception_handlers(app)

app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(payment_router)
app.include_router(processing_router)
app.include_router(order_router)
app.include_router(admin_router)
app.include_router(auth_router)
app.include_router(account_router)


# Health check endpoint (for Docker container monitoring)
@app.get("/health")
async def health_check():
    return {"status": "healthy"}
