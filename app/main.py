from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from app.core.config import settings
from app.core.redis import redis_manager
from app.core.database import init_database, close_database
from app.api.health import router as health_router
from app.api.discounts import router as discounts_router, admin_router as admin_discounts_router
from app.api.checkout import router as checkout_router
from app.api.coupons import admin_router as admin_coupons_router
from app.api.refunds import router as refunds_router, admin_router as admin_refund_policies_router
from app.api.exceptions import (
    validation_exception_handler,
    http_exception_handler,
    database_exception_handler,
    general_exception_handler,
    business_exception_handler,
    BusinessException
)

import logging

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database and cache connections for the app's lifetime"""
    logger.info(f"Starting {settings.app_name}")

    try:
        await init_database()
        logger.info("Database initialised")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    if settings.cache_enabled:
        try:
            await redis_manager.init_redis()
            logger.info("Redis initialised")
        except Exception as e:
            # Pricing falls back to the database when the cache is unreachable
            logger.error(f"Redis unavailable, running without cache: {e}")

    logger.info("Startup complete")

    yield

    logger.info("Shutting down")
    await close_database()
    await redis_manager.close_redis()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Discount, coupon and refund pricing for coaching session bookings",
    debug=settings.debug,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Routers
app.include_router(health_router)
app.include_router(discounts_router)
app.include_router(checkout_router)
app.include_router(refunds_router)
app.include_router(admin_discounts_router)
app.include_router(admin_coupons_router)
app.include_router(admin_refund_policies_router)

# Exception handlers
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(BusinessException, business_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
