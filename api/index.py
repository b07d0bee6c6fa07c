"""
Shopping Service - Main FastAPI Application

Single entry point for cart, order and cron routes.
"""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shopping.logging import get_logger
from shopping.routers import cart_router, cron_router, orders_router
from shopping.routers.deps import build_services

logger = get_logger(__name__)

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("ALLOWED_ORIGINS", "*").split(",")
    if origin.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build shared services on startup, close their clients on shutdown."""
    if getattr(app.state, "services", None) is None:
        app.state.services = await build_services()
        logger.info("Shopping services initialized")
    yield
    await app.state.services.aclose()


app = FastAPI(
    title="Shopping Service",
    description="Per-customer carts, checkout and order events",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    # Credentialed CORS cannot be combined with a wildcard origin
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
)

app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(cron_router)


# ==================== HEALTH CHECK ====================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "shopping"}
