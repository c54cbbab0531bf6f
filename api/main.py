"""
One Drop Threads API - Main Application.

FastAPI application serving the catalog, checkout and the Stripe webhook that
finalizes purchases.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.settings import get_settings

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="One Drop Threads API",
    description="Storefront API for one-of-a-kind printed apparel",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# TODO: Restrict origins to PUBLIC_BASE_URL once the storefront domain is final
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "one-drop-threads-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "One Drop Threads API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import admin, checkout, products, webhooks

app.include_router(products.router, prefix="/api/v1", tags=["Products"])
app.include_router(checkout.router, prefix="/api/v1", tags=["Checkout"])
app.include_router(webhooks.router, prefix="/api/v1", tags=["Webhooks"])
app.include_router(admin.router, prefix="/api/v1", tags=["Admin"])
