"""
Inventory Optimizer - Backend API
Read-only analytics over sales, prices and inventory
"""
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inventory_optimizer.api import analysis, customers, dashboard, export, products
from inventory_optimizer.core.config import settings
from inventory_optimizer.core.exceptions import (
    AnalyticsError,
    InputValidationError,
    NotFoundError,
    RetrievalError,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Status code per error kind; anything else is a 500
STATUS_BY_ERROR = {
    InputValidationError: 400,
    NotFoundError: 404,
    RetrievalError: 502,
}

ALLOWED_ORIGINS = settings.get_allowed_origins()

# FastAPI application
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError):
    """Single descriptive body for every analytics failure"""
    status_code = next(
        (code for error_type, code in STATUS_BY_ERROR.items() if isinstance(exc, error_type)),
        500
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Include API routers
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
app.include_router(export.router, prefix="/api/export", tags=["Export"])
app.include_router(analysis.router, prefix="/api/analysis", tags=["Analysis"])


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": settings.API_TITLE,
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring; does not touch the store"""
    start_time = time.time()
    return {
        "status": "healthy",
        "service": "inventory-optimizer-api",
        "version": settings.API_VERSION,
        "store": {
            "configured": bool(settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY),
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("inventory_optimizer.main:app", host="0.0.0.0", port=8000)
