import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from salesscope.core.cache import close_cache, get_cache, init_cache
from salesscope.core.config import get_settings
from salesscope.core.database import engine, init_models
from salesscope.core.exceptions import register_exception_handlers
from salesscope.core.logging_config import configure_logging

# ========== Datasets ==========
from salesscope.modules.datasets.routes.dataset_routes import router as dataset_router

# ========== Analytics ==========
from salesscope.modules.analytics.routes.analytics_routes import router as analytics_router

logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(
    title="SalesScope - Sales Analytics API",
    description="""
    Multi-tenant sales analytics: upload CSV exports of sales transactions,
    then explore revenue KPIs, time series and category/product rankings.
    """,
    version="1.0.0",
    debug=settings.debug,
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dataset_router, prefix="/api")
app.include_router(analytics_router, prefix="/api")


@app.get("/health", tags=["Health"])
async def health_check(cache=Depends(get_cache)):
    return {
        "status": "ok",
        "environment": settings.environment,
        "cache": cache.get_stats(),
    }


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Initialize logging, tables and the cache backend"""
    configure_logging()
    await init_models()
    await init_cache(
        settings.redis_url,
        default_ttl=settings.analytics_cache_ttl_seconds,
        key_prefix=settings.cache_key_prefix,
        max_entries=settings.memory_cache_max_entries,
        failure_threshold=settings.redis_circuit_failure_threshold,
        recovery_timeout=settings.redis_circuit_recovery_seconds,
    )
    logger.info(f"SalesScope API started ({settings.environment})")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on application shutdown"""
    await close_cache()
    await engine.dispose()
    logger.info("SalesScope API stopped")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
