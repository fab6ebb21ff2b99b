from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.auth_router import router as auth_router
from app.cache.client import close_redis, connect_redis, refresh_status
from app.cache.router import router as cache_router
from app.config import settings
from app.customers.router import router as customers_router
from app.database import close_database, init_database
from app.exception_handlers import register_exception_handlers
from app.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_database()
    await connect_redis()
    yield
    await close_redis()
    await close_database()


app = FastAPI(
    title="Commerce Admin",
    description="Commerce administration backend: customer imports and cache management",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(customers_router, prefix="/api/v1/customers", tags=["customers"])
app.include_router(cache_router, prefix="/api/v1/cache", tags=["cache"])


@app.get("/api/v1/health")
async def health():
    from app.database import check_health

    await check_health()
    cache_status = await refresh_status()
    return {"status": "healthy", "cache": cache_status}
