"""StyleSage API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map StorefrontError → structured JSON responses
    - CORS configured from settings (not hardcoded); credentials allowed for the auth cookie
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Admin routers included before their public counterparts so literal paths
      (/api/products/admin, /api/products/seed) win over /{slug}
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stylesage.api.error_handlers import register_error_handlers
from stylesage.api.routes import (
    admin_orders, admin_products, auth, cart, categories, checkout, health,
    orders, products, seo,
)
from stylesage.config import get_settings
from stylesage.db.session import create_schema
from stylesage.infrastructure.database import init_db
from stylesage.infrastructure.observability import setup_logging
from stylesage.services.catalog import CatalogService
from stylesage.services.users import UserService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await create_schema(manager.engine)
        async with manager.session() as db:
            await UserService(db, settings).ensure_default_admin()
            await CatalogService(db).bootstrap(with_samples=settings.seed_sample_data)
    logger.info("StyleSage API started")
    yield
    await manager.dispose()
    logger.info("StyleSage API shutting down")


app = FastAPI(
    title="StyleSage API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(admin_products.router)
app.include_router(products.router)
app.include_router(categories.router)
app.include_router(cart.router)
app.include_router(checkout.router)
app.include_router(orders.router)
app.include_router(admin_orders.router)
app.include_router(seo.router)
