"""SEO — sitemap and robots documents backed by the live catalog.

Invariants:
    - Sitemap lists static pages always; products and categories only when the
      database answers (a DB failure degrades to the static list)
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.core import seo
from stylesage.core.stock import total_stock
from stylesage.models.category import Category
from stylesage.models.product import Product
from stylesage.services.catalog import CatalogService

logger = logging.getLogger(__name__)


class SeoService:
    def __init__(self, db: AsyncSession, base_url: str):
        self.db = db
        self.base_url = base_url.rstrip("/")

    async def sitemap(self, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        entries = seo.static_entries(self.base_url, now)
        try:
            products = (await self.db.execute(
                select(Product.slug, Product.updated_at, Product.is_featured, Product.tags)
                .where(Product.is_active.is_(True)),
            )).all()
            categories = (await self.db.execute(
                select(Category.slug, Category.updated_at)
                .where(Category.is_active.is_(True)),
            )).all()
        except SQLAlchemyError as e:
            logger.error(f"Sitemap falling back to static pages: {e}")
            return seo.render_sitemap(entries)

        entries.extend(seo.dynamic_entries(
            self.base_url,
            now,
            [row._asdict() for row in products],
            [row._asdict() for row in categories],
        ))
        return seo.render_sitemap(entries)

    async def structured_data(self, slug: str, today: date | None = None) -> dict:
        product = await CatalogService(self.db).get_product(slug)
        in_stock = total_stock(product.stock) > 0
        return seo.product_structured_data(
            {
                "name": product.name,
                "slug": product.slug,
                "description": product.description,
                "price": float(product.price),
                "original_price": (
                    float(product.original_price) if product.original_price else None
                ),
                "images": list(product.images or []),
                "category": product.category,
                "rating": product.rating,
                "reviews": product.reviews,
                "sizes": list(product.sizes or []),
                "in_stock": in_stock,
            },
            self.base_url,
            today or date.today(),
        )
