"""Catalog — product listing and admin maintenance, categories, and store bootstrap.

Invariants:
    - Public reads only see is_active products; admin listings see all
    - Slug derived from name via core/slugs.py; duplicates rejected with 400
    - Stock input normalized via core/stock.py before it becomes stock_levels rows
    - Image host failures on delete are logged, never fatal
    - Seeding refuses to run while any product exists

Design Decisions:
    - Image uploads happen before the DB write: a failed upload aborts without
      leaving a half-created product
    - Listing count and page come from the same filtered query
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.core.errors import (
    ImageHostError, ResourceNotFoundError, ValidationFailedError,
)
from stylesage.core.sample_catalog import DEFAULT_CATEGORIES, SAMPLE_PRODUCTS
from stylesage.core.slugs import create_slug, public_id_from_url
from stylesage.core.stock import normalize_stock
from stylesage.models.category import Category
from stylesage.models.product import Product
from stylesage.schemas.product import ProductInput
from stylesage.services.inventory import InventoryService

logger = logging.getLogger(__name__)

SEED_CONFIRMATION = "SEED_SAMPLE_DATA"
CLEAR_CONFIRMATION = "CLEAR_ALL_PRODUCTS"
DUPLICATE_NAME = "A product with this name already exists"


@dataclass(frozen=True)
class ImageUpload:
    content: bytes
    filename: str | None = None


def _parse_uuid(value: str, resource: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ResourceNotFoundError(resource, str(value))


class CatalogService:
    """Products and categories."""

    def __init__(self, db: AsyncSession, image_host=None):
        self.db = db
        self.image_host = image_host
        self.inventory = InventoryService(db)

    # ─── Products: reads ──────────────────────────────────────────

    async def list_products(
        self,
        *,
        category: str | None = None,
        is_featured: bool | None = None,
        is_active: bool | None = None,
        include_inactive: bool = False,
        limit: int | None = None,
        page: int = 1,
    ) -> dict:
        query = select(Product)
        if category:
            query = query.where(Product.category == category)
        if is_featured is not None:
            query = query.where(Product.is_featured.is_(is_featured))
        if not include_inactive:
            active = True if is_active is None else is_active
            query = query.where(Product.is_active.is_(active))

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery()),
        )).scalar_one()

        page = max(page, 1)
        query = query.order_by(Product.created_at.desc(), Product.name)
        if limit:
            query = query.limit(limit).offset((page - 1) * limit)
        result = await self.db.execute(
            query.execution_options(populate_existing=True),
        )
        products = result.scalars().all()
        return {
            "products": [p.to_dict() for p in products],
            "total": total,
            "page": page,
            "limit": limit or len(products),
        }

    async def get_product(self, slug: str) -> Product:
        result = await self.db.execute(
            select(Product)
            .where(Product.slug == slug, Product.is_active.is_(True))
            .execution_options(populate_existing=True),
        )
        product = result.scalar_one_or_none()
        if not product:
            raise ResourceNotFoundError("Product", slug)
        return product

    async def get_product_by_id(self, product_id: str) -> Product:
        pid = _parse_uuid(product_id, "Product")
        result = await self.db.execute(
            select(Product).where(Product.id == pid)
            .execution_options(populate_existing=True),
        )
        product = result.scalar_one_or_none()
        if not product:
            raise ResourceNotFoundError("Product", str(product_id))
        return product

    async def get_products_by_ids(self, product_ids: Sequence[str]) -> dict[str, Product]:
        ids = []
        for pid in product_ids:
            try:
                ids.append(uuid.UUID(str(pid)))
            except ValueError:
                continue
        if not ids:
            return {}
        result = await self.db.execute(select(Product).where(Product.id.in_(ids)))
        return {str(p.id): p for p in result.scalars().all()}

    # ─── Products: admin writes ───────────────────────────────────

    async def _slug_taken(self, slug: str, exclude_id: uuid.UUID | None = None) -> bool:
        query = select(Product.id).where(Product.slug == slug)
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        return (await self.db.execute(query)).first() is not None

    async def _upload_all(self, images: Sequence[ImageUpload]) -> list[str]:
        urls = []
        for image in images:
            if image.content:
                urls.append(await self.image_host.upload_image(image.content, image.filename))
        return urls

    async def _delete_hosted_images(self, urls: Sequence[str]) -> None:
        for url in urls:
            public_id = public_id_from_url(url)
            try:
                await self.image_host.delete_image(public_id)
            except ImageHostError as e:
                logger.warning(f"Failed to delete image {public_id}: {e}")

    async def create_product(
        self, data: ProductInput, images: Sequence[ImageUpload],
    ) -> Product:
        slug = create_slug(data.name)
        if not slug:
            raise ValidationFailedError("Product name must contain letters or digits", "name")
        if await self._slug_taken(slug):
            raise ValidationFailedError(DUPLICATE_NAME, "name")
        if not any(image.content for image in images):
            raise ValidationFailedError("At least one image is required", "images")

        image_urls = await self._upload_all(images)
        product = Product(
            name=data.name,
            slug=slug,
            description=data.description,
            price=data.price,
            original_price=data.original_price,
            images=image_urls,
            category=data.category,
            tags=list(data.tags),
            sizes=list(data.sizes),
            colors=list(data.colors),
            is_featured=data.is_featured,
            is_active=True,
            rating=0.0,
            reviews=0,
            stock_levels=[],
        )
        await self.inventory.replace_levels(
            product, normalize_stock(data.stock or 0, data.sizes),
        )
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        logger.info("Product created", extra={"product_id": str(product.id)})
        return product

    async def update_product(
        self,
        product_id: str,
        data: ProductInput,
        new_images: Sequence[ImageUpload],
        keep_existing_images: bool = True,
    ) -> Product:
        product = await self.get_product_by_id(product_id)
        slug = create_slug(data.name)
        if slug != product.slug and await self._slug_taken(slug, product.id):
            raise ValidationFailedError(DUPLICATE_NAME, "name")

        image_urls = list(product.images or [])
        if not keep_existing_images and any(image.content for image in new_images):
            await self._delete_hosted_images(image_urls)
            image_urls = await self._upload_all(new_images)

        product.name = data.name
        product.slug = slug
        product.description = data.description
        product.price = data.price
        product.original_price = data.original_price
        product.images = image_urls
        product.category = data.category
        product.tags = list(data.tags)
        product.sizes = list(data.sizes)
        product.colors = list(data.colors)
        product.is_featured = data.is_featured
        product.is_active = data.is_active
        if data.stock is not None:
            await self.inventory.replace_levels(
                product, normalize_stock(data.stock, data.sizes),
            )
        await self.db.commit()
        await self.db.refresh(product)
        logger.info("Product updated", extra={"product_id": str(product.id)})
        return product

    async def delete_product(self, product_id: str) -> None:
        product = await self.get_product_by_id(product_id)
        await self._delete_hosted_images(product.images or [])
        await self.db.delete(product)
        await self.db.commit()
        logger.info("Product deleted", extra={"product_id": str(product_id)})

    # ─── Products: bulk ───────────────────────────────────────────

    async def count_products(self) -> int:
        return (await self.db.execute(select(func.count(Product.id)))).scalar_one()

    async def seed_products(self, confirm: str | None) -> int:
        if confirm != SEED_CONFIRMATION:
            raise ValidationFailedError("Confirmation required", "confirm")
        if await self.count_products() > 0:
            raise ValidationFailedError(
                "Products already exist. Clear them before seeding.",
            )
        count = await self._insert_samples()
        await self.db.commit()
        logger.info(f"Seeded {count} sample products")
        return count

    async def clear_products(self, confirm: str | None) -> int:
        if confirm != CLEAR_CONFIRMATION:
            raise ValidationFailedError("Confirmation required", "confirm")
        products = (await self.db.execute(select(Product))).scalars().all()
        for product in products:
            await self.db.delete(product)
        await self.db.commit()
        logger.info(f"Cleared {len(products)} products")
        return len(products)

    async def _insert_samples(self) -> int:
        for sample in SAMPLE_PRODUCTS:
            data = dict(sample)
            stock = normalize_stock(data.pop("stock"), data["sizes"])
            product = Product(**data, is_active=True, stock_levels=[])
            await self.inventory.replace_levels(product, stock)
            self.db.add(product)
        return len(SAMPLE_PRODUCTS)

    async def bootstrap(self, with_samples: bool) -> None:
        """Create default categories and, when asked, sample products on an empty store."""
        existing = set((await self.db.execute(select(Category.slug))).scalars().all())
        for data in DEFAULT_CATEGORIES:
            if data["slug"] not in existing:
                self.db.add(Category(**data, is_active=True))
        if with_samples and await self.count_products() == 0:
            await self._insert_samples()
        await self.db.commit()

    # ─── Categories ───────────────────────────────────────────────

    async def list_categories(self, include_inactive: bool = False) -> list[Category]:
        query = select(Category).order_by(Category.order, Category.name)
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        return list((await self.db.execute(query)).scalars().all())

    async def _get_category(self, category_id: str) -> Category:
        cid = _parse_uuid(category_id, "Category")
        category = await self.db.get(Category, cid)
        if not category:
            raise ResourceNotFoundError("Category", str(category_id))
        return category

    async def _category_slug_taken(self, slug: str, exclude_id=None) -> bool:
        query = select(Category.id).where(Category.slug == slug)
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        return (await self.db.execute(query)).first() is not None

    async def create_category(
        self, *, name: str, description: str, slug: str | None = None,
        is_active: bool = True, order: int = 0,
    ) -> Category:
        slug = create_slug(slug or name)
        if await self._category_slug_taken(slug):
            raise ValidationFailedError("A category with this slug already exists", "slug")
        category = Category(
            name=name.strip(), slug=slug, description=description.strip(),
            is_active=is_active, order=order,
        )
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def update_category(self, category_id: str, changes: dict) -> Category:
        category = await self._get_category(category_id)
        if changes.get("slug") or changes.get("name"):
            slug = create_slug(changes.get("slug") or changes["name"])
            if slug != category.slug and await self._category_slug_taken(slug, category.id):
                raise ValidationFailedError("A category with this slug already exists", "slug")
            category.slug = slug
        for key in ("name", "description", "is_active", "order"):
            if changes.get(key) is not None:
                setattr(category, key, changes[key])
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def delete_category(self, category_id: str) -> None:
        category = await self._get_category(category_id)
        await self.db.execute(delete(Category).where(Category.id == category.id))
        await self.db.commit()
