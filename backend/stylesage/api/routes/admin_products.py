"""Admin Product Routes — multipart create/update, delete, seed and clear.

Invariants:
    - Every route requires an admin session
    - Form lists (tags, sizes, colors) are comma-separated strings
    - stock form field is either an integer total or a JSON size map
    - Registered before products.router so /admin and /seed never match /{slug}
"""

import json
import logging
from decimal import Decimal, InvalidOperation

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.api.dependencies import get_image_host, require_admin
from stylesage.core.errors import ValidationFailedError
from stylesage.core.slugs import split_csv
from stylesage.infrastructure.database import get_db
from stylesage.models.user import User
from stylesage.schemas.product import ConfirmRequest, ProductInput
from stylesage.services.catalog import CatalogService, ImageUpload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/products", tags=["admin-products"])

MISSING_FIELDS = "Missing required fields or invalid data"


def _decimal(value: str | None) -> Decimal | None:
    if value is None or value.strip() == "":
        return None
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        raise ValidationFailedError(MISSING_FIELDS, "price")


def _stock(value: str | None) -> dict[str, int] | int | None:
    if value is None or value.strip() == "":
        return None
    value = value.strip()
    if value.lstrip("-").isdigit():
        return int(value)
    try:
        parsed = json.loads(value)
    except ValueError:
        raise ValidationFailedError(MISSING_FIELDS, "stock")
    if not isinstance(parsed, dict):
        raise ValidationFailedError(MISSING_FIELDS, "stock")
    return parsed


def _product_input(**fields) -> ProductInput:
    try:
        return ProductInput(**fields)
    except ValidationError as e:
        logger.warning(f"Product form rejected: {e.errors()}")
        raise ValidationFailedError(MISSING_FIELDS)


async def _uploads(files: list[UploadFile] | None) -> list[ImageUpload]:
    return [
        ImageUpload(await f.read(), f.filename)
        for f in files or []
    ]


@router.post("/admin", status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    original_price: str | None = Form(None, alias="originalPrice"),
    category: str = Form(""),
    tags: str | None = Form(None),
    sizes: str | None = Form(None),
    colors: str | None = Form(None),
    stock: str | None = Form(None),
    is_featured: bool = Form(False, alias="isFeatured"),
    images: list[UploadFile] | None = File(None),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    image_host=Depends(get_image_host),
):
    data = _product_input(
        name=name, description=description,
        price=_decimal(price), original_price=_decimal(original_price),
        category=category, tags=split_csv(tags), sizes=split_csv(sizes),
        colors=split_csv(colors), stock=_stock(stock), is_featured=is_featured,
    )
    product = await CatalogService(db, image_host).create_product(
        data, await _uploads(images),
    )
    return {"message": "Product created successfully", "product": product.to_dict()}


@router.put("/admin")
async def update_product(
    product_id: str = Form("", alias="productId"),
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    original_price: str | None = Form(None, alias="originalPrice"),
    category: str = Form(""),
    tags: str | None = Form(None),
    sizes: str | None = Form(None),
    colors: str | None = Form(None),
    stock: str | None = Form(None),
    is_featured: bool = Form(False, alias="isFeatured"),
    is_active: bool = Form(True, alias="isActive"),
    keep_existing_images: bool = Form(True, alias="keepExistingImages"),
    new_images: list[UploadFile] | None = File(None, alias="newImages"),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    image_host=Depends(get_image_host),
):
    if not product_id:
        raise ValidationFailedError(MISSING_FIELDS, "productId")
    data = _product_input(
        name=name, description=description,
        price=_decimal(price), original_price=_decimal(original_price),
        category=category, tags=split_csv(tags), sizes=split_csv(sizes),
        colors=split_csv(colors), stock=_stock(stock),
        is_featured=is_featured, is_active=is_active,
    )
    product = await CatalogService(db, image_host).update_product(
        product_id, data, await _uploads(new_images), keep_existing_images,
    )
    return {"message": "Product updated successfully", "product": product.to_dict()}


@router.delete("/admin")
async def delete_product(
    product_id: str | None = Query(None, alias="productId"),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    image_host=Depends(get_image_host),
):
    if not product_id:
        raise ValidationFailedError("Product ID is required", "productId")
    await CatalogService(db, image_host).delete_product(product_id)
    return {"message": "Product deleted successfully"}


@router.post("/seed", status_code=status.HTTP_201_CREATED)
async def seed_products(
    body: ConfirmRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    count = await CatalogService(db).seed_products(body.confirm)
    return {"message": f"Successfully seeded {count} products", "count": count}


@router.delete("/seed")
async def clear_products(
    body: ConfirmRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    count = await CatalogService(db).clear_products(body.confirm)
    return {"message": f"Successfully deleted {count} products", "count": count}
