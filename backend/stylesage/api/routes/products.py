"""Product Routes — public catalog reads, per-size stock and structured data.

Invariants:
    - Public listing shows active products unless isActive is given
    - admin=true listings require an admin session (403 otherwise)
    - /stock and /stock/validate registered before /{slug}
"""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.api.dependencies import get_optional_user
from stylesage.config import Settings, get_settings
from stylesage.core.domain_types import UserRole
from stylesage.core.errors import PermissionDeniedError, ValidationFailedError
from stylesage.core.stock import StockLine
from stylesage.infrastructure.database import get_db
from stylesage.models.user import User
from stylesage.schemas._base import CamelModel
from stylesage.services.catalog import CatalogService
from stylesage.services.inventory import InventoryService
from stylesage.services.seo import SeoService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/products", tags=["products"])


class StockQuery(CamelModel):
    product_id: str = Field(min_length=1)
    size: str = Field(min_length=1)
    quantity: int = Field(ge=1)


class StockValidateRequest(CamelModel):
    items: list[StockQuery] = Field(min_length=1)


@router.get("")
async def list_products(
    category: str | None = None,
    is_featured: bool | None = Query(None, alias="isFeatured"),
    is_active: bool | None = Query(None, alias="isActive"),
    admin: bool = False,
    limit: int | None = Query(None, ge=1, le=200),
    page: int = Query(1, ge=1),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if admin and (user is None or user.role != UserRole.ADMIN.value):
        raise PermissionDeniedError()
    return await CatalogService(db).list_products(
        category=category,
        is_featured=is_featured,
        is_active=is_active,
        include_inactive=admin,
        limit=limit,
        page=page,
    )


@router.get("/stock")
async def current_stock(
    product_id: str | None = Query(None, alias="productId"),
    size: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    if not product_id:
        raise ValidationFailedError("Product ID is required", "productId")
    if not size:
        raise ValidationFailedError("Size is required", "size")
    stock = await InventoryService(db).get_current_stock(product_id, size)
    return {"success": True, "productId": product_id, "size": size, "stock": stock}


@router.post("/stock/validate")
async def validate_stock(
    body: StockValidateRequest, db: AsyncSession = Depends(get_db),
):
    check = await InventoryService(db).validate_stock(
        StockLine(item.product_id, item.size, item.quantity) for item in body.items
    )
    return {"valid": check.valid, "outOfStockItems": check.out_of_stock_items}


@router.get("/{slug}")
async def get_product(slug: str, db: AsyncSession = Depends(get_db)):
    product = await CatalogService(db).get_product(slug)
    return {"product": product.to_dict()}


@router.get("/{slug}/structured-data")
async def structured_data(
    slug: str,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await SeoService(db, settings.app_url).structured_data(slug)
