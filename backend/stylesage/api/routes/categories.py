"""Category Routes — public list and admin maintenance."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.api.dependencies import require_admin
from stylesage.infrastructure.database import get_db
from stylesage.models.user import User
from stylesage.schemas.category import CategoryCreate, CategoryUpdate
from stylesage.services.catalog import CatalogService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await CatalogService(db).list_categories()
    return {"categories": [c.to_dict() for c in categories]}


@router.get("/admin")
async def list_all_categories(
    _admin: User = Depends(require_admin), db: AsyncSession = Depends(get_db),
):
    categories = await CatalogService(db).list_categories(include_inactive=True)
    return {"categories": [c.to_dict() for c in categories]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CatalogService(db).create_category(
        name=body.name, description=body.description, slug=body.slug,
        is_active=body.is_active, order=body.order,
    )
    return {"category": category.to_dict()}


@router.patch("/{category_id}")
async def update_category(
    category_id: str,
    body: CategoryUpdate,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CatalogService(db).update_category(
        category_id, body.model_dump(exclude_unset=True),
    )
    return {"category": category.to_dict()}


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await CatalogService(db).delete_category(category_id)
    return {"message": "Category deleted successfully"}
