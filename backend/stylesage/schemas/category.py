"""Category Schemas — admin create/update payloads."""

from pydantic import Field

from stylesage.schemas._base import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str | None = Field(None, max_length=100)
    description: str = Field(min_length=1)
    is_active: bool = True
    order: int = 0


class CategoryUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    slug: str | None = Field(None, max_length=100)
    description: str | None = None
    is_active: bool | None = None
    order: int | None = None
