"""Product Schemas — admin product input and confirmation payloads.

Invariants:
    - price > 0; original_price, when present, > 0
    - At least one size and one color
    - stock is either a size map or a legacy integer total (spread over sizes)

Design Decisions:
    - ProductInput is built by the admin route from multipart form fields;
      a pydantic ValidationError there becomes ValidationFailedError (400)
"""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class ProductInput(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    price: Decimal = Field(gt=0)
    original_price: Decimal | None = Field(None, gt=0)
    category: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(min_length=1)
    colors: list[str] = Field(min_length=1)
    stock: dict[str, int] | int | None = None
    is_featured: bool = False
    is_active: bool = True

    @field_validator("name", "description", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class ConfirmRequest(BaseModel):
    confirm: str | None = None
