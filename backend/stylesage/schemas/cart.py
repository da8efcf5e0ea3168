"""Cart Schemas — cart item shape and cart mutation payloads.

Invariants:
    - price >= 0, quantity >= 1, productId/size non-empty
    - Items are stored exactly as dumped here (camelCase keys)
"""

from pydantic import Field

from stylesage.schemas._base import CamelModel


class CartItem(CamelModel):
    product_id: str = Field(min_length=1)
    name: str
    price: float = Field(ge=0)
    image: str = ""
    color: str = ""
    size: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    category: str = ""

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class CartUpdate(CamelModel):
    items: list[CartItem] = Field(default_factory=list)
    session_id: str | None = None


class CartMigrate(CamelModel):
    session_id: str | None = None
