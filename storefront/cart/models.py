# module storefront.cart.models
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

ProductId = Union[int, str]


class CartLineSnapshot(BaseModel):
    """Ligne de panier jointe au prix/stock courant du produit pour sa taille."""
    line_id: Optional[ProductId] = None
    product_id: ProductId
    name: str = ""
    size_variant: str = ""
    quantity: int
    unit_price: Decimal
    stock_quantity: int = 0

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def describe(self) -> Dict[str, Any]:
        return {
            "line_id": self.line_id,
            "product_id": self.product_id,
            "name": self.name,
            "size_variant": self.size_variant,
            "quantity": self.quantity,
            "stock_quantity": self.stock_quantity,
        }


class AddCartItemRequest(BaseModel):
    product_id: ProductId
    size_variant: str = Field(min_length=1, max_length=50)
    quantity: int = Field(default=1, ge=1, le=100)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(le=100)
