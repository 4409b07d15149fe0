# module storefront.cart.views

"""Endpoints du panier (utilisateur authentifié).
- GET    /api/v1/cart: lignes + aperçu des totaux (prix courants)
- GET    /api/v1/cart/count: quantité totale (badge)
- POST   /api/v1/cart/items: ajout (fusion produit+taille)
- PATCH  /api/v1/cart/items/{line_id}: quantité (< 1 supprime la ligne)
- DELETE /api/v1/cart/items/{line_id}: suppression
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from storefront.cart.models import AddCartItemRequest, UpdateCartItemRequest
from storefront.cart.service import CartService
from storefront.dependencies import get_cart_service
from storefront.utils.security import require_user

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


@router.get("")
def get_cart(user: Dict[str, Any] = Depends(require_user), carts: CartService = Depends(get_cart_service)):
    return carts.summary(user.get("id"))


@router.get("/count")
def get_cart_count(user: Dict[str, Any] = Depends(require_user), carts: CartService = Depends(get_cart_service)):
    return {"count": carts.count(user.get("id"))}


@router.post("/items")
def add_cart_item(
    body: AddCartItemRequest,
    user: Dict[str, Any] = Depends(require_user),
    carts: CartService = Depends(get_cart_service),
):
    row = carts.add_item(user.get("id"), body.product_id, body.size_variant, body.quantity)
    return {"status": "ok", "item": row}


@router.patch("/items/{line_id}")
def update_cart_item(
    line_id: str,
    body: UpdateCartItemRequest,
    user: Dict[str, Any] = Depends(require_user),
    carts: CartService = Depends(get_cart_service),
):
    row = carts.update_quantity(user.get("id"), line_id, body.quantity)
    if row is None:
        return {"status": "removed"}
    return {"status": "ok", "item": row}


@router.delete("/items/{line_id}")
def delete_cart_item(
    line_id: str,
    user: Dict[str, Any] = Depends(require_user),
    carts: CartService = Depends(get_cart_service),
):
    carts.remove_item(user.get("id"), line_id)
    return {"status": "removed"}
