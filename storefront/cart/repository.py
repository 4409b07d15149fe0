"""
Accès aux données 'cart_items'. Toutes les opérations sont bornées à user_id.
"""
from typing import Any, Dict, List, Optional

from storefront.infra.store import execute, first, rows

CART_COLUMNS = "id, user_id, product_id, size_variant, quantity"


def fetch_cart_lines(client, user_id: str) -> List[dict]:
    """Lignes du panier de l'utilisateur, dans l'ordre d'ajout (id croissant)."""
    res = execute(
        client.table("cart_items")
        .select(CART_COLUMNS)
        .eq("user_id", user_id)
        .order("id", desc=False),
        "fetch_cart_lines",
    )
    return rows(res)


def get_cart_line(client, line_id: Any, user_id: str) -> Optional[dict]:
    res = execute(
        client.table("cart_items").select(CART_COLUMNS).eq("id", line_id).eq("user_id", user_id),
        "get_cart_line",
    )
    return first(res)


def find_cart_line(client, user_id: str, product_id: Any, size_variant: str) -> Optional[dict]:
    res = execute(
        client.table("cart_items")
        .select(CART_COLUMNS)
        .eq("user_id", user_id)
        .eq("product_id", product_id)
        .eq("size_variant", size_variant),
        "find_cart_line",
    )
    return first(res)


def insert_cart_line(client, user_id: str, product_id: Any, size_variant: str, quantity: int) -> Optional[dict]:
    payload: Dict[str, Any] = {
        "user_id": user_id,
        "product_id": product_id,
        "size_variant": size_variant,
        "quantity": quantity,
    }
    return first(execute(client.table("cart_items").insert(payload), "insert_cart_line"))


def update_cart_line_quantity(client, line_id: Any, user_id: str, quantity: int) -> Optional[dict]:
    res = execute(
        client.table("cart_items").update({"quantity": quantity}).eq("id", line_id).eq("user_id", user_id),
        "update_cart_line_quantity",
    )
    return first(res)


def delete_cart_line(client, line_id: Any, user_id: str) -> bool:
    res = execute(
        client.table("cart_items").delete().eq("id", line_id).eq("user_id", user_id),
        "delete_cart_line",
    )
    return bool(rows(res))


def clear_cart(client, user_id: str) -> int:
    """Supprime toutes les lignes de l'utilisateur; retourne le nombre supprimé."""
    res = execute(client.table("cart_items").delete().eq("user_id", user_id), "clear_cart")
    return len(rows(res))
