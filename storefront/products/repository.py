"""
Accès aux données 'products' (lecture seule pour le cycle de commande, sauf le stock).
"""
import logging
from typing import Any, Dict, Iterable, List

from storefront.infra.store import execute, first, rows

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, price, size_variants, stock_quantity"


def fetch_products_by_ids(client, ids: Iterable[Any]) -> List[dict]:
    """
    Récupère les produits par leurs IDs (table 'products').
    - Retourne [] si ids vide.
    """
    ids = list(ids)
    if not ids:
        return []
    res = execute(
        client.table("products").select(PRODUCT_COLUMNS).in_("id", ids),
        "fetch_products_by_ids",
    )
    return rows(res)


def get_products_map(client, ids: Iterable[Any]) -> Dict[str, Dict[str, Any]]:
    """Retourne un dict {str(id): produit}."""
    return {str(p.get("id")): p for p in fetch_products_by_ids(client, ids)}


def decrement_stock(client, product_id: Any, quantity: int, attempts: int = 3) -> bool:
    """
    Décrémente stock_quantity de `quantity` (plancher à 0).
    Mise à jour conditionnelle sur l'ancienne valeur: un écrivain concurrent fait échouer
    la condition et on relit. Retourne False si le produit est introuvable ou si la
    condition échoue `attempts` fois.
    """
    for _ in range(attempts):
        product = first(execute(
            client.table("products").select("id, stock_quantity").eq("id", product_id),
            "decrement_stock.read",
        ))
        if not product:
            logger.warning("decrement_stock: produit introuvable id=%s", product_id)
            return False
        current = int(product.get("stock_quantity") or 0)
        new_value = max(0, current - int(quantity))
        updated = rows(execute(
            client.table("products")
            .update({"stock_quantity": new_value})
            .eq("id", product_id)
            .eq("stock_quantity", current),
            "decrement_stock.update",
        ))
        if updated:
            return True
    logger.warning("decrement_stock: conflit persistant id=%s qty=%s", product_id, quantity)
    return False
