"""
Accès aux données 'orders' et 'order_items' (client service-role).
Les transitions de statut passent par des mises à jour conditionnelles: la condition
(statut attendu) rend la lecture-vérification-écriture atomique par commande.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from storefront.infra.store import execute, first, rows

ORDER_COLUMNS = (
    "id, user_id, total_amount, shipping_address, status, payment_status, "
    "payment_method, payfast_payment_id, created_at, updated_at"
)
ITEM_COLUMNS = "id, order_id, product_id, quantity, unit_price, size_variant"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def insert_order(client, payload: Dict[str, Any]) -> Optional[dict]:
    """Insère l'en-tête et retourne la ligne créée (id généré par la base)."""
    return first(execute(client.table("orders").insert(payload), "insert_order"))


def insert_order_items(client, items: List[Dict[str, Any]]) -> List[dict]:
    """Insertion groupée des lignes (une seule requête)."""
    if not items:
        return []
    return rows(execute(client.table("order_items").insert(items), "insert_order_items"))


def get_order(client, order_id: Any) -> Optional[dict]:
    return first(execute(
        client.table("orders").select(ORDER_COLUMNS).eq("id", order_id),
        "get_order",
    ))


def fetch_order_items(client, order_ids: Iterable[Any]) -> List[dict]:
    ids = list(order_ids)
    if not ids:
        return []
    return rows(execute(
        client.table("order_items").select(ITEM_COLUMNS).in_("order_id", ids),
        "fetch_order_items",
    ))


def fetch_user_orders(client, user_id: str, limit: int = 50) -> List[dict]:
    """Commandes de l'utilisateur, plus récentes d'abord."""
    if not user_id:
        return []
    return rows(execute(
        client.table("orders")
        .select(ORDER_COLUMNS)
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(limit),
        "fetch_user_orders",
    ))


def update_order_if(
    client,
    order_id: Any,
    values: Dict[str, Any],
    *,
    expected: Dict[str, Any],
) -> Optional[dict]:
    """
    Met à jour la commande seulement si chaque colonne de `expected` a la valeur attendue.
    Retourne la ligne mise à jour, ou None si la condition n'est plus vraie
    (un autre appel a déjà effectué la transition).
    """
    query = client.table("orders").update({**values, "updated_at": _now()}).eq("id", order_id)
    for column, value in expected.items():
        query = query.eq(column, value)
    return first(execute(query, "update_order_if"))
