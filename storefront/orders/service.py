"""Couche service de la commande.
Rôles:
- OrderWriter: écrit l'en-tête (brouillon non payable) puis les lignes, et ne rend la
  commande payable (pending_payment) qu'une fois les deux écritures réussies.
- OrderHistory: commandes de l'utilisateur avec leurs lignes.
Sans transaction multi-tables côté Supabase, un échec sur les lignes annule la commande
et lève PartialOrderFailure: l'identifiant n'est jamais transmis à la passerelle.
"""
import logging
from typing import Any, Dict, List, Optional

from storefront.cart.models import CartLineSnapshot
from storefront.errors import NotFound, PartialOrderFailure, StoreUnavailable, ValidationError
from storefront.orders import repository
from storefront.orders.models import PAYMENT_METHOD, CheckoutForm, OrderStatus, PaymentStatus
from storefront.orders.pricing import compute_totals

logger = logging.getLogger(__name__)


class OrderWriter:
    def __init__(self, client, vat_rate: Optional[Any] = None, shipping_fee: Optional[Any] = None):
        self.client = client
        self.vat_rate = vat_rate
        self.shipping_fee = shipping_fee

    def create_order(self, user_id: str, snapshot: List[CartLineSnapshot], form: CheckoutForm) -> Dict[str, Any]:
        """Crée la commande à partir d'un snapshot déjà validé (stock vérifié).
        Étapes:
        1) Insère l'en-tête: total arrondi, status=draft, payment_status=pending.
        2) Insère une ligne par ligne de panier, unit_price figé depuis le snapshot.
        3) Promeut la commande en pending_payment (condition: status=draft).
        Retour: la ligne 'orders' payable.
        """
        if not user_id:
            raise NotFound("Non authentifié", code="no_session")
        if not snapshot:
            raise ValidationError("Panier vide", code="empty_cart")

        totals = compute_totals(snapshot, vat_rate=self.vat_rate, shipping_fee=self.shipping_fee)
        header = {
            "user_id": user_id,
            "total_amount": float(totals.total),
            "shipping_address": form.shipping_address(),
            "status": OrderStatus.DRAFT.value,
            "payment_status": PaymentStatus.PENDING.value,
            "payment_method": PAYMENT_METHOD,
        }
        order = repository.insert_order(self.client, header)
        if not order or order.get("id") is None:
            raise StoreUnavailable("Impossible de créer la commande")
        order_id = order["id"]

        items = [
            {
                "order_id": order_id,
                "product_id": line.product_id,
                "quantity": line.quantity,
                "unit_price": float(line.unit_price),
                "size_variant": line.size_variant,
            }
            for line in snapshot
        ]
        try:
            written = repository.insert_order_items(self.client, items)
            if len(written) != len(items):
                raise StoreUnavailable(f"{len(written)}/{len(items)} lignes écrites")
            promoted = repository.update_order_if(
                self.client,
                order_id,
                {"status": OrderStatus.PENDING_PAYMENT.value},
                expected={"status": OrderStatus.DRAFT.value},
            )
            if not promoted:
                raise StoreUnavailable("Promotion de la commande impossible")
        except StoreUnavailable as e:
            logger.error("orders.create_order partial failure order_id=%s: %s", order_id, e)
            raise PartialOrderFailure(order_id, cancelled=self._cancel(order_id)) from e

        logger.info(
            "orders.create_order order_id=%s user_id=%s items=%s total=%s",
            order_id, user_id, len(items), totals.total,
        )
        return promoted

    def _cancel(self, order_id: Any) -> bool:
        """Rend la commande inutilisable (cancelled/cancelled); best-effort, échec journalisé."""
        try:
            row = repository.update_order_if(
                self.client,
                order_id,
                {"status": OrderStatus.CANCELLED.value, "payment_status": PaymentStatus.CANCELLED.value},
                expected={"payment_status": PaymentStatus.PENDING.value},
            )
            return row is not None
        except StoreUnavailable:
            logger.exception("orders.cancel failed order_id=%s", order_id)
            return False


class OrderHistory:
    def __init__(self, client):
        self.client = client

    def list_orders(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Commandes de l'utilisateur (plus récentes d'abord) avec leurs lignes (clé order_items)."""
        orders = repository.fetch_user_orders(self.client, user_id, limit=limit)
        items = repository.fetch_order_items(self.client, [o.get("id") for o in orders])
        by_order: Dict[str, List[dict]] = {}
        for item in items:
            by_order.setdefault(str(item.get("order_id")), []).append(item)
        return [{**o, "order_items": by_order.get(str(o.get("id")), [])} for o in orders]

    def get_order(self, user_id: str, order_id: Any) -> Dict[str, Any]:
        order = repository.get_order(self.client, order_id)
        if not order or str(order.get("user_id")) != str(user_id):
            raise NotFound("Commande introuvable")
        items = repository.fetch_order_items(self.client, [order.get("id")])
        return {**order, "order_items": items}
