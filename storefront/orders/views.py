# module storefront.orders.views

"""Endpoints de l'user story Checkout/Commandes.
- /checkout: valide le formulaire, contrôle le stock, écrit la commande et renvoie l'URL PayFast.
- /orders: historique de l'utilisateur; /orders/{id}: détail.
Sécurité:
- require_user: l'utilisateur doit être connecté.
- optional_rate_limit: limite la fréquence des checkouts.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from storefront.cart.service import CartSnapshotReader
from storefront.dependencies import get_cart_reader, get_order_history, get_order_writer, get_redirect_builder
from storefront.errors import ValidationError
from storefront.orders.models import CheckoutForm
from storefront.orders.service import OrderHistory, OrderWriter
from storefront.payments.redirect import PaymentRedirectBuilder
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["Orders API"])


@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def checkout(
    form: CheckoutForm,
    user: Dict[str, Any] = Depends(require_user),
    reader: CartSnapshotReader = Depends(get_cart_reader),
    writer: OrderWriter = Depends(get_order_writer),
    builder: PaymentRedirectBuilder = Depends(get_redirect_builder),
):
    """Passe commande pour le panier courant.
    Étapes:
    1) Snapshot du panier + porte de stock (409 si une ligne dépasse le stock, rien n'est écrit)
    2) Écriture de la commande (en-tête + lignes), 500 PartialOrderFailure si les lignes échouent
    3) Construction de la redirection PayFast (uniquement si la commande est payable)
    Retour: {order_id, total_amount, redirect_url}
    """
    user_id = user.get("id")
    snapshot = reader.read_for_checkout(user_id)
    if not snapshot:
        raise ValidationError("Panier vide", code="empty_cart")

    order = writer.create_order(user_id, snapshot, form)
    redirect = builder.build(
        order_id=order["id"],
        total_amount=order["total_amount"],
        buyer={"firstName": form.firstName, "lastName": form.lastName, "email": str(form.email), "phone": form.phone},
        user_id=user_id,
        item_count=len(snapshot),
    )
    logger.info("checkout order_id=%s user_id=%s redirect prêt", order["id"], user_id)
    return {"order_id": order["id"], "total_amount": order["total_amount"], "redirect_url": redirect.url}


@router.get("/orders")
def list_orders(user: Dict[str, Any] = Depends(require_user), history: OrderHistory = Depends(get_order_history)):
    return {"orders": history.list_orders(user.get("id"))}


@router.get("/orders/{order_id}")
def get_order(
    order_id: str,
    user: Dict[str, Any] = Depends(require_user),
    history: OrderHistory = Depends(get_order_history),
):
    return history.get_order(user.get("id"), order_id)
