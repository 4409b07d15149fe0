"""
Réconciliation des notifications PayFast (ITN) sur la commande.
Machine à états pilotée par payment_status (valeurs exactes, sensibles à la casse):
- COMPLETE  -> (confirmed, paid)
- CANCELLED -> (cancelled, cancelled)
- FAILED    -> (failed, failed)
- autre     -> (pending, pending)
Garanties:
- Aucune écriture avant vérification de la signature (et du montant, et de la validation
  serveur si activée). Sans passphrase, la validation serveur est obligatoire.
- Idempotence: une notification rejouée ne ré-applique rien; la transition est une mise à
  jour conditionnelle sur le payment_status lu, donc deux livraisons concurrentes ne
  peuvent pas passer toutes les deux.
- Paiement confirmé = état final: seules ses répétitions sont acceptées (sans effet).
- Suites du passage à 'paid' (stock, panier): tentées, journalisées en cas d'échec, jamais fatales.
"""
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from storefront import config
from storefront.cart.repository import clear_cart
from storefront.errors import DuplicateNotification, OrderNotFound, StoreUnavailable, Unauthorized
from storefront.orders import repository as orders_repository
from storefront.orders.models import OrderStatus, PaymentStatus
from storefront.orders.pricing import to_decimal
from storefront.payments import gateway
from storefront.payments.signature import param_string, verify_signature
from storefront.products.repository import decrement_stock

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[str, Tuple[OrderStatus, PaymentStatus]] = {
    "COMPLETE": (OrderStatus.CONFIRMED, PaymentStatus.PAID),
    "CANCELLED": (OrderStatus.CANCELLED, PaymentStatus.CANCELLED),
    "FAILED": (OrderStatus.FAILED, PaymentStatus.FAILED),
}
DEFAULT_TRANSITION = (OrderStatus.PENDING, PaymentStatus.PENDING)
AMOUNT_TOLERANCE = Decimal("0.01")


def transition_for(gateway_status: Optional[str]) -> Tuple[OrderStatus, PaymentStatus]:
    return TRANSITIONS.get(gateway_status or "", DEFAULT_TRANSITION)


class ReconcileResult(BaseModel):
    outcome: str  # applied | duplicate | ignored | not_payable
    order_id: str
    status: Optional[str] = None
    payment_status: Optional[str] = None


class WebhookReconciler:
    def __init__(
        self,
        client,
        passphrase: Optional[str] = None,
        validate_with_server: Optional[bool] = None,
        server_validator: Optional[Callable[[str], bool]] = None,
    ):
        self.client = client
        self.passphrase = passphrase if passphrase is not None else config.PAYFAST_PASSPHRASE
        self.validate_with_server = (
            config.PAYFAST_VALIDATE_WITH_SERVER if validate_with_server is None else validate_with_server
        )
        self.server_validator = server_validator or gateway.validate_with_server

    def reconcile(self, fields: Iterable[Tuple[str, str]]) -> ReconcileResult:
        """Applique une notification (champs du formulaire, dans l'ordre reçu).
        Lève:
        - Unauthorized: signature/validation serveur/montant invalides (aucune écriture)
        - OrderNotFound: m_payment_id inconnu (l'appelant répond quand même 200)
        - StoreUnavailable / GatewayUnreachable: échec local, réessayable
        """
        fields = list(fields)
        self._authenticate(fields)
        data = dict(fields)

        order_id = (data.get("m_payment_id") or data.get("custom_int1") or data.get("custom_str2") or "").strip()
        if not order_id:
            raise OrderNotFound(order_id)
        order = orders_repository.get_order(self.client, order_id)
        if not order:
            raise OrderNotFound(order_id)

        if order.get("status") == OrderStatus.DRAFT.value:
            logger.warning("payfast.itn commande non payable (draft) order_id=%s", order_id)
            return ReconcileResult(outcome="not_payable", order_id=order_id, status=order.get("status"),
                                   payment_status=order.get("payment_status"))

        self._check_amount(order, data)

        status, payment_status = transition_for(data.get("payment_status"))
        try:
            updated = self._apply(order, status, payment_status, data.get("pf_payment_id"))
        except DuplicateNotification as e:
            logger.info("payfast.itn duplicate order_id=%s: %s", order_id, e)
            return ReconcileResult(outcome="duplicate", order_id=order_id, status=order.get("status"),
                                   payment_status=order.get("payment_status"))
        if updated is None:
            return ReconcileResult(outcome="ignored", order_id=order_id, status=order.get("status"),
                                   payment_status=order.get("payment_status"))

        logger.info("payfast.itn order_id=%s -> status=%s payment_status=%s",
                    order_id, status.value, payment_status.value)
        if payment_status is PaymentStatus.PAID:
            self._after_paid(order)
        return ReconcileResult(outcome="applied", order_id=order_id, status=status.value,
                               payment_status=payment_status.value)

    def _authenticate(self, fields: List[Tuple[str, str]]) -> None:
        # Sans passphrase ni validation serveur, la signature ne contient aucun secret
        if not self.passphrase and not self.validate_with_server:
            logger.error("payfast.itn configuration invalide: PAYFAST_PASSPHRASE vide et PAYFAST_VALIDATE_WITH_SERVER désactivé")
            raise Unauthorized("Notification non vérifiable (aucun secret configuré)")
        if not verify_signature(fields, passphrase=self.passphrase):
            raise Unauthorized("Signature de notification invalide")
        if self.validate_with_server:
            payload = param_string(fields, passphrase=None, skip_empty=False)
            if not self.server_validator(payload):
                raise Unauthorized("Notification rejetée par la passerelle")

    @staticmethod
    def _check_amount(order: Dict[str, Any], data: Dict[str, str]) -> None:
        """Le montant brut reçu (si présent) doit correspondre au total persisté (arrondi)."""
        gross = (data.get("amount_gross") or "").strip()
        if not gross:
            return
        try:
            received = to_decimal(gross)
        except ArithmeticError as e:
            raise Unauthorized(f"Montant illisible: {gross}") from e
        if not received.is_finite():
            raise Unauthorized(f"Montant illisible: {gross}")
        expected = to_decimal(order.get("total_amount") or 0)
        if abs(received - expected) > AMOUNT_TOLERANCE:
            raise Unauthorized(f"Montant inattendu: reçu {received}, attendu {expected}")

    def _apply(
        self,
        order: Dict[str, Any],
        status: OrderStatus,
        payment_status: PaymentStatus,
        pf_payment_id: Optional[str],
    ) -> Optional[dict]:
        """
        Transition conditionnelle (attendu: payment_status lu).
        - Retourne la ligne mise à jour.
        - Retourne None si la notification est ignorée (commande déjà payée, autre statut reçu).
        - Lève DuplicateNotification si l'état cible est déjà atteint.
        """
        order_id = order.get("id")
        current_status = order.get("status")
        current_payment = order.get("payment_status")

        if current_payment == PaymentStatus.PAID.value:
            if payment_status is PaymentStatus.PAID:
                raise DuplicateNotification(f"déjà payée (status={current_status})")
            logger.warning("payfast.itn ignorée: commande %s déjà payée, reçu %s", order_id, payment_status.value)
            return None
        if (current_status, current_payment) == (status.value, payment_status.value):
            raise DuplicateNotification(f"déjà {status.value}/{payment_status.value}")

        values: Dict[str, Any] = {"status": status.value, "payment_status": payment_status.value}
        if pf_payment_id:
            values["payfast_payment_id"] = pf_payment_id
        updated = orders_repository.update_order_if(
            self.client, order_id, values, expected={"payment_status": current_payment},
        )
        if updated:
            return updated

        # Condition perdue: une autre livraison a modifié la commande entre lecture et écriture
        fresh = orders_repository.get_order(self.client, order_id) or {}
        if fresh.get("payment_status") == payment_status.value and (
            payment_status is PaymentStatus.PAID or fresh.get("status") == status.value
        ):
            raise DuplicateNotification("transition appliquée par une livraison concurrente")
        raise StoreUnavailable(f"Conflit de mise à jour sur la commande {order_id}")

    def _after_paid(self, order: Dict[str, Any]) -> None:
        """Décrément du stock par ligne puis vidage du panier; chaque échec est journalisé."""
        order_id = order.get("id")
        try:
            items = orders_repository.fetch_order_items(self.client, [order_id])
        except StoreUnavailable:
            logger.exception("payfast.itn lecture des lignes impossible order_id=%s", order_id)
            items = []
        for item in items:
            try:
                if not decrement_stock(self.client, item.get("product_id"), int(item.get("quantity") or 0)):
                    logger.warning("payfast.itn stock non décrémenté order_id=%s product_id=%s",
                                   order_id, item.get("product_id"))
            except StoreUnavailable:
                logger.exception("payfast.itn décrément échoué order_id=%s product_id=%s",
                                 order_id, item.get("product_id"))
        try:
            cleared = clear_cart(self.client, order.get("user_id"))
            logger.info("payfast.itn panier vidé order_id=%s lignes=%s", order_id, cleared)
        except StoreUnavailable:
            logger.exception("payfast.itn vidage du panier échoué order_id=%s", order_id)
