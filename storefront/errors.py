"""
Taxonomie des erreurs du cycle commande/paiement.
- Chaque erreur porte un message lisible et un code stable (clé 'code' des réponses JSON).
- Le mapping HTTP est centralisé dans storefront.app_setup.exceptions.
"""
from typing import Any, Dict, List, Optional


class StorefrontError(Exception):
    code = "error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def extra(self) -> Dict[str, Any]:
        return {}


class NotFound(StorefrontError):
    """Aucune session utilisateur (ou ressource absente pour cet utilisateur)."""
    code = "not_found"


class ValidationError(StorefrontError):
    code = "invalid"


class InsufficientStock(StorefrontError):
    """Au moins une ligne du panier dépasse le stock disponible."""
    code = "insufficient_stock"

    def __init__(self, lines: List[Dict[str, Any]]):
        names = ", ".join(str(l.get("name") or l.get("product_id")) for l in lines)
        super().__init__(f"Stock insuffisant pour: {names}")
        self.lines = lines

    def extra(self) -> Dict[str, Any]:
        return {"lines": self.lines}


class PartialOrderFailure(StorefrontError):
    """En-tête de commande écrit mais lignes non écrites: la commande est annulée."""
    code = "partial_order_failure"

    def __init__(self, order_id: Any, cancelled: bool = True):
        super().__init__(f"Commande {order_id} incomplète, annulée")
        self.order_id = order_id
        self.cancelled = cancelled

    def extra(self) -> Dict[str, Any]:
        return {"order_id": self.order_id, "cancelled": self.cancelled}


class OrderNotFound(StorefrontError):
    code = "order_not_found"

    def __init__(self, order_id: Any):
        super().__init__(f"Commande introuvable: {order_id}")
        self.order_id = order_id


class DuplicateNotification(StorefrontError):
    """Pas une erreur: notification déjà appliquée (rejouée par la passerelle)."""
    code = "duplicate"


class StoreUnavailable(StorefrontError):
    code = "store_unavailable"


class GatewayUnreachable(StorefrontError):
    code = "gateway_unreachable"


class Unauthorized(StorefrontError):
    """Notification dont la signature/l'origine n'est pas vérifiée."""
    code = "unauthorized"
