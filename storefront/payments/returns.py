"""
Page de retour synchrone (redirection navigateur après paiement).
Indication non autoritaire: ne lit ni n'écrit la commande; seul le webhook fixe l'état final.
"""
from typing import Any, Dict, Optional


def resolve_return(order_id: Optional[str] = None, payment_status: Optional[str] = None) -> Dict[str, Any]:
    """
    Message best-effort à partir du statut indicatif de la query string.
    - Tolère un statut absent, périmé ou contredit plus tard par le webhook.
    """
    hint = (payment_status or "").strip().upper()
    if hint == "COMPLETE":
        return {
            "success": True,
            "message": "Paiement réussi ! Votre commande sera confirmée sous peu.",
            "order_id": order_id,
        }
    if not hint and order_id:
        return {
            "success": None,
            "message": "Paiement en cours de vérification.",
            "order_id": order_id,
        }
    return {
        "success": False,
        "message": "Paiement annulé ou échoué",
        "order_id": order_id,
    }
