"""
Module 'payments' (feature-first): point d'entrée public.
Réunit signature PayFast, construction de la redirection, réconciliation des
notifications (ITN) et page de retour.
"""

from .signature import param_string, generate_signature, verify_signature
from .redirect import PaymentRedirectBuilder, truncate_fields, FIELD_LIMITS
from .reconciler import WebhookReconciler, ReconcileResult, transition_for
from .returns import resolve_return

__all__ = [
    # signature
    "param_string",
    "generate_signature",
    "verify_signature",
    # redirection
    "PaymentRedirectBuilder",
    "truncate_fields",
    "FIELD_LIMITS",
    # webhook
    "WebhookReconciler",
    "ReconcileResult",
    "transition_for",
    # page de retour
    "resolve_return",
]
