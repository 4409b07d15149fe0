"""
Signature PayFast: MD5 de la chaîne de paramètres URL-encodée, suffixée de la passphrase.
- Sortant (redirection): champs non vides dans l'ordre documenté.
- Entrant (ITN): champs dans l'ordre reçu, sans 'signature'.
"""
import hashlib
import hmac
from typing import Iterable, Optional, Tuple
from urllib.parse import quote_plus

Pair = Tuple[str, str]

# module storefront.payments.signature
def param_string(fields: Iterable[Pair], passphrase: Optional[str] = None, skip_empty: bool = True) -> str:
    """
    Construit 'k1=v1&k2=v2...' (valeurs nettoyées puis encodées façon formulaire).
    - Ignore la clé 'signature'.
    - skip_empty: ignore les valeurs vides (requis côté redirection, pas côté ITN).
    """
    parts = []
    for key, value in fields:
        if key == "signature":
            continue
        value = "" if value is None else str(value).strip()
        if skip_empty and value == "":
            continue
        parts.append(f"{key}={quote_plus(value)}")
    if passphrase:
        parts.append(f"passphrase={quote_plus(passphrase.strip())}")
    return "&".join(parts)


def generate_signature(fields: Iterable[Pair], passphrase: Optional[str] = None, skip_empty: bool = True) -> str:
    payload = param_string(fields, passphrase=passphrase, skip_empty=skip_empty)
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def verify_signature(fields: Iterable[Pair], passphrase: Optional[str] = None) -> bool:
    """Compare (temps constant) la signature reçue à celle recalculée sur les champs reçus."""
    fields = list(fields)
    received = next((v for k, v in fields if k == "signature"), "")
    if not received:
        return False
    expected = generate_signature(fields, passphrase=passphrase, skip_empty=False)
    return hmac.compare_digest(expected, received.strip().lower())
