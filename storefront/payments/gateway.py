"""
Validation serveur d'une notification: renvoie la chaîne de paramètres reçue à
PayFast (/eng/query/validate) qui répond 'VALID' ou 'INVALID'.
Délai borné; une expiration ou une erreur réseau lève GatewayUnreachable (réessayable).
"""
import logging

import httpx

from storefront import config
from storefront.errors import GatewayUnreachable

logger = logging.getLogger(__name__)


def validate_with_server(payload: str, url: str = "", timeout: float = 0) -> bool:
    url = url or config.PAYFAST_VALIDATE_URL
    timeout = timeout or config.GATEWAY_TIMEOUT_SECONDS
    try:
        resp = httpx.post(
            url,
            content=payload,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=timeout,
        )
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.exception("payfast.validate failed url=%s", url)
        raise GatewayUnreachable("Passerelle de paiement injoignable") from e
    return resp.text.strip().upper() == "VALID"
