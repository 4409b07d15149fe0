"""
Construction de la redirection vers la page de paiement hébergée PayFast.
Aucun effet de bord: ne lit ni n'écrit la commande.
"""
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from pydantic import BaseModel

from storefront import config
from storefront.orders.pricing import format_amount
from storefront.payments.signature import generate_signature

# Longueurs maximales documentées par la passerelle: on tronque, on ne rejette pas
FIELD_LIMITS: Dict[str, int] = {
    "name_first": 100,
    "name_last": 100,
    "email_address": 100,
    "cell_number": 20,
    "item_name": 100,
    "item_description": 255,
}


def truncate_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in fields.items():
        limit = FIELD_LIMITS.get(key)
        if limit and isinstance(value, str):
            value = value.strip()[:limit]
        out[key] = value
    return out


def _with_query(base: str, path: str, params: Dict[str, Any]) -> str:
    sep = "&" if "?" in path else "?"
    return f"{base.rstrip('/')}{path}{sep}{urlencode(params)}"


class PaymentRedirect(BaseModel):
    url: str
    fields: List[Tuple[str, str]]


class PaymentRedirectBuilder:
    def __init__(
        self,
        merchant_id: Optional[str] = None,
        merchant_key: Optional[str] = None,
        passphrase: Optional[str] = None,
        process_url: Optional[str] = None,
        base_url: Optional[str] = None,
        return_path: Optional[str] = None,
        cancel_path: Optional[str] = None,
        notify_url: Optional[str] = None,
        store_name: Optional[str] = None,
    ):
        self.merchant_id = merchant_id if merchant_id is not None else config.PAYFAST_MERCHANT_ID
        self.merchant_key = merchant_key if merchant_key is not None else config.PAYFAST_MERCHANT_KEY
        self.passphrase = passphrase if passphrase is not None else config.PAYFAST_PASSPHRASE
        self.process_url = process_url or config.PAYFAST_PROCESS_URL
        self.base_url = base_url or config.BASE_URL
        self.return_path = return_path or config.PAYMENT_RETURN_PATH
        self.cancel_path = cancel_path or config.PAYMENT_CANCEL_PATH
        self.notify_url = notify_url if notify_url is not None else config.PAYFAST_NOTIFY_URL
        self.store_name = store_name or config.STORE_NAME

    def build(
        self,
        *,
        order_id: Any,
        total_amount: Any,
        buyer: Dict[str, Any],
        user_id: str,
        item_count: int,
    ) -> PaymentRedirect:
        """
        Champs de redirection, dans l'ordre attendu par la signature PayFast.
        - buyer: {firstName, lastName, email, phone} (formulaire de checkout)
        - order_id / user_id: repris dans m_payment_id et les champs custom pour la réconciliation
        - amount: total persisté, exactement deux décimales
        """
        order_ref = str(order_id)
        fields: Dict[str, Any] = {
            "merchant_id": self.merchant_id,
            "merchant_key": self.merchant_key,
            "return_url": _with_query(self.base_url, self.return_path, {"order_id": order_ref}),
            "cancel_url": _with_query(self.base_url, self.cancel_path, {"order_id": order_ref}),
            "notify_url": self.notify_url,
            "name_first": buyer.get("firstName") or "",
            "name_last": buyer.get("lastName") or "",
            "email_address": buyer.get("email") or "",
            "cell_number": buyer.get("phone") or "",
            "m_payment_id": order_ref,
            "amount": format_amount(total_amount),
            "item_name": f"{self.store_name} Order #{order_ref}",
            "item_description": f"{item_count} perfume item(s)",
        }
        # custom_int1 n'accepte que des entiers: identifiant non numérique -> custom_str2
        if order_ref.isdigit():
            fields["custom_int1"] = order_ref
        else:
            fields["custom_str2"] = order_ref
        fields["custom_str1"] = str(user_id)

        fields = truncate_fields(fields)
        pairs = [(k, str(v)) for k, v in fields.items() if v is not None and str(v) != ""]
        pairs.append(("signature", generate_signature(pairs, passphrase=self.passphrase)))
        return PaymentRedirect(url=f"{self.process_url}?{urlencode(pairs)}", fields=pairs)
