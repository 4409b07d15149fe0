"""Données et notifications de test partagées (catalogue, ITN signée)."""
from typing import Any, Dict, List, Optional, Tuple

from storefront.payments.signature import generate_signature

TEST_USER_ID = "test-user"
TEST_PASSPHRASE = "jt7NOE43FZPn"

SHIPPING_FORM = {
    "firstName": "Thandi",
    "lastName": "Mokoena",
    "email": "thandi@example.com",
    "address": "12 Long Street",
    "city": "Cape Town",
    "state": "Western Cape",
    "zipCode": "8001",
    "phone": "0821234567",
}


def seed_tables() -> Dict[str, List[dict]]:
    """Catalogue minimal: un parfum à tailles, un produit sans variantes presque épuisé."""
    return {
        "products": [
            {"id": 1, "name": "Oud Royal", "price": 800.0, "size_variants": {"50ml": 1000.0, "100ml": 1500.0}, "stock_quantity": 5},
            {"id": 2, "name": "Rose Noire", "price": 200.0, "size_variants": {}, "stock_quantity": 1},
        ],
        "cart_items": [],
        "orders": [],
        "order_items": [],
    }


def payable_order(order_id: int = 1, user_id: str = TEST_USER_ID, **overrides) -> Dict[str, Any]:
    row = {
        "id": order_id,
        "user_id": user_id,
        "total_amount": 1199.99,
        "shipping_address": {"city": "Cape Town"},
        "status": "pending_payment",
        "payment_status": "pending",
        "payment_method": "payfast",
        "created_at": "2024-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def signed_itn(fields: List[Tuple[str, str]], passphrase: Optional[str] = TEST_PASSPHRASE) -> List[Tuple[str, str]]:
    """Notification signée comme la passerelle: champs dans l'ordre, vides conservés."""
    fields = list(fields)
    return fields + [("signature", generate_signature(fields, passphrase=passphrase, skip_empty=False))]


def itn_fields(order_id: Any, payment_status: str = "COMPLETE", amount_gross: str = "1199.99") -> List[Tuple[str, str]]:
    return [
        ("m_payment_id", str(order_id)),
        ("pf_payment_id", "1089250"),
        ("payment_status", payment_status),
        ("item_name", "Patriocele Fragrance Order #%s" % order_id),
        ("item_description", ""),
        ("amount_gross", amount_gross),
        ("amount_fee", "-27.60"),
        ("amount_net", "1172.39"),
        ("custom_str1", TEST_USER_ID),
        ("name_first", "Thandi"),
        ("email_address", "thandi@example.com"),
        ("merchant_id", "10000100"),
    ]
