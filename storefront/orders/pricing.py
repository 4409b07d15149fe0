"""
Tarification pure (pas de DB): sous-total, TVA, frais de port, total arrondi.
Le total arrondi ici est la valeur persistée et comparée plus tard au montant
renvoyé par la passerelle.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from storefront import config

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convertit str|int|float|Decimal en Decimal sans artefact binaire (via str)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value if value is not None else 0))


def round_amount(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Any) -> str:
    """Montant au format passerelle: exactement deux décimales ('1199.99')."""
    return f"{round_amount(value):.2f}"


class OrderTotals(BaseModel):
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


def compute_totals(
    lines: Iterable[Any],
    vat_rate: Optional[Any] = None,
    shipping_fee: Optional[Any] = None,
) -> OrderTotals:
    """
    total = round(subtotal + shipping + subtotal * VAT_RATE, 2), arrondi standard (half-up).
    - lines: objets exposant unit_price et quantity (prix figés du snapshot).
    """
    rate = to_decimal(config.VAT_RATE if vat_rate is None else vat_rate)
    shipping = to_decimal(config.FLAT_SHIPPING_FEE if shipping_fee is None else shipping_fee)
    subtotal = sum((to_decimal(l.unit_price) * int(l.quantity) for l in lines), Decimal("0"))
    tax = subtotal * rate
    total = round_amount(subtotal + shipping + tax)
    return OrderTotals(
        subtotal=round_amount(subtotal),
        shipping=round_amount(shipping),
        tax=round_amount(tax),
        total=total,
    )
