"""
Cas d'usage 'cart': lecture du snapshot de checkout et gestion des lignes.
Rôles:
- CartSnapshotReader: lignes du panier + prix/stock courants, porte de stock tout-ou-rien.
- CartService: ajout (fusion produit+taille), modification de quantité, suppression, compteur.
Le prix n'est jamais stocké sur la ligne: il est résolu à la lecture depuis le produit.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from storefront.cart import repository
from storefront.cart.models import CartLineSnapshot
from storefront.errors import InsufficientStock, NotFound, ValidationError
from storefront.orders.pricing import compute_totals, to_decimal
from storefront.products.repository import get_products_map

logger = logging.getLogger(__name__)


def resolve_unit_price(product: Dict[str, Any], size_variant: str) -> Decimal:
    """
    Prix de la taille demandée (size_variants[size]) sinon prix de base du produit.
    - Une valeur absente, vide ou nulle dans size_variants retombe sur le prix de base.
    """
    variants = product.get("size_variants") or {}
    price = variants.get(size_variant) if isinstance(variants, dict) else None
    if not price:
        price = product.get("price")
    try:
        return to_decimal(price or 0)
    except ArithmeticError:
        return Decimal("0")


class CartSnapshotReader:
    def __init__(self, client):
        self.client = client

    def read(self, user_id: Optional[str]) -> List[CartLineSnapshot]:
        """
        Snapshot du panier: une entrée par ligne, jointe au produit courant.
        - NotFound si aucune identité utilisateur.
        - [] si le panier est vide (pas une erreur).
        - ValidationError si une ligne référence un produit disparu ou sans prix.
        """
        if not user_id:
            raise NotFound("Non authentifié", code="no_session")
        lines = repository.fetch_cart_lines(self.client, user_id)
        if not lines:
            return []
        products = get_products_map(self.client, {l.get("product_id") for l in lines})

        snapshot: List[CartLineSnapshot] = []
        for line in lines:
            product = products.get(str(line.get("product_id")))
            if not product:
                raise ValidationError(f"Produit introuvable: {line.get('product_id')}", code="unknown_product")
            size = str(line.get("size_variant") or "")
            unit_price = resolve_unit_price(product, size)
            if unit_price <= 0:
                raise ValidationError(f"Prix invalide pour {product.get('name') or product.get('id')}", code="invalid_price")
            snapshot.append(CartLineSnapshot(
                line_id=line.get("id"),
                product_id=line.get("product_id"),
                name=product.get("name") or "",
                size_variant=size,
                quantity=int(line.get("quantity") or 0),
                unit_price=unit_price,
                stock_quantity=int(product.get("stock_quantity") or 0),
            ))
        return snapshot

    @staticmethod
    def ensure_stock(snapshot: List[CartLineSnapshot]) -> None:
        """Rejette le checkout entier si une ligne dépasse le stock (aucun checkout partiel)."""
        offending = [l.describe() for l in snapshot if l.quantity > l.stock_quantity]
        if offending:
            raise InsufficientStock(offending)

    def read_for_checkout(self, user_id: Optional[str]) -> List[CartLineSnapshot]:
        snapshot = self.read(user_id)
        self.ensure_stock(snapshot)
        return snapshot


class CartService:
    def __init__(self, client):
        self.client = client
        self.reader = CartSnapshotReader(client)

    def summary(self, user_id: str) -> Dict[str, Any]:
        """Panier + aperçu des totaux (non contractuel: les prix peuvent changer avant checkout)."""
        snapshot = self.reader.read(user_id)
        totals = compute_totals(snapshot) if snapshot else None
        return {
            "items": [
                {**l.describe(), "unit_price": float(l.unit_price), "line_total": float(l.line_total)}
                for l in snapshot
            ],
            "totals": {k: float(v) for k, v in totals.model_dump().items()} if totals else None,
        }

    def count(self, user_id: str) -> int:
        return sum(int(l.get("quantity") or 0) for l in repository.fetch_cart_lines(self.client, user_id))

    def add_item(self, user_id: str, product_id: Any, size_variant: str, quantity: int = 1) -> Dict[str, Any]:
        """Ajoute au panier; fusionne avec la ligne existante de même produit et taille."""
        if quantity < 1:
            raise ValidationError("Quantité invalide")
        if not get_products_map(self.client, [product_id]):
            raise ValidationError(f"Produit introuvable: {product_id}", code="unknown_product")
        existing = repository.find_cart_line(self.client, user_id, product_id, size_variant)
        if existing:
            new_qty = int(existing.get("quantity") or 0) + quantity
            row = repository.update_cart_line_quantity(self.client, existing.get("id"), user_id, new_qty)
        else:
            row = repository.insert_cart_line(self.client, user_id, product_id, size_variant, quantity)
        logger.info("cart.add user_id=%s product_id=%s size=%s qty=%s", user_id, product_id, size_variant, quantity)
        return row or {}

    def update_quantity(self, user_id: str, line_id: Any, quantity: int) -> Optional[Dict[str, Any]]:
        """Fixe la quantité; en dessous de 1 la ligne est supprimée (retourne None)."""
        if not repository.get_cart_line(self.client, line_id, user_id):
            raise NotFound("Ligne de panier introuvable")
        if quantity < 1:
            repository.delete_cart_line(self.client, line_id, user_id)
            return None
        return repository.update_cart_line_quantity(self.client, line_id, user_id, quantity)

    def remove_item(self, user_id: str, line_id: Any) -> None:
        if not repository.delete_cart_line(self.client, line_id, user_id):
            raise NotFound("Ligne de panier introuvable")
