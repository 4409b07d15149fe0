"""Boutique de parfums: backend du cycle panier -> commande -> paiement PayFast."""

__version__ = "1.0.0"
