"""
Module 'cart' (feature-first): lignes de panier et lecture du snapshot de checkout.
"""
