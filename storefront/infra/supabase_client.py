"""
Construction des clients Supabase.
Aucune instance globale: le lifespan construit les clients et les range dans app.state,
les vues les reçoivent par injection (storefront.dependencies).
"""
from typing import Optional
from supabase import Client, ClientOptions, create_client
from storefront import config


def _options() -> ClientOptions:
    # Délai borné pour toute requête PostgREST
    return ClientOptions(postgrest_client_timeout=config.STORE_TIMEOUT_SECONDS)


def create_anon_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Client 'anon': lecture de session (auth.get_user)."""
    url = url or config.SUPABASE_URL
    key = key or config.SUPABASE_ANON
    if not url or not key:
        raise RuntimeError("SUPABASE_URL/SUPABASE_ANON_KEY manquants")
    return create_client(url, key, options=_options())


def create_service_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Client service-role (bypass RLS): toutes les écritures du cycle commande/paiement."""
    url = url or config.SUPABASE_URL
    key = key or config.SUPABASE_SERVICE_KEY
    if not url or not key:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour create_service_client()")
    return create_client(url, key, options=_options())
