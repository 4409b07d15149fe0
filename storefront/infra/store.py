"""
Exécution des requêtes Supabase avec conversion des échecs en StoreUnavailable.
Les repositories passent par execute() pour que toute erreur (APIError, timeout httpx...)
remonte sous une forme unique, réessayable par l'appelant.
"""
import logging
from typing import Any, Dict, List, Optional

from storefront.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def execute(query, action: str):
    try:
        return query.execute()
    except Exception as e:
        logger.exception("store.%s failed", action)
        raise StoreUnavailable(f"Base de données indisponible ({action})") from e


def rows(res) -> List[Dict[str, Any]]:
    data = getattr(res, "data", None) or []
    if isinstance(data, dict):
        return [data]
    return list(data)


def first(res) -> Optional[Dict[str, Any]]:
    data = rows(res)
    return data[0] if data else None
