from fastapi import Request, HTTPException, Depends
from typing import Dict, Any

from storefront.auth.repository import get_user_from_access_token

COOKIE_NAME = "sb_access"

def get_current_user(request: Request) -> Dict[str, Any]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)

    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")

    client = getattr(request.app.state, "supabase_anon", None)
    if client is None:
        raise HTTPException(status_code=401, detail="Authentification indisponible")
    try:
        # Protocole de session délégué à Supabase Auth (opaque)
        raw = get_user_from_access_token(client, token)
    except Exception:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    if not raw.get("id"):
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return {"id": raw.get("id"), "email": raw.get("email"), "metadata": raw.get("user_metadata") or {}, "token": token}

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
