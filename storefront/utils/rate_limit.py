from fastapi import Request, Response, HTTPException
import os
import time
import hashlib
import logging

from storefront.utils.security import COOKIE_NAME

logger = logging.getLogger(__name__)

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        def _user_key_from_request(req: Request) -> str:
            # Priorité: jeton de session (hashé) puis IP
            token = req.cookies.get(COOKIE_NAME)
            auth_header = req.headers.get("Authorization", "")
            if not token and auth_header.startswith("Bearer "):
                token = auth_header[7:].strip()
            path = req.url.path
            if token:
                h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
                return f"user:{h}:{path}"
            ip = req.client.host if req.client else "local"
            return f"ip:{ip}:{path}"

        # Fallback mémoire (dev) si demandé
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = _user_key_from_request(request)
            store = getattr(request.app.state, "_rl_store", {})
            # Purge des clés dont la fenêtre est expirée
            for k in [k for k, ts in store.items() if k != key and not any(now - t < seconds for t in ts)]:
                del store[k]
            hits = [t for t in store.get(key, []) if now - t < seconds]
            if len(hits) >= times:
                raise HTTPException(status_code=429, detail="Too Many Requests")
            hits.append(now)
            store[key] = hits
            request.app.state._rl_store = store
            return

        # Respecter le flag global posé par le lifespan
        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return _user_key_from_request(req)
        try:
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception:
            # Redis indisponible: pas de 429 en prod, on journalise
            logger.warning("rate limit backend error on %s", request.url.path, exc_info=True)
            return
    return _dep
