import logging
from typing import Optional
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from storefront.dependencies import get_reconciler
from storefront.errors import GatewayUnreachable, OrderNotFound, StoreUnavailable, Unauthorized
from storefront.payments.reconciler import WebhookReconciler
from storefront.payments.returns import resolve_return

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module storefront.payments.views
@router.post("/payfast/notify", include_in_schema=False)
async def payfast_notify(request: Request, reconciler: WebhookReconciler = Depends(get_reconciler)):
    """
    Webhook PayFast (ITN): corps application/x-www-form-urlencoded.
    - 200 "OK" sur toute décision terminale (appliquée, doublon, ignorée, commande inconnue)
      pour stopper les relances de la passerelle.
    - 403 si la notification n'est pas authentifiée (aucune écriture).
    - 500 sur échec local (base/passerelle injoignable): la relance est souhaitée.
    - 405 pour toute autre méthode (route POST uniquement).
    """
    body = await request.body()
    fields = parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True)
    try:
        result = await run_in_threadpool(reconciler.reconcile, fields)
        logger.info("payments.notify order_id=%s outcome=%s", result.order_id, result.outcome)
        return PlainTextResponse("OK")
    except OrderNotFound as e:
        logger.warning("payments.notify commande inconnue: %s", e.order_id)
        return PlainTextResponse("OK")
    except Unauthorized as e:
        logger.warning("payments.notify rejetée: %s", e)
        return PlainTextResponse("Invalid notification", status_code=403)
    except (StoreUnavailable, GatewayUnreachable) as e:
        logger.error("payments.notify échec local: %s", e)
        return JSONResponse(status_code=500, content={"detail": e.message, "code": e.code})
    except Exception:
        logger.exception("Erreur payments.notify")
        return JSONResponse(status_code=500, content={"detail": "Erreur interne"})


@router.get("/return")
def payment_return(order_id: Optional[str] = None, payment_status: Optional[str] = None):
    """Page de retour navigateur: message indicatif, jamais d'écriture."""
    return resolve_return(order_id=order_id, payment_status=payment_status)
