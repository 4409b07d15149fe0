"""
Fournisseurs FastAPI (Depends): construisent les services à partir des clients
rangés dans app.state par le lifespan. Les tests remplacent get_service_client via
app.dependency_overrides pour injecter un double.
"""
from fastapi import Depends, Request

from storefront.cart.service import CartService, CartSnapshotReader
from storefront.errors import StoreUnavailable
from storefront.orders.service import OrderHistory, OrderWriter
from storefront.payments.reconciler import WebhookReconciler
from storefront.payments.redirect import PaymentRedirectBuilder


def get_service_client(request: Request):
    client = getattr(request.app.state, "supabase", None)
    if client is None:
        raise StoreUnavailable("Base de données non configurée")
    return client


def get_cart_reader(client=Depends(get_service_client)) -> CartSnapshotReader:
    return CartSnapshotReader(client)


def get_cart_service(client=Depends(get_service_client)) -> CartService:
    return CartService(client)


def get_order_writer(client=Depends(get_service_client)) -> OrderWriter:
    return OrderWriter(client)


def get_order_history(client=Depends(get_service_client)) -> OrderHistory:
    return OrderHistory(client)


def get_redirect_builder() -> PaymentRedirectBuilder:
    return PaymentRedirectBuilder()


def get_reconciler(client=Depends(get_service_client)) -> WebhookReconciler:
    return WebhookReconciler(client)
