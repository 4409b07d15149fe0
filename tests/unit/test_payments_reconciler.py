import pytest

from storefront.errors import GatewayUnreachable, OrderNotFound, StoreUnavailable, Unauthorized
from storefront.payments.reconciler import WebhookReconciler, transition_for
from tests.helpers import TEST_PASSPHRASE, TEST_USER_ID, itn_fields, payable_order, signed_itn


@pytest.fixture
def paid_setup(fake_db):
    """Commande payable #1 (2 x Oud Royal) et un panier encore rempli."""
    fake_db.rows("orders").append(payable_order(1))
    fake_db.rows("order_items").append({"id": 1, "order_id": 1, "product_id": 1, "quantity": 2, "unit_price": 1000.0, "size_variant": "50ml"})
    fake_db.rows("cart_items").append({"id": 1, "user_id": TEST_USER_ID, "product_id": 1, "size_variant": "50ml", "quantity": 2})
    return fake_db


def _reconciler(db, **kw):
    kw.setdefault("passphrase", TEST_PASSPHRASE)
    kw.setdefault("validate_with_server", False)
    return WebhookReconciler(db, **kw)


@pytest.mark.parametrize("gateway_status, expected", [
    ("COMPLETE", ("confirmed", "paid")),
    ("CANCELLED", ("cancelled", "cancelled")),
    ("FAILED", ("failed", "failed")),
    ("PENDING", ("pending", "pending")),
    ("", ("pending", "pending")),
    (None, ("pending", "pending")),
])
def test_transition_table(gateway_status, expected):
    status, payment_status = transition_for(gateway_status)
    assert (status.value, payment_status.value) == expected


def test_complete_confirms_order_then_decrements_stock_and_clears_cart(paid_setup):
    result = _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1)))

    assert result.outcome == "applied"
    order = paid_setup.row("orders", 1)
    assert (order["status"], order["payment_status"]) == ("confirmed", "paid")
    assert order["payfast_payment_id"] == "1089250"
    assert order["updated_at"]
    assert paid_setup.row("products", 1)["stock_quantity"] == 3
    assert paid_setup.rows("cart_items") == []


def test_repeated_complete_is_a_duplicate_and_applies_once(paid_setup):
    reconciler = _reconciler(paid_setup)
    first = reconciler.reconcile(signed_itn(itn_fields(1)))
    updates_after_first = paid_setup.count("orders", "update")
    second = reconciler.reconcile(signed_itn(itn_fields(1)))

    assert (first.outcome, second.outcome) == ("applied", "duplicate")
    assert paid_setup.count("orders", "update") == updates_after_first
    assert paid_setup.row("products", 1)["stock_quantity"] == 3


@pytest.mark.parametrize("gateway_status, expected", [
    ("CANCELLED", ("cancelled", "cancelled")),
    ("FAILED", ("failed", "failed")),
    ("PENDING", ("pending", "pending")),
])
def test_other_statuses_apply_without_touching_stock(paid_setup, gateway_status, expected):
    result = _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1, payment_status=gateway_status)))

    assert result.outcome == "applied"
    order = paid_setup.row("orders", 1)
    assert (order["status"], order["payment_status"]) == expected
    assert paid_setup.row("products", 1)["stock_quantity"] == 5
    assert len(paid_setup.rows("cart_items")) == 1


def test_paid_order_ignores_later_cancellation(paid_setup):
    reconciler = _reconciler(paid_setup)
    reconciler.reconcile(signed_itn(itn_fields(1)))
    result = reconciler.reconcile(signed_itn(itn_fields(1, payment_status="CANCELLED")))

    assert result.outcome == "ignored"
    assert paid_setup.row("orders", 1)["payment_status"] == "paid"


def test_pending_then_complete_is_applied(paid_setup):
    reconciler = _reconciler(paid_setup)
    assert reconciler.reconcile(signed_itn(itn_fields(1, payment_status="PENDING"))).outcome == "applied"
    assert reconciler.reconcile(signed_itn(itn_fields(1, payment_status="PENDING"))).outcome == "duplicate"
    assert reconciler.reconcile(signed_itn(itn_fields(1))).outcome == "applied"
    assert paid_setup.row("orders", 1)["status"] == "confirmed"


def test_bad_signature_writes_nothing(paid_setup):
    fields = signed_itn(itn_fields(1), passphrase="mauvaise")
    with pytest.raises(Unauthorized):
        _reconciler(paid_setup).reconcile(fields)
    assert paid_setup.count("orders", "select") == 0
    assert paid_setup.row("orders", 1)["payment_status"] == "pending"


def test_amount_mismatch_is_rejected(paid_setup):
    with pytest.raises(Unauthorized):
        _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1, amount_gross="1.00")))
    assert paid_setup.row("orders", 1)["payment_status"] == "pending"


def test_amount_within_a_cent_is_accepted(paid_setup):
    result = _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1, amount_gross="1200.00")))
    assert result.outcome == "applied"


def test_unknown_order_raises_order_not_found(paid_setup):
    with pytest.raises(OrderNotFound):
        _reconciler(paid_setup).reconcile(signed_itn(itn_fields(999)))


def test_order_id_falls_back_to_custom_fields(paid_setup):
    fields = [(k, v) for k, v in itn_fields(1) if k != "m_payment_id"] + [("custom_int1", "1")]
    assert _reconciler(paid_setup).reconcile(signed_itn(fields)).outcome == "applied"


def test_draft_order_is_not_payable(fake_db):
    fake_db.rows("orders").append(payable_order(1, status="draft"))
    result = _reconciler(fake_db).reconcile(signed_itn(itn_fields(1)))
    assert result.outcome == "not_payable"
    assert fake_db.row("orders", 1)["payment_status"] == "pending"


def test_server_validation_rejection(paid_setup):
    seen = []

    def _validator(payload):
        seen.append(payload)
        return False

    with pytest.raises(Unauthorized):
        _reconciler(paid_setup, validate_with_server=True, server_validator=_validator).reconcile(signed_itn(itn_fields(1)))
    assert "passphrase" not in seen[0]
    assert "item_description=&" in seen[0]
    assert paid_setup.row("orders", 1)["payment_status"] == "pending"


def test_gateway_unreachable_propagates(paid_setup):
    def _validator(payload):
        raise GatewayUnreachable("timeout")

    with pytest.raises(GatewayUnreachable):
        _reconciler(paid_setup, validate_with_server=True, server_validator=_validator).reconcile(signed_itn(itn_fields(1)))


def test_concurrent_identical_delivery_is_a_duplicate(paid_setup):
    def _other_delivery(db):
        db.row("orders", 1).update({"status": "confirmed", "payment_status": "paid"})

    paid_setup.on_next("orders", "update", _other_delivery)
    result = _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1)))

    assert result.outcome == "duplicate"
    # le décrément appartient à la livraison gagnante
    assert paid_setup.row("products", 1)["stock_quantity"] == 5


def test_concurrent_conflicting_delivery_is_retryable(paid_setup):
    def _other_delivery(db):
        db.row("orders", 1).update({"status": "failed", "payment_status": "failed"})

    paid_setup.on_next("orders", "update", _other_delivery)
    with pytest.raises(StoreUnavailable):
        _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1)))


def test_store_failure_on_lookup_is_retryable(paid_setup):
    paid_setup.fail("orders", "select")
    with pytest.raises(StoreUnavailable):
        _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1)))


def test_post_payment_failures_are_not_fatal(paid_setup):
    paid_setup.fail("products", "update")
    paid_setup.fail("cart_items", "delete")

    result = _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1)))

    assert result.outcome == "applied"
    assert paid_setup.row("orders", 1)["payment_status"] == "paid"


def test_unsigned_notification_rejected_without_secret(paid_setup, monkeypatch):
    monkeypatch.setattr("storefront.config.PAYFAST_PASSPHRASE", "")
    monkeypatch.setattr("storefront.config.PAYFAST_VALIDATE_WITH_SERVER", False)
    forged = signed_itn(itn_fields(1), passphrase=None)

    with pytest.raises(Unauthorized):
        WebhookReconciler(paid_setup).reconcile(forged)

    order = paid_setup.row("orders", 1)
    assert (order["status"], order["payment_status"]) == ("pending_payment", "pending")
    assert paid_setup.row("products", 1)["stock_quantity"] == 5
    assert paid_setup.count("orders", "select") == 0


def test_no_passphrase_accepted_when_server_validates(paid_setup):
    reconciler = WebhookReconciler(paid_setup, passphrase="", validate_with_server=True, server_validator=lambda payload: True)
    assert reconciler.reconcile(signed_itn(itn_fields(1), passphrase=None)).outcome == "applied"


@pytest.mark.parametrize("amount", ["NaN", "sNaN", "Infinity", "-Infinity"])
def test_non_finite_amount_is_rejected(paid_setup, amount):
    with pytest.raises(Unauthorized):
        _reconciler(paid_setup).reconcile(signed_itn(itn_fields(1, amount_gross=amount)))
    assert paid_setup.row("orders", 1)["payment_status"] == "pending"


@pytest.mark.parametrize("gateway_status", ["complete", " COMPLETE", "Complete"])
def test_status_matching_is_exact(gateway_status):
    status, payment_status = transition_for(gateway_status)
    assert (status.value, payment_status.value) == ("pending", "pending")
