from types import SimpleNamespace

import pytest

import app.services.subscription_service as subs

MONTHLY = "price_monthly_123"
YEARLY = "price_yearly_456"


class _Store:
    """In-memory stand-in for the subscription, profile and invoice repos."""

    def __init__(self):
        self.subscriptions = {}
        self.profile_tiers = {}
        self.invoices = []

    def install(self, monkeypatch):
        monkeypatch.setattr(subs.subscription_repo, "upsert_for_user", self.upsert_for_user)
        monkeypatch.setattr(subs.subscription_repo, "get_by_user", lambda db, uid: self.subscriptions.get(uid))
        monkeypatch.setattr(subs.subscription_repo, "get_by_stripe_subscription_id", self.by_stripe_id)
        monkeypatch.setattr(subs.profile_repo, "set_subscription_tier", self.set_tier)
        monkeypatch.setattr(
            subs.profile_repo,
            "get_by_id",
            lambda db, uid: SimpleNamespace(subscription_tier=self.profile_tiers[uid]) if uid in self.profile_tiers else None,
        )
        monkeypatch.setattr(subs.invoice_repo, "create", lambda db, uid, **kw: self.invoices.append(dict(kw, user_id=uid)))
        return self

    def upsert_for_user(self, db, user_id, values):
        row = self.subscriptions.setdefault(
            user_id,
            SimpleNamespace(
                user_id=user_id,
                tier="free",
                status="active",
                billing_cycle=None,
                stripe_subscription_id=None,
                stripe_customer_id=None,
                cancel_at_period_end=False,
                current_period_start=None,
                current_period_end=None,
            ),
        )
        for key, value in values.items():
            setattr(row, key, value)
        return row

    def by_stripe_id(self, db, stripe_id):
        return next((s for s in self.subscriptions.values() if s.stripe_subscription_id == stripe_id), None)

    def set_tier(self, db, user_id, tier):
        if user_id not in self.profile_tiers:
            return False
        self.profile_tiers[user_id] = tier
        return True


@pytest.fixture
def store(monkeypatch):
    monkeypatch.setattr(subs.settings, "stripe_price_premium_monthly", MONTHLY)
    monkeypatch.setattr(subs.settings, "stripe_price_premium_yearly", YEARLY)
    s = _Store().install(monkeypatch)
    s.profile_tiers["u1"] = "free"
    return s


def _sub_event(event_type, price=MONTHLY, status="active", user_id="u1", **extra):
    obj = {
        "id": "sub_1",
        "customer": "cus_1",
        "status": status,
        "metadata": {"userId": user_id} if user_id else {},
        "items": {"data": [{"price": {"id": price}, "current_period_start": 1767225600, "current_period_end": 1769904000}]},
        "cancel_at_period_end": False,
    }
    obj.update(extra)
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


def _invoice_event(event_type, invoice_id="in_1", sub_id="sub_1"):
    return {
        "id": "evt_2",
        "type": event_type,
        "data": {
            "object": {
                "id": invoice_id,
                "subscription": sub_id,
                "amount_paid": 999,
                "amount_due": 1999,
                "currency": "usd",
                "invoice_pdf": "https://stripe.test/in_1.pdf",
                "period_start": 1767225600,
                "period_end": 1769904000,
            }
        },
    }


def test_created_event_maps_price_to_premium_and_mirrors(store):
    assert subs.handle_event(object(), _sub_event("customer.subscription.created")) == "processed"
    row = store.subscriptions["u1"]
    assert (row.tier, row.billing_cycle, row.status) == ("premium", "monthly", "active")
    assert row.stripe_subscription_id == "sub_1"
    assert row.stripe_customer_id == "cus_1"
    assert row.current_period_end.year == 2026
    assert store.profile_tiers["u1"] == "premium"


def test_updated_event_yearly_and_passthrough_status(store):
    subs.handle_event(object(), _sub_event("customer.subscription.updated", price=YEARLY, status="past_due"))
    row = store.subscriptions["u1"]
    assert (row.tier, row.billing_cycle, row.status) == ("premium", "yearly", "past_due")


def test_other_stripe_statuses_store_as_active(store):
    subs.handle_event(object(), _sub_event("customer.subscription.updated", status="trialing"))
    assert store.subscriptions["u1"].status == "active"


def test_unmapped_price_is_free(store):
    subs.handle_event(object(), _sub_event("customer.subscription.updated", price="price_legacy"))
    row = store.subscriptions["u1"]
    assert row.tier == "free"
    assert row.billing_cycle is None
    assert store.profile_tiers["u1"] == "free"


def test_deleted_event_resets_to_free_canceled(store):
    subs.handle_event(object(), _sub_event("customer.subscription.created", cancel_at_period_end=True))
    assert subs.handle_event(object(), _sub_event("customer.subscription.deleted")) == "processed"
    row = store.subscriptions["u1"]
    assert row.tier == "free"
    assert row.status == "canceled"
    assert row.stripe_subscription_id is None
    assert row.billing_cycle is None
    assert row.cancel_at_period_end is False
    assert store.profile_tiers["u1"] == "free"
    assert subs.derived_tier(row) == "free"


def test_missing_user_metadata_is_dropped(store):
    assert subs.handle_event(object(), _sub_event("customer.subscription.created", user_id=None)) == "dropped"
    assert subs.handle_event(object(), _sub_event("customer.subscription.deleted", user_id=None)) == "dropped"
    assert store.subscriptions == {}


def test_invoice_events_record_paid_and_pending(store):
    subs.handle_event(object(), _sub_event("customer.subscription.created"))
    assert subs.handle_event(object(), _invoice_event("invoice.payment_succeeded")) == "processed"
    assert subs.handle_event(object(), _invoice_event("invoice.payment_failed", invoice_id="in_2")) == "processed"
    assert [(i["status"], i["amount"]) for i in store.invoices] == [("paid", 999), ("pending", 1999)]
    assert store.invoices[0]["user_id"] == "u1"


def test_redelivered_invoice_inserts_again(store):
    subs.handle_event(object(), _sub_event("customer.subscription.created"))
    event = _invoice_event("invoice.payment_succeeded")
    subs.handle_event(object(), event)
    subs.handle_event(object(), event)
    assert [i["stripe_invoice_id"] for i in store.invoices] == ["in_1", "in_1"]


def test_invoice_subscription_id_from_parent_details(store):
    subs.handle_event(object(), _sub_event("customer.subscription.created"))
    event = _invoice_event("invoice.payment_succeeded", sub_id=None)
    event["data"]["object"]["parent"] = {"subscription_details": {"subscription": "sub_1"}}
    assert subs.handle_event(object(), event) == "processed"


def test_invoice_for_unknown_subscription_is_dropped(store):
    assert subs.handle_event(object(), _invoice_event("invoice.payment_succeeded", sub_id="sub_other")) == "dropped"
    assert store.invoices == []


def test_unknown_event_type_is_ignored(store):
    assert subs.handle_event(object(), {"type": "charge.refunded", "data": {"object": {}}}) == "ignored"


def test_sync_round_trip(store):
    subs.handle_event(object(), _sub_event("customer.subscription.created"))
    store.profile_tiers["u1"] = "free"
    subscription, tier = subs.sync_profile_tier(object(), "u1")
    assert tier == "premium"
    assert store.profile_tiers["u1"] == "premium"
    assert subs.sync_status(object(), "u1")["in_sync"] is True

    subs.handle_event(object(), _sub_event("customer.subscription.deleted"))
    store.profile_tiers["u1"] = "premium"
    assert subs.sync_status(object(), "u1")["in_sync"] is False
    _, tier = subs.sync_profile_tier(object(), "u1")
    assert tier == "free"
    assert store.profile_tiers["u1"] == "free"


def test_sync_without_subscription_row(store):
    with pytest.raises(subs.SubscriptionNotFound):
        subs.sync_profile_tier(object(), "u1")
    status = subs.sync_status(object(), "u1")
    assert status["subscription"] is None
    assert status["derived_tier"] == "free"


def test_persistence_errors_propagate(store, monkeypatch):
    def _boom(db, user_id, values):
        raise RuntimeError("db down")

    monkeypatch.setattr(subs.subscription_repo, "upsert_for_user", _boom)
    with pytest.raises(RuntimeError):
        subs.handle_event(object(), _sub_event("customer.subscription.created"))
