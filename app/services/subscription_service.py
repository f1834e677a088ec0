"""
Subscription state machine driven by Stripe webhooks, plus the manual tier sync.

The Subscription row is the source of truth. Profile.subscription_tier is a denormalized mirror
and is only ever written through mirror_profile_tier, by both the webhook path and the sync path.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.config import settings
from app.models.subscription import Subscription
from app.repos import invoice_repo, profile_repo, subscription_repo

logger = logging.getLogger(__name__)

FREE = "free"
PREMIUM = "premium"
PASSTHROUGH_STATUSES = {"canceled", "past_due"}

SUBSCRIPTION_CHANGED = {"customer.subscription.created", "customer.subscription.updated"}
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
INVOICE_STATUS_BY_EVENT = {
    "invoice.payment_succeeded": "paid",
    "invoice.payment_failed": "pending",
}


class SubscriptionNotFound(LookupError):
    pass


def price_map() -> dict[str, tuple[str, str]]:
    """Stripe price id -> (tier, billing_cycle)."""
    mapping = {}
    if settings.stripe_price_premium_monthly:
        mapping[settings.stripe_price_premium_monthly] = (PREMIUM, "monthly")
    if settings.stripe_price_premium_yearly:
        mapping[settings.stripe_price_premium_yearly] = (PREMIUM, "yearly")
    return mapping


def tier_for_price(price_id: str | None) -> tuple[str, str | None]:
    mapped = price_map().get(price_id or "")
    if mapped:
        return mapped
    # Unmapped prices fall back to free, even for a paying customer.
    logger.warning("Unmapped Stripe price id %r; treating subscription as free", price_id)
    return FREE, None


def _from_epoch(value) -> datetime | None:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _first_item(stripe_sub: dict) -> dict:
    items = (stripe_sub.get("items") or {}).get("data") or []
    return items[0] if items else {}


def mirror_profile_tier(db: Session, user_id: str, tier: str) -> bool:
    """Single writer of Profile.subscription_tier."""
    updated = profile_repo.set_subscription_tier(db, user_id, tier)
    if not updated:
        logger.warning("Tier mirror skipped: no profile for user=%s", user_id)
    return updated


def _on_subscription_changed(db: Session, stripe_sub: dict) -> str:
    user_id = (stripe_sub.get("metadata") or {}).get("userId")
    if not user_id:
        logger.warning("Subscription %s has no userId metadata; dropping event", stripe_sub.get("id"))
        return "dropped"

    item = _first_item(stripe_sub)
    tier, billing_cycle = tier_for_price((item.get("price") or {}).get("id"))
    raw_status = stripe_sub.get("status")
    status = raw_status if raw_status in PASSTHROUGH_STATUSES else "active"
    customer = stripe_sub.get("customer")

    values = {
        "tier": tier,
        "status": status,
        "stripe_subscription_id": stripe_sub.get("id"),
        "billing_cycle": billing_cycle,
        "current_period_start": _from_epoch(stripe_sub.get("current_period_start") or item.get("current_period_start")),
        "current_period_end": _from_epoch(stripe_sub.get("current_period_end") or item.get("current_period_end")),
        "cancel_at_period_end": bool(stripe_sub.get("cancel_at_period_end")),
    }
    if isinstance(customer, str) and customer:
        values["stripe_customer_id"] = customer

    subscription_repo.upsert_for_user(db, user_id, values)
    mirror_profile_tier(db, user_id, tier)
    logger.info("Subscription upserted for user=%s tier=%s status=%s cycle=%s", user_id, tier, status, billing_cycle)
    return "processed"


def _on_subscription_deleted(db: Session, stripe_sub: dict) -> str:
    user_id = (stripe_sub.get("metadata") or {}).get("userId")
    if not user_id:
        logger.warning("Deleted subscription %s has no userId metadata; dropping event", stripe_sub.get("id"))
        return "dropped"
    subscription_repo.upsert_for_user(
        db,
        user_id,
        {
            "tier": FREE,
            "status": "canceled",
            "stripe_subscription_id": None,
            "billing_cycle": None,
            "cancel_at_period_end": False,
        },
    )
    mirror_profile_tier(db, user_id, FREE)
    logger.info("Subscription canceled for user=%s; downgraded to free", user_id)
    return "processed"


def _invoice_subscription_id(invoice: dict) -> str | None:
    sub_id = invoice.get("subscription")
    if isinstance(sub_id, dict):
        sub_id = sub_id.get("id")
    if sub_id:
        return sub_id
    # Newer API versions nest it under parent.subscription_details
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return details.get("subscription")


def _on_invoice(db: Session, invoice: dict, status: str) -> str:
    sub_id = _invoice_subscription_id(invoice)
    owner = subscription_repo.get_by_stripe_subscription_id(db, sub_id) if sub_id else None
    if not owner:
        logger.warning("Invoice %s references unknown subscription %r; dropping event", invoice.get("id"), sub_id)
        return "dropped"
    amount = invoice.get("amount_paid") if status == "paid" else invoice.get("amount_due")
    invoice_repo.create(
        db,
        owner.user_id,
        stripe_invoice_id=invoice.get("id"),
        amount=int(amount or 0),
        currency=invoice.get("currency"),
        status=status,
        invoice_pdf=invoice.get("invoice_pdf"),
        period_start=_from_epoch(invoice.get("period_start")),
        period_end=_from_epoch(invoice.get("period_end")),
    )
    logger.info("Invoice %s recorded as %s for user=%s", invoice.get("id"), status, owner.user_id)
    return "processed"


def handle_event(db: Session, event: dict) -> str:
    """
    Apply one verified Stripe event. Returns "processed", "dropped" or "ignored".
    Persistence errors propagate so the webhook answers 500 and Stripe retries.
    """
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    logger.info("Stripe event received: id=%s type=%s", event.get("id"), event_type)

    if event_type in SUBSCRIPTION_CHANGED:
        return _on_subscription_changed(db, obj)
    if event_type == SUBSCRIPTION_DELETED:
        return _on_subscription_deleted(db, obj)
    if event_type in INVOICE_STATUS_BY_EVENT:
        return _on_invoice(db, obj, INVOICE_STATUS_BY_EVENT[event_type])
    logger.debug("Stripe event type %s ignored", event_type)
    return "ignored"


def derived_tier(subscription: Subscription | None) -> str:
    """Tier implied by the local row: premium iff a Stripe subscription id is recorded."""
    return PREMIUM if subscription and subscription.stripe_subscription_id else FREE


def sync_profile_tier(db: Session, user_id: str) -> tuple[Subscription, str]:
    """Rewrite the profile mirror from the local Subscription row."""
    subscription = subscription_repo.get_by_user(db, user_id)
    if not subscription:
        raise SubscriptionNotFound(f"No subscription for user {user_id}")
    tier = derived_tier(subscription)
    mirror_profile_tier(db, user_id, tier)
    logger.info("Profile tier synced for user=%s tier=%s", user_id, tier)
    return subscription, tier


def sync_status(db: Session, user_id: str) -> dict:
    subscription = subscription_repo.get_by_user(db, user_id)
    profile = profile_repo.get_by_id(db, user_id)
    return {
        "subscription": (
            {
                "tier": subscription.tier,
                "status": subscription.status,
                "billing_cycle": subscription.billing_cycle,
                "stripe_subscription_id": subscription.stripe_subscription_id,
            }
            if subscription
            else None
        ),
        "profile_tier": profile.subscription_tier if profile else None,
        "derived_tier": derived_tier(subscription),
        "in_sync": bool(profile and profile.subscription_tier == derived_tier(subscription)),
    }
