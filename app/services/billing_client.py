"""Thin wrapper over the Stripe SDK. Everything Stripe-specific stays in this module."""

import json
import logging

import stripe

from app.config import settings

logger = logging.getLogger(__name__)


class BillingError(Exception):
    """Stripe is not configured or rejected a request."""


class WebhookVerificationError(Exception):
    """Webhook payload could not be authenticated against the signing secret."""


def _configure() -> None:
    if not settings.stripe_secret_key:
        raise BillingError("Stripe is not configured")
    stripe.api_key = settings.stripe_secret_key


def verify_webhook(payload: bytes, sig_header: str | None) -> dict:
    """Check the Stripe-Signature header and return the decoded event."""
    if not settings.stripe_webhook_secret:
        raise WebhookVerificationError("Webhook signing secret is not configured")
    if not sig_header:
        raise WebhookVerificationError("Missing Stripe-Signature header")
    try:
        text = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(text, sig_header, settings.stripe_webhook_secret)
        event = json.loads(text)
    except stripe.SignatureVerificationError as e:
        raise WebhookVerificationError(f"Signature mismatch: {e}") from e
    except ValueError as e:
        raise WebhookVerificationError(f"Payload is not valid JSON: {e}") from e
    if not isinstance(event, dict) or "type" not in event:
        raise WebhookVerificationError("Payload is not a Stripe event")
    return event


def create_customer(email: str, user_id: str) -> str:
    _configure()
    try:
        customer = stripe.Customer.create(email=email, metadata={"userId": user_id})
    except stripe.StripeError as e:
        raise BillingError(f"Failed to create customer: {e}") from e
    logger.info("Stripe customer %s created for user=%s", customer["id"], user_id)
    return customer["id"]


def create_checkout_session(customer_id: str, price_id: str, user_id: str) -> str:
    """Subscription-mode checkout. userId rides on both the session and the subscription metadata."""
    _configure()
    base_url = settings.app_base_url.rstrip("/")
    try:
        session = stripe.checkout.Session.create(
            customer=customer_id,
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=f"{base_url}/dashboard?upgrade=success",
            cancel_url=f"{base_url}/billing?upgrade=canceled",
            metadata={"userId": user_id},
            subscription_data={"metadata": {"userId": user_id}},
            allow_promotion_codes=True,
        )
    except stripe.StripeError as e:
        raise BillingError(f"Failed to create checkout session: {e}") from e
    return session["url"]


def create_portal_session(customer_id: str) -> str:
    _configure()
    try:
        session = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=f"{settings.app_base_url.rstrip('/')}/billing",
        )
    except stripe.StripeError as e:
        raise BillingError(f"Failed to create portal session: {e}") from e
    return session["url"]


def set_cancel_at_period_end(subscription_id: str, cancel: bool) -> None:
    """Cancel or reactivate at Stripe. Local state follows through customer.subscription.updated."""
    _configure()
    try:
        stripe.Subscription.modify(subscription_id, cancel_at_period_end=cancel)
    except stripe.StripeError as e:
        raise BillingError(f"Failed to update subscription: {e}") from e
    logger.info("Stripe subscription %s cancel_at_period_end=%s", subscription_id, cancel)


def list_card_payment_methods(customer_id: str) -> list[dict]:
    """Cards on file for a customer, shaped for payment_method_repo.replace_for_user."""
    _configure()
    try:
        customer = stripe.Customer.retrieve(customer_id)
        methods = stripe.PaymentMethod.list(customer=customer_id, type="card")
    except stripe.StripeError as e:
        raise BillingError(f"Failed to list payment methods: {e}") from e

    default_id = (customer.get("invoice_settings") or {}).get("default_payment_method")
    cards = []
    for pm in methods["data"]:
        card = pm.get("card") or {}
        cards.append(
            {
                "stripe_payment_method_id": pm["id"],
                "brand": card.get("brand"),
                "last4": card.get("last4"),
                "exp_month": card.get("exp_month"),
                "exp_year": card.get("exp_year"),
                "is_default": pm["id"] == default_id,
            }
        )
    return cards
