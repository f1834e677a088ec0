import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_current_active_user, get_current_user
from app.models.user import User
from app.repos import invoice_repo, payment_method_repo, subscription_repo
from app.schemas.billing import (
    CheckoutSessionRequest,
    InvoiceResponse,
    PaymentMethodResponse,
    RedirectResponse,
    SubscriptionResponse,
    SyncResponse,
)
from app.services.billing_client import (
    BillingError,
    create_checkout_session,
    create_customer,
    create_portal_session,
    list_card_payment_methods,
    set_cancel_at_period_end,
)
from app.services.subscription_service import SubscriptionNotFound, sync_profile_tier, sync_status

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/billing", tags=["billing"])


def _subscription_or_404(db: Session, user_id: str):
    subscription = subscription_repo.get_by_user(db, user_id)
    if not subscription:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found")
    return subscription


def _bad_gateway(user_id: str, action: str, e: BillingError) -> HTTPException:
    logger.warning("Billing %s failed for user=%s: %s", action, user_id, e)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Payment provider error: {action} failed")


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _subscription_or_404(db, user.id)


@router.post("/sync", response_model=SyncResponse)
def sync_subscription(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Recompute Profile.subscription_tier from the local Subscription row."""
    try:
        subscription, tier = sync_profile_tier(db, user.id)
    except SubscriptionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found") from e
    except Exception as e:
        logger.exception("Subscription sync failed for user=%s: %s", user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update profile") from e
    return SyncResponse(
        tier=tier,
        billing_cycle=subscription.billing_cycle,
        subscription=SubscriptionResponse.model_validate(subscription),
    )


@router.get("/sync")
def get_sync_status(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return sync_status(db, user.id)


@router.post("/checkout-session", response_model=RedirectResponse)
def checkout_session(
    body: CheckoutSessionRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    price_id = (
        settings.stripe_price_premium_yearly if body.billing_cycle == "yearly" else settings.stripe_price_premium_monthly
    )
    if not price_id:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Premium plan is not configured")

    subscription = subscription_repo.get_by_user(db, user.id)
    customer_id = subscription.stripe_customer_id if subscription else None
    try:
        if not customer_id:
            customer_id = create_customer(user.email, user.id)
            subscription_repo.upsert_for_user(db, user.id, {"stripe_customer_id": customer_id})
        url = create_checkout_session(customer_id, price_id, user.id)
    except BillingError as e:
        raise _bad_gateway(user.id, "checkout", e) from e
    logger.info("Checkout session created for user=%s cycle=%s", user.id, body.billing_cycle)
    return RedirectResponse(url=url)


@router.post("/portal-session", response_model=RedirectResponse)
def portal_session(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    subscription = _subscription_or_404(db, user.id)
    if not subscription.stripe_customer_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No billing account yet")
    try:
        return RedirectResponse(url=create_portal_session(subscription.stripe_customer_id))
    except BillingError as e:
        raise _bad_gateway(user.id, "portal", e) from e


def _set_cancel_flag(db: Session, user_id: str, cancel: bool) -> dict:
    subscription = _subscription_or_404(db, user_id)
    if not subscription.stripe_subscription_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No active paid subscription")
    try:
        set_cancel_at_period_end(subscription.stripe_subscription_id, cancel)
    except BillingError as e:
        raise _bad_gateway(user_id, "cancel" if cancel else "reactivate", e) from e
    return {"success": True}


@router.post("/cancel")
def cancel_subscription(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    """Cancel at period end. The local row changes when Stripe sends the update webhook."""
    return _set_cancel_flag(db, user.id, True)


@router.post("/reactivate")
def reactivate_subscription(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    return _set_cancel_flag(db, user.id, False)


@router.get("/invoices", response_model=list[InvoiceResponse])
def list_invoices(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return invoice_repo.list_for_user(db, user.id)


@router.get("/payment-methods", response_model=list[PaymentMethodResponse])
def list_payment_methods(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return payment_method_repo.list_for_user(db, user.id)


@router.post("/payment-methods/refresh", response_model=list[PaymentMethodResponse])
def refresh_payment_methods(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    """Pull the customer's cards from Stripe and replace the local cache."""
    subscription = _subscription_or_404(db, user.id)
    if not subscription.stripe_customer_id:
        return []
    try:
        cards = list_card_payment_methods(subscription.stripe_customer_id)
    except BillingError as e:
        raise _bad_gateway(user.id, "payment method refresh", e) from e
    return payment_method_repo.replace_for_user(db, user.id, cards)
