import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.billing_client import WebhookVerificationError, verify_webhook
from app.services.subscription_service import handle_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    """Verified Stripe events drive the subscription state machine. Unverifiable payloads are not processed."""
    # Raw body for the signature check; sync DB work runs in the threadpool.
    payload = await request.body()
    try:
        event = verify_webhook(payload, request.headers.get("stripe-signature"))
    except WebhookVerificationError as e:
        logger.warning("Stripe webhook rejected: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook signature verification failed") from e

    try:
        outcome = await run_in_threadpool(handle_event, db, event)
    except Exception as e:
        await run_in_threadpool(db.rollback)
        logger.exception("Stripe webhook handler failed for event=%s type=%s: %s", event.get("id"), event.get("type"), e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook handler failed") from e
    return {"received": True, "outcome": outcome}
