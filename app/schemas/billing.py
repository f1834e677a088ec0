from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class CheckoutSessionRequest(BaseModel):
    billing_cycle: Literal["monthly", "yearly"] = "monthly"


class RedirectResponse(BaseModel):
    url: str


class SubscriptionResponse(BaseModel):
    tier: str
    status: str
    billing_cycle: str | None = None
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False

    class Config:
        from_attributes = True


class SyncResponse(BaseModel):
    success: bool = True
    tier: str
    billing_cycle: str | None = None
    subscription: SubscriptionResponse


class InvoiceResponse(BaseModel):
    id: str
    stripe_invoice_id: str | None = None
    amount: int
    currency: str | None = None
    status: str
    invoice_pdf: str | None = None
    period_start: datetime | None = None
    period_end: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class PaymentMethodResponse(BaseModel):
    id: str
    stripe_payment_method_id: str
    brand: str | None = None
    last4: str | None = None
    exp_month: int | None = None
    exp_year: int | None = None
    is_default: bool = False

    class Config:
        from_attributes = True
