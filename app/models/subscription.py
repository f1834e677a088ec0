from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.database import Base


class Subscription(Base):
    """Local cache of the user's Stripe subscription (one row per user)."""

    __tablename__ = "subscriptions"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    tier = Column(String, default="free", nullable=False)  # free | premium
    status = Column(String, default="active", nullable=False)  # active | canceled | past_due | trialing
    stripe_customer_id = Column(String, index=True)
    stripe_subscription_id = Column(String, index=True)
    billing_cycle = Column(String)  # monthly | yearly | NULL
    current_period_start = Column(DateTime(timezone=True))
    current_period_end = Column(DateTime(timezone=True))
    cancel_at_period_end = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
