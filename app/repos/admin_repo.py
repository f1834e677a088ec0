"""Admin-specific repository functions for stats and system data."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.application import Application
from app.models.company import Company
from app.models.invoice import Invoice
from app.models.profile import Profile
from app.models.subscription import Subscription

# Monthly price in major currency units, used for the MRR estimate
PREMIUM_MONTHLY_PRICE = 12


def get_stats(db: Session) -> dict:
    """Return admin dashboard stats."""
    total_users = db.query(func.count(Profile.id)).scalar() or 0
    premium_users = db.query(func.count(Subscription.id)).filter(Subscription.tier == "premium").scalar() or 0
    active_subscriptions = (
        db.query(func.count(Subscription.id))
        .filter(Subscription.tier == "premium", Subscription.status == "active")
        .scalar()
        or 0
    )
    active_monthly = (
        db.query(func.count(Subscription.id))
        .filter(
            Subscription.tier == "premium",
            Subscription.status == "active",
            Subscription.billing_cycle == "monthly",
        )
        .scalar()
        or 0
    )
    total_applications = db.query(func.count(Application.id)).scalar() or 0
    companies = db.query(func.count(Company.id)).scalar() or 0
    paid_minor_units = (
        db.query(func.coalesce(func.sum(Invoice.amount), 0)).filter(Invoice.status == "paid").scalar() or 0
    )
    return {
        "total_users": total_users,
        "premium_users": premium_users,
        "active_subscriptions": active_subscriptions,
        "total_applications_tracked": total_applications,
        "companies": companies,
        "total_revenue": paid_minor_units / 100,
        "monthly_recurring_revenue": active_monthly * PREMIUM_MONTHLY_PRICE,
    }
