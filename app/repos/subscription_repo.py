from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from app.core.security import generate_id
from app.models.subscription import Subscription


def get_by_user(db: Session, user_id: str) -> Subscription | None:
    return db.query(Subscription).filter(Subscription.user_id == user_id).first()


def get_by_user_for_update(db: Session, user_id: str) -> Subscription | None:
    """SELECT ... FOR UPDATE; serializes per-user billing-gated writes inside one transaction."""
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id)
        .with_for_update()
        .first()
    )


def get_by_stripe_subscription_id(db: Session, stripe_subscription_id: str) -> Subscription | None:
    return (
        db.query(Subscription)
        .filter(Subscription.stripe_subscription_id == stripe_subscription_id)
        .first()
    )


def create_default(db: Session, user_id: str, *, commit: bool = True) -> Subscription:
    subscription = Subscription(
        id=generate_id(),
        user_id=user_id,
        tier="free",
        status="active",
        cancel_at_period_end=False,
    )
    db.add(subscription)
    if commit:
        db.commit()
        db.refresh(subscription)
    return subscription


def upsert_for_user(db: Session, user_id: str, values: dict) -> None:
    """INSERT ... ON CONFLICT (user_id) DO UPDATE. Two webhook deliveries for one user converge."""
    stmt = pg_insert(Subscription).values(id=generate_id(), user_id=user_id, **values)
    update_cols = {k: stmt.excluded[k] for k in values}
    update_cols["updated_at"] = func.now()
    stmt = stmt.on_conflict_do_update(index_elements=[Subscription.user_id], set_=update_cols)
    db.execute(stmt)
    db.commit()


def count_by(db: Session, tier: str | None = None, status: str | None = None, billing_cycle: str | None = None) -> int:
    q = db.query(Subscription)
    if tier:
        q = q.filter(Subscription.tier == tier)
    if status:
        q = q.filter(Subscription.status == status)
    if billing_cycle:
        q = q.filter(Subscription.billing_cycle == billing_cycle)
    return q.count()
