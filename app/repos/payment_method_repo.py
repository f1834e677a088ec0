from sqlalchemy.orm import Session

from app.core.security import generate_id
from app.models.payment_method import PaymentMethod


def list_for_user(db: Session, user_id: str) -> list[PaymentMethod]:
    return (
        db.query(PaymentMethod)
        .filter(PaymentMethod.user_id == user_id)
        .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc())
        .all()
    )


def replace_for_user(db: Session, user_id: str, cards: list[dict]) -> list[PaymentMethod]:
    """Swap the user's cached cards for the list fetched from Stripe, in one commit."""
    db.query(PaymentMethod).filter(PaymentMethod.user_id == user_id).delete(synchronize_session=False)
    rows = []
    for card in cards:
        row = PaymentMethod(
            id=generate_id(),
            user_id=user_id,
            stripe_payment_method_id=card["stripe_payment_method_id"],
            brand=card.get("brand"),
            last4=card.get("last4"),
            exp_month=card.get("exp_month"),
            exp_year=card.get("exp_year"),
            is_default=bool(card.get("is_default")),
        )
        db.add(row)
        rows.append(row)
    db.commit()
    return rows
