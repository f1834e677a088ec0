from datetime import datetime

from sqlalchemy.orm import Session

from app.core.security import generate_id
from app.models.invoice import Invoice


def create(
    db: Session,
    user_id: str,
    *,
    stripe_invoice_id: str | None,
    amount: int,
    currency: str | None,
    status: str,
    invoice_pdf: str | None = None,
    period_start: datetime | None = None,
    period_end: datetime | None = None,
) -> Invoice:
    # Plain insert: no lookup on stripe_invoice_id, so redelivered events add another row.
    invoice = Invoice(
        id=generate_id(),
        user_id=user_id,
        stripe_invoice_id=stripe_invoice_id,
        amount=amount,
        currency=currency,
        status=status,
        invoice_pdf=invoice_pdf,
        period_start=period_start,
        period_end=period_end,
    )
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


def list_for_user(db: Session, user_id: str, limit: int = 50) -> list[Invoice]:
    return (
        db.query(Invoice)
        .filter(Invoice.user_id == user_id)
        .order_by(Invoice.created_at.desc())
        .limit(limit)
        .all()
    )
