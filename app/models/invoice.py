from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.database import Base


class Invoice(Base):
    """Append-only billing event. Not unique on stripe_invoice_id (webhook redeliveries insert again)."""

    __tablename__ = "invoices"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    stripe_invoice_id = Column(String, index=True)
    amount = Column(Integer, nullable=False, default=0)  # minor currency units
    currency = Column(String, default="usd")
    status = Column(String, nullable=False)  # paid | pending
    invoice_pdf = Column(String)
    period_start = Column(DateTime(timezone=True))
    period_end = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
