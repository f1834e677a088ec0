from sqlalchemy import Column, String, DateTime, ForeignKey

from app.database import Base


class DeletionLog(Base):
    """Audit row per free-tier application deletion; drives the rolling 30-day quota."""

    __tablename__ = "deletion_log"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # No FK: the application row is gone by the time this is read
    application_id = Column(String, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=False, index=True)
