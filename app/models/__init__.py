from app.models.user import User
from app.models.profile import Profile
from app.models.company import Company
from app.models.application import Application
from app.models.subscription import Subscription
from app.models.invoice import Invoice
from app.models.payment_method import PaymentMethod
from app.models.deletion_log import DeletionLog

__all__ = [
    "User",
    "Profile",
    "Company",
    "Application",
    "Subscription",
    "Invoice",
    "PaymentMethod",
    "DeletionLog",
]
