"""
Rewrite every profile's subscription_tier from its Subscription row.
Usage: python -m app.scripts.resync_subscription_tiers
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from app.database import SessionLocal
from app.logging_config import setup_logging
from app.repos.user_repo import get_all_ids
from app.services.subscription_service import SubscriptionNotFound, sync_profile_tier

logger = logging.getLogger(__name__)


def resync_all(db) -> dict:
    stats = {"synced": 0, "premium": 0, "missing_subscription": 0}
    for user_id in get_all_ids(db):
        try:
            _, tier = sync_profile_tier(db, user_id)
        except SubscriptionNotFound:
            stats["missing_subscription"] += 1
            logger.warning("No subscription row for user=%s", user_id)
            continue
        stats["synced"] += 1
        if tier == "premium":
            stats["premium"] += 1
    return stats


def main():
    setup_logging()
    db = SessionLocal()
    try:
        stats = resync_all(db)
        print(f"Resynced subscription tiers: {stats}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
