"""
Daily sweep: mark subscriptions past their end date as expired.
Run: python -m scripts.expire_subscriptions
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

from app.db.session import SessionLocal
from app.services.subscription_service import expire_lapsed_subscriptions

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> int:
    db = SessionLocal()
    try:
        return expire_lapsed_subscriptions(db)
    finally:
        db.close()


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        logger.error(f"Subscription sweep failed: {e}", exc_info=True)
        sys.exit(1)
