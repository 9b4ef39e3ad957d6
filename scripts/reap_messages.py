"""
Delete chat messages older than MESSAGE_RETENTION_MS.
For an external scheduler (cron, k8s CronJob) when the in-process reaper is not enough.

Run from project root: python -m scripts.reap_messages
"""
import logging
import sys

# Add project root so chatroom imports work
sys.path.insert(0, ".")

from chatroom.core.config import settings
from chatroom.core.database import SessionLocal
from chatroom.service.reaper import reap_expired_messages
from chatroom.utils.clock import now_ms

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def run_reap() -> int:
    db = SessionLocal()
    try:
        return reap_expired_messages(db, now=now_ms(), retention_ms=settings.MESSAGE_RETENTION_MS)
    finally:
        db.close()


if __name__ == "__main__":
    try:
        run_reap()
    except Exception as e:
        # Next scheduled run retries; exit non-zero so the scheduler records the failure.
        logger.error(f"Reaper run failed: {e}")
        sys.exit(1)
