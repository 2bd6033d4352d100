# ispdesk/services/billing_job.py
import logging

from sqlmodel import Session

from ..db.engine_sync import sync_engine
from .billing_service import BillingService

logger = logging.getLogger("BillingJob")


def run_billing_check(engine=None) -> dict | None:
    """
    Runs ONE overdue-invoice sweep.
    Called by the BillingScheduler at startup and then periodically.
    Never raises: a failed sweep is logged and the next one retries.
    """
    logger.info("--- RUNNING OVERDUE INVOICE SWEEP ---")

    try:
        with Session(engine or sync_engine) as session:
            stats = BillingService(session).process_overdue_invoices()
            logger.info(f"--- SWEEP FINISHED. Summary: {stats} ---")
            return stats
    except Exception as e:
        logger.critical(f"Critical error in overdue invoice sweep: {e}", exc_info=True)
        return None
