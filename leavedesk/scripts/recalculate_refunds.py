"""
Recalculate refund amounts of refundable leave records from the current fee configuration.

Meant to be called by an external scheduler every REFUND_RECALC_INTERVAL_MINUTES.
Does nothing unless REFUND_RECALC_ENABLED is set, or --force is given.
Idempotent: a second run with unchanged fee config updates nothing.

Usage:
  python -m leavedesk.scripts.recalculate_refunds
  python -m leavedesk.scripts.recalculate_refunds --force
"""

import argparse
import asyncio
import logging
from typing import Optional

from leavedesk.api.v1.leaves.recalculate import recalculate_refunds
from leavedesk.api.v1.leaves.schemas import RecalculationResult
from leavedesk.core.config import settings
from leavedesk.core.logging import configure_logging
from leavedesk.db.session import AsyncSessionLocal


logger = logging.getLogger("leavedesk.scripts.recalculate_refunds")


async def run_recalculation(force: bool = False) -> Optional[RecalculationResult]:
    """Run one recalculation pass. Returns None when skipped because the job is disabled."""
    if not force and not settings.refund_recalc_enabled:
        logger.info("Refund recalculation disabled (REFUND_RECALC_ENABLED=false); skipping")
        return None

    async with AsyncSessionLocal() as session:
        result = await recalculate_refunds(session)
    logger.info(
        "%s. Next scheduled run in %d minutes.", result.message, settings.refund_recalc_interval_minutes
    )
    return result


def main() -> None:
    parser = argparse.ArgumentParser(description="Recalculate leave refund amounts from current fee configs")
    parser.add_argument("--force", action="store_true", help="Run even if REFUND_RECALC_ENABLED is false")
    args = parser.parse_args()
    configure_logging(settings.log_level)
    asyncio.run(run_recalculation(force=args.force))


if __name__ == "__main__":
    main()
