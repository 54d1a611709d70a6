"""Scheduler process for the recurring WhatsApp Web link check.

Run separately from the API/CLI using:
    python -m influencia.jobs.scheduler
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from influencia.adapters.session import teardown_profiles
from influencia.config import DispatchConfig, load_config
from influencia.jobs.session_check import run_session_check

INDIA_TZ = ZoneInfo("Asia/Kolkata")
JOB_ID = "whatsapp_session_check"

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure process-wide logging for scheduler mode."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _log_job_state(scheduler: BlockingScheduler, event: JobExecutionEvent) -> None:
    """Log last and next run metadata for observability."""
    job = scheduler.get_job(event.job_id)
    job_next_run = getattr(job, "next_run_time", None) if job else None
    next_run = job_next_run.isoformat() if job_next_run else "none"
    last_run_at = (
        event.scheduled_run_time.astimezone(INDIA_TZ).isoformat()
        if event.scheduled_run_time
        else datetime.now(tz=INDIA_TZ).isoformat()
    )

    if event.exception:
        logger.error(
            "Job %s failed at %s; next run at %s",
            event.job_id,
            last_run_at,
            next_run,
            exc_info=event.exception,
        )
        return

    status = (event.retval or {}).get("status", "unknown")
    logger.info("Job %s completed at %s with status=%s; next run at %s", event.job_id, last_run_at, status, next_run)


def build_scheduler(config: DispatchConfig) -> BlockingScheduler:
    """Build and configure the scheduler instance."""
    scheduler = BlockingScheduler(timezone=INDIA_TZ)

    interval_minutes = config.status_check_minutes
    trigger = IntervalTrigger(minutes=interval_minutes, timezone=INDIA_TZ)
    scheduler.add_job(
        run_session_check,
        trigger=trigger,
        kwargs={"config": config},
        id=JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=300,
        next_run_time=datetime.now(tz=INDIA_TZ),
    )

    scheduler.add_listener(
        lambda event: _log_job_state(scheduler, event),
        EVENT_JOB_EXECUTED | EVENT_JOB_ERROR,
    )

    logger.info("Registered %s every %s minutes (%s)", JOB_ID, interval_minutes, INDIA_TZ.key)
    return scheduler


def main(argv: list[str] | None = None) -> None:
    """Entrypoint for a dedicated scheduler process."""
    parser = argparse.ArgumentParser(description="Periodically check the WhatsApp Web link state")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Execute the status check immediately and exit (manual mode)",
    )
    args = parser.parse_args(argv)

    configure_logging()
    config = load_config()

    if args.once:
        logger.info("Running in manual mode: executing %s once", JOB_ID)
        try:
            result = run_session_check(config=config)
        finally:
            teardown_profiles()
        logger.info("Manual execution of %s completed with status=%s", JOB_ID, result["status"])
        return

    scheduler = build_scheduler(config)
    logger.info("Starting scheduler process")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopping")
    finally:
        teardown_profiles()


if __name__ == "__main__":
    main()
