"""
Scheduler process for the risk core jobs.

Usage:
  python -m riskcore.scheduler.runner                     # start the scheduler
  python -m riskcore.scheduler.runner --run-now cleanup   # run one job once, then exit
"""
import argparse
import sys

from apscheduler.schedulers.blocking import BlockingScheduler

from riskcore.config import settings
from riskcore.logger import get_logger
from riskcore.scheduler.jobs import JOBS

logger = get_logger(__name__)


def run_job(name: str) -> dict:
    logger.info("scheduler_job_start", job=name)
    try:
        result = JOBS[name]()
    except Exception as e:
        logger.exception("scheduler_job_error", job=name, error=str(e))
        raise
    logger.info("scheduler_job_end", job=name, **result)
    return result


def build_scheduler() -> BlockingScheduler:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(run_job, "interval", args=["recompute"], id="risk_recompute",
                      hours=settings.recompute_interval_hours, max_instances=1, coalesce=True)
    scheduler.add_job(run_job, "interval", args=["release"], id="enforcement_release",
                      hours=settings.expiry_interval_hours, max_instances=1, coalesce=True)
    scheduler.add_job(run_job, "interval", args=["cleanup"], id="retention_cleanup",
                      hours=settings.cleanup_interval_hours, max_instances=1, coalesce=True)
    return scheduler


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the risk core periodic jobs.")
    parser.add_argument(
        "--run-now",
        choices=sorted(JOBS),
        help="Run one job immediately, then exit.",
    )
    args = parser.parse_args(argv)

    if args.run_now:
        try:
            run_job(args.run_now)
        except Exception:
            return 1
        return 0

    scheduler = build_scheduler()
    logger.info("scheduler_started", jobs=[job.id for job in scheduler.get_jobs()])
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("scheduler_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
