"""
APScheduler configuration for periodic backups and retention cleanup.

Manages:
- Scheduled full backups (cron expression, daily by default)
- Scheduled retention cleanup (cron expression, weekly by default)
- Extra interval triggers
"""

import logging
import re
from typing import Callable, Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from pos_backup.backup.orchestrator import BackupOrchestrator, BackupInProgressError
from pos_backup.backup.retention import RetentionManager
from pos_backup.models import BackupOptions


logger = logging.getLogger(__name__)

BACKUP_JOB_ID = 'scheduled_full_backup'
CLEANUP_JOB_ID = 'retention_cleanup'

# Crontab numbering: 0 and 7 are both Sunday
CRONTAB_WEEKDAYS = ('sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun')


def _crontab_day_of_week(field: str) -> str:
    """
    Translate a crontab day-of-week field to APScheduler weekday names.

    APScheduler counts weekdays from Monday, crontab from Sunday, so numeric
    values, ranges and steps are expanded to names. Name tokens pass through.

    Raises:
        ValueError: If a numeric value is outside 0-7
    """
    days = []
    for token in field.split(','):
        base, _, step = token.partition('/')
        if base == '*':
            if not step:
                return '*'
            start, end = 0, 6
        elif base.isdigit():
            start = int(base)
            end = 6 if step else start
        elif re.fullmatch(r'\d+-\d+', base):
            start, end = (int(value) for value in base.split('-'))
        else:
            days.append(token)
            continue

        if end > 7 or start > end:
            raise ValueError(f"Invalid day of week: {token}")

        for value in range(start, end + 1, int(step) if step else 1):
            name = CRONTAB_WEEKDAYS[value]
            if name not in days:
                days.append(name)

    return ','.join(days)


def crontab_trigger(expression: str, timezone_name: str = 'UTC') -> CronTrigger:
    """
    Build a CronTrigger from a standard 5-field crontab expression.

    Raises:
        ValueError: If the expression is malformed
    """
    values = expression.split()
    if len(values) != 5:
        raise ValueError(f"Wrong number of fields; got {len(values)}, expected 5")

    minute, hour, day, month, day_of_week = values
    return CronTrigger(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=_crontab_day_of_week(day_of_week),
        timezone=timezone_name
    )


class RetentionScheduler:
    """
    Background triggers for full backups and retention cleanup.

    Trigger bodies log failures and return; the next scheduled tick is the
    retry.

    Args:
        orchestrator: BackupOrchestrator to run backups with
        retention: RetentionManager to run cleanup with
        backup_cron: Crontab expression for full backups
        cleanup_cron: Crontab expression for cleanup
        timezone_name: Timezone the crontab expressions are evaluated in
    """

    def __init__(
        self,
        orchestrator: BackupOrchestrator,
        retention: RetentionManager,
        backup_cron: str = '0 2 * * *',
        cleanup_cron: str = '0 3 * * 0',
        timezone_name: str = 'UTC',
    ):
        self.orchestrator = orchestrator
        self.retention = retention
        self.backup_cron = backup_cron
        self.cleanup_cron = cleanup_cron
        self.timezone_name = timezone_name
        self.scheduler = None

    def init(self):
        """
        Create the APScheduler instance and register both triggers.

        Returns:
            The BackgroundScheduler (created once)
        """
        if self.scheduler is not None:
            return self.scheduler

        executors = {
            'default': ThreadPoolExecutor(max_workers=2)
        }

        job_defaults = {
            'coalesce': True,  # Combine multiple pending instances into one
            'max_instances': 1,  # Only one instance of a job at a time
            'misfire_grace_time': 300  # 5 minutes grace period for misfires
        }

        self.scheduler = BackgroundScheduler(
            executors=executors,
            job_defaults=job_defaults,
            timezone=self.timezone_name
        )

        self.scheduler.add_job(
            func=self.run_scheduled_backup,
            trigger=crontab_trigger(self.backup_cron, self.timezone_name),
            id=BACKUP_JOB_ID,
            name='Scheduled Full Backup',
            replace_existing=True
        )

        self.scheduler.add_job(
            func=self.run_scheduled_cleanup,
            trigger=crontab_trigger(self.cleanup_cron, self.timezone_name),
            id=CLEANUP_JOB_ID,
            name='Scheduled Backup Cleanup',
            replace_existing=True
        )

        return self.scheduler

    def start(self):
        """
        Start the scheduler.

        Raises:
            RuntimeError: If init() has not been called
        """
        if self.scheduler is None:
            raise RuntimeError("Scheduler not initialized. Call init() first.")

        if self.scheduler.running:
            logger.info(f"Scheduler already running (state={self.scheduler.state})")
            return

        self.scheduler.start()
        logger.info("Backup schedules initialized")
        for job in self.get_jobs():
            logger.info(f"  - {job['id']}: {job['name']} (next run: {job['next_run'] or 'N/A'})")

    def stop(self):
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Backup scheduler stopped")

    def is_running(self) -> bool:
        return self.scheduler is not None and bool(self.scheduler.running)

    def every(self, interval_seconds: int, func: Callable, job_id: str, name: Optional[str] = None):
        """
        Register an extra fixed-interval trigger.

        Raises:
            RuntimeError: If init() has not been called
        """
        if self.scheduler is None:
            raise RuntimeError("Scheduler not initialized. Call init() first.")

        return self.scheduler.add_job(
            func=func,
            trigger=IntervalTrigger(seconds=interval_seconds, timezone=self.timezone_name),
            id=job_id,
            name=name or job_id,
            replace_existing=True
        )

    def get_jobs(self) -> list:
        """
        Get list of all scheduled jobs.

        Returns:
            List of dicts with job information
        """
        if self.scheduler is None:
            return []

        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, 'next_run_time', None)
            jobs.append({
                'id': job.id,
                'name': job.name,
                'next_run': next_run.isoformat() if next_run else None,
                'trigger': str(job.trigger)
            })
        return jobs

    def run_scheduled_backup(self, options: Optional[BackupOptions] = None):
        """Trigger body for full backups."""
        logger.info("Starting scheduled full backup")
        try:
            metadata = self.orchestrator.create_full_backup(options or BackupOptions())
            logger.info(f"Scheduled backup {metadata.id} completed with status: {metadata.status}")
        except BackupInProgressError:
            logger.warning("Scheduled backup skipped: another backup is in progress")
        except Exception as e:
            logger.error(f"Scheduled backup failed: {e}")

    def run_scheduled_cleanup(self):
        """Trigger body for retention cleanup."""
        logger.info("Starting scheduled backup cleanup")
        try:
            summary = self.retention.cleanup_old_backups()
            logger.info(
                f"Scheduled cleanup finished: {len(summary['deleted'])} deleted, "
                f"{len(summary['errors'])} errors"
            )
        except Exception as e:
            logger.error(f"Scheduled cleanup failed: {e}")
