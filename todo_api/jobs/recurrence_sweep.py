"""
Recurrence backfill job.

Run periodically (cron, systemd timer, Kubernetes CronJob) to create the
instances of recurring todos that were never completed in their period:

    todo-recurrence-sweep
"""

import json
import logging
import sys
from datetime import datetime
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from todo_api.config import get_settings
from todo_api.services.recurring_task_service import RecurringTaskService, SweepResult
from todo_api.utils.logger import configure_logging

logger = logging.getLogger(__name__)


def run_sweep(bind: Optional[Engine] = None, now: Optional[datetime] = None) -> SweepResult:
    """Run one backfill sweep in its own session and return the summary."""
    if bind is None:
        from todo_api.db.config import engine as bind

    with Session(bind) as session:
        return RecurringTaskService(session).process_overdue_recurrences(now=now)


def main() -> int:
    """Console entry point; exits non-zero when any task failed."""
    configure_logging(get_settings().log_level)
    logger.info("Starting recurrence sweep...")

    result = run_sweep()
    print(json.dumps(result.to_dict()))
    return 1 if result.failures else 0


if __name__ == "__main__":
    sys.exit(main())
