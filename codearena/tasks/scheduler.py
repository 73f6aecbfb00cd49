import logging
import threading
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)
scheduler = BackgroundScheduler()

_last_status = {}
_status_lock = threading.Lock()


def get_last_status():
    """Most recent executor health report, or None before the first probe."""
    with _status_lock:
        return dict(_last_status) if _last_status else None


def probe_executor(client):
    """Check the executor toolchain and remember the report."""
    report = client.check_environment()
    report['checkedAt'] = datetime.utcnow().isoformat()
    with _status_lock:
        _last_status.clear()
        _last_status.update(report)
    if not report.get('ok'):
        logger.warning(f"Executor environment unhealthy: {report.get('error')}")
    else:
        failing = [
            name for name, tool in (report.get('tools') or {}).items()
            if isinstance(tool, dict) and not tool.get('ok')
        ]
        if failing:
            logger.warning(f"Executor toolchain missing: {', '.join(failing)}")
    return report


def init_scheduler(app):
    """Initialize and start the scheduler with app context."""
    if not app.config.get('SCHEDULER_ENABLED', False):
        logger.info("Scheduler disabled by config")
        return

    minutes = app.config.get('EXECUTOR_PROBE_MINUTES', 5)

    @scheduler.scheduled_job('interval', minutes=minutes, id='executor_probe')
    def executor_probe_job():
        with app.app_context():
            probe_executor(app.execution_client)

    try:
        scheduler.start()
        logger.info(f"Scheduler started (executor probe every {minutes} min)")
    except Exception as e:
        logger.error(f"Scheduler failed to start: {e}")
