"""Run ARQ worker. Usage: python -m app.worker.run_worker"""

from arq import run_worker
from arq.cron import cron

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.worker.tasks import get_redis_settings, reconcile_donations, shutdown, startup


class WorkerSettings:
    redis_settings = get_redis_settings()
    functions = [reconcile_donations]
    cron_jobs = [
        cron(reconcile_donations, second=0, run_at_startup=True),  # every minute at :00
    ]
    on_startup = startup
    on_shutdown = shutdown


def main() -> None:
    configure_logging(debug=get_settings().debug)
    run_worker(WorkerSettings)


if __name__ == "__main__":
    main()
