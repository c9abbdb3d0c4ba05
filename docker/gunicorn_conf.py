# Gunicorn configuration for pos-backup
# Only one worker may own the backup scheduler, otherwise every worker
# would fire the daily backup and the weekly cleanup.

import os
import logging

logger = logging.getLogger('gunicorn.error')

wsgi_app = 'pos_backup:create_app()'


def post_fork(server, worker):
    """
    Called in the worker process before it loads the application.

    Designates the first spawned worker (worker.age == 1) as the scheduler
    owner. A replacement worker gets a new age and runs HTTP only.

    Args:
        server: Gunicorn arbiter
        worker: Gunicorn worker instance (uses 'age' attribute: 1, 2, 3, ...)
    """
    if worker.age == 1:
        os.environ['SCHEDULER_WORKER'] = 'true'
        logger.info(f"Worker PID {worker.pid} (age={worker.age}): backup scheduler owner")
    else:
        os.environ['SCHEDULER_WORKER'] = 'false'
        logger.info(f"Worker PID {worker.pid} (age={worker.age}): HTTP only (scheduler disabled)")
