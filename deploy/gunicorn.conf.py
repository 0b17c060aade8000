"""
Gunicorn configuration for BatchBook.

Room membership for the realtime channel lives in process memory, so the
default is one worker with many threads (Flask-SocketIO "threading" mode).
Raising GUNICORN_WORKERS requires sticky sessions at the load balancer and
still splits rooms per process.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
backlog = int(os.environ.get("GUNICORN_BACKLOG", "2048"))

worker_class = os.environ.get("GUNICORN_WORKER_CLASS", "gthread")
workers = int(os.environ.get("GUNICORN_WORKERS", "1"))
threads = int(os.environ.get("GUNICORN_THREADS", "100"))
max_requests = int(os.environ.get("GUNICORN_MAX_REQUESTS", "0"))
worker_tmp_dir = os.environ.get("GUNICORN_WORKER_TMP_DIR", "/dev/shm")

# Long-poll and websocket connections stay open well past a normal request.
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "120"))
graceful_timeout = int(os.environ.get("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.environ.get("GUNICORN_KEEPALIVE", "5"))

accesslog = os.environ.get("GUNICORN_ACCESSLOG", "-")
errorlog = os.environ.get("GUNICORN_ERRORLOG", "-")
loglevel = os.environ.get("GUNICORN_LOGLEVEL", "info")
capture_output = True
access_log_format = os.environ.get(
    "GUNICORN_ACCESS_LOG_FORMAT",
    '{"timestamp": "%(t)s", "remote": "%(h)s", "request": "%(r)s", '
    '"status": %(s)s, "bytes": %(b)s, "response_time": %(D)s, "pid": %(p)s}',
)

logconfig_path = Path(os.environ.get("GUNICORN_LOGCONFIG", "/app/deploy/logging.conf"))
if logconfig_path.exists():
    logconfig = str(logconfig_path)

preload_app = False
forwarded_allow_ips = os.environ.get("GUNICORN_FORWARDED_ALLOW_IPS", "*")
proc_name = os.environ.get("GUNICORN_PROC_NAME", "batchbook")
wsgi_app = os.environ.get("GUNICORN_WSGI_APP", "batchbook.wsgi:app")


def on_starting(server):
    logger = logging.getLogger(__name__)
    logger.info("Gunicorn starting: workers=%s threads=%s worker_class=%s", workers, threads, worker_class)
    if workers > 1:
        logger.warning("More than one worker: realtime rooms are not shared between processes")


def when_ready(server):
    logging.getLogger(__name__).info("Gunicorn ready. Listening on %s", bind)


def worker_abort(worker):
    logging.getLogger(__name__).warning("Worker %s timed out (>%ss), aborting", worker.pid, timeout)


def on_exit(server):
    logging.getLogger(__name__).info("Gunicorn exiting")
