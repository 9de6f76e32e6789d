"""Gunicorn configuration for the submission scoring service.

Usage:
    DOCUMENT_STORE_TYPE=redis REDIS_URL=redis://host:6379/0 \\
        gunicorn main:app -c deploy/gunicorn.conf.py

Workers share nothing but Redis, so multi-worker runs must use the Redis
document store; the in-memory store would give every worker its own data.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 2048

# ─── Worker processes ───────────────────────────────────────────
#
# Requests are short: a handful of Redis round-trips and in-process scoring.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────

timeout = 30
graceful_timeout = 15
keepalive = 5

max_requests = 10000
max_requests_jitter = 1000

# ─── Logging ────────────────────────────────────────────────────

accesslog = None  # RequestIdMiddleware logs each request
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

proc_name = "submission-scoring"

# ─── Server hooks ───────────────────────────────────────────────


def on_starting(server):
    store_type = os.getenv("DOCUMENT_STORE_TYPE", "memory")
    server.log.info(
        "Starting submission scoring: workers=%d, store=%s, bind=%s",
        workers,
        store_type,
        bind,
    )
    if store_type != "redis" and workers > 1:
        server.log.warning(
            "DOCUMENT_STORE_TYPE=%s with %d workers: each worker keeps its own submissions",
            store_type,
            workers,
        )


def worker_exit(server, worker):
    server.log.info("Worker exit (pid: %s)", worker.pid)
