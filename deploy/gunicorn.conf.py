"""Gunicorn configuration for the site change agent.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

Plans execute sequentially against one WordPress site; a single worker
keeps two executions from interleaving on the same content.
"""

import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:3001")

# ─── Worker processes ───────────────────────────────────────────

workers = int(os.getenv("WORKERS", "1"))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Plan generation: LLM call, 15-60s
# Execution: one REST round trip per command plus backup, retries included

timeout = 300
graceful_timeout = 60
keepalive = 5

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"                     # stdout
errorlog = "-"                      # stderr
loglevel = os.getenv("LOG_LEVEL", "info")

proc_name = "site-change-agent"


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting site change agent — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )
