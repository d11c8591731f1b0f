"""
Gunicorn configuration for the Journal Metrics server.

Env vars that override defaults:
  PORT     — TCP port to bind (default: 8000)

Runs a single worker: the app is a single writer, and sync job handles
live in the worker's memory, so a second worker could neither see nor
block a run started by the first.
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = 1

# Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Selective parses are awaited in the request; one LLM call per date.
timeout = 300

# stdout only.
loglevel = "info"
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
