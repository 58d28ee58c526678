"""
Gunicorn configuration for the user gateway.

Run with:  gunicorn app.main:app -c gunicorn.conf.py
Env vars that override defaults:
  PORT     — TCP port to bind (default: 3030)
  WORKERS  — number of worker processes (default: 2)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '3030')}"

workers = int(os.environ.get("WORKERS", "2"))

# Each worker runs Uvicorn's ASGI event loop; every worker loads its own
# copy of the schema registry in the app lifespan.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5
timeout = 30

# Application logs go through app.core.logging; these cover gunicorn itself.
loglevel = "info"
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
