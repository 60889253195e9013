"""Gunicorn configuration: one process owns one pod index, threads serve callbacks."""
import os
import sys

# Gunicorn config variables
bind = f"0.0.0.0:{os.getenv('EXTENDER_PORT', '80')}"
workers = 1  # each worker would run its own watch; one is enough
worker_class = "gthread"
threads = int(os.getenv("EXTENDER_THREADS", "8"))
timeout = 120
preload_app = False
wsgi_app = "app:build_app()"


def post_worker_init(worker):
    """Called just after a worker has initialized the application."""
    app = worker.wsgi
    index = app.config.get('pod_index') if app is not None and hasattr(app, 'config') else None
    if index is None:
        print(f"[Worker {worker.pid}] WARNING: No pod index found in app.config", file=sys.stderr, flush=True)
        return
    print(f"[Worker {worker.pid}] Pod index ready with {len(index)} active pods", file=sys.stderr, flush=True)
