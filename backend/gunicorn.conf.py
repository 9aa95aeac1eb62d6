import os

wsgi_app = "supportdesk:create_app()"

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = int(os.getenv("GUNICORN_THREADS", "1"))
timeout = 60
graceful_timeout = 30
keepalive = 5

# Each worker builds its own app (and verification thread); the Redis lock
# keeps ticks exclusive across workers.
preload_app = False

# Logs to stdout/stderr
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Proxy headers
forwarded_allow_ips = "*"
proxy_protocol = False


def worker_exit(server, worker):
    """Stop the verification thread before the worker process exits."""
    app = getattr(worker, "wsgi", None)
    extensions = getattr(app, "extensions", {}) if app is not None else {}
    scheduler = extensions.get("domain_verification")
    if scheduler is not None:
        scheduler.stop(timeout=graceful_timeout)
