"""Gunicorn configuration for production deployment."""

# Server socket
bind = '0.0.0.0:8000'

# Worker processes: 1 worker with 8 threads.
# Search and booking state is held per process, so more workers need sticky sessions.
workers = 1
threads = 8
worker_class = 'gthread'

# Timeout: REST API calls take up to 10s per attempt, GETs are retried 3 times
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logging
accesslog = '/app/logs/gunicorn-access.log'
errorlog = '/app/logs/gunicorn-error.log'
loglevel = 'info'
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = 'homestay'

# Preload app for faster worker startups
preload_app = True

# No worker recycling: a restart drops in-memory client state
max_requests = 0

# Security
limit_request_line = 8190
limit_request_fields = 100
limit_request_field_size = 8190
