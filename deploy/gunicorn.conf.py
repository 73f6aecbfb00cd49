# Gunicorn configuration
# Workspaces and contest sessions live in process memory, so a single
# worker process serves every request; concurrency comes from threads.
# Run with: gunicorn -c deploy/gunicorn.conf.py "codearena:create_app('production')"

bind = "127.0.0.1:8000"
workers = 1
worker_class = "gthread"
threads = 8
timeout = 120
keepalive = 5
errorlog = "/var/log/codearena/gunicorn-error.log"
accesslog = "/var/log/codearena/gunicorn-access.log"
loglevel = "info"
