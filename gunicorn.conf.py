# Gunicorn configuration for NexusHub
# AI drafting requests can take up to two minutes

# Worker settings
workers = 2
worker_class = 'sync'

# Timeout settings - generous for AI API calls
timeout = 150
graceful_timeout = 60
keepalive = 5

# Logging
accesslog = '-'
errorlog = '-'
loglevel = 'info'

# Request handling
max_requests = 1000
max_requests_jitter = 50

# Bind
bind = '0.0.0.0:5000'

# gunicorn -c gunicorn.conf.py "nexushub:create_app()"
