# gunicorn.conf.py
bind = "0.0.0.0:8000"
workers = 2  # Number of worker processes
threads = 4  # Each request fans out to Directus on its own thread pool
timeout = 180  # Worker timeout in seconds
keepalive = 5  # Keep-alive connections
graceful_timeout = 30  # Graceful worker restart timeout
