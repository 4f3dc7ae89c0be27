"""Application entry point for running the Flask app with Waitress."""
import logging
import os

from waitress import serve

from app import app
from config import _get_int_env


if __name__ == "__main__":
    waitress_log_level = os.getenv("WAITRESS_LOG_LEVEL", "info").upper()
    logging.getLogger("waitress").setLevel(waitress_log_level)

    host = os.getenv("WAITRESS_HOST", "127.0.0.1")
    port = _get_int_env("WAITRESS_PORT", 8080)
    threads = _get_int_env("WAITRESS_THREADS", 16)
    connection_limit = _get_int_env("WAITRESS_CONNECTION_LIMIT", 128)
    backlog = _get_int_env("WAITRESS_BACKLOG", 256)
    channel_timeout = _get_int_env("WAITRESS_CHANNEL_TIMEOUT", 30)
    expose_tracebacks = os.getenv("WAITRESS_EXPOSE_TRACEBACKS", "0") == "1"

    app.logger.info(
        "Starting Waitress: host=%s port=%s threads=%s channel_timeout=%s",
        host,
        port,
        threads,
        channel_timeout,
    )

    serve(
        app,
        host=host,
        port=port,
        threads=threads,
        channel_timeout=channel_timeout,
        connection_limit=connection_limit,
        backlog=backlog,
        clear_untrusted_proxy_headers=True,
        max_request_body_size=app.config.get("MAX_CONTENT_LENGTH"),
        expose_tracebacks=app.debug or expose_tracebacks,
    )
