"""Flask application setup and common request hooks."""

import logging
import time
from uuid import uuid4

from flask import Flask, g, request
from flask_compress import Compress
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from config import Config

app = Flask(__name__)

logger = logging.getLogger(__name__)

Config.init_app(app)
app.json.sort_keys = False

db = SQLAlchemy(app)
migrate = Migrate(app, db)

# Rate limiting configuration for abuse protection
limiter = Limiter(
    app=app,
    key_func=get_remote_address,
    default_limits=app.config['RATELIMIT_DEFAULT_LIMITS'] or None,
    storage_uri=app.config['RATELIMIT_STORAGE_URI'],
    strategy="fixed-window",
    headers_enabled=True,
)

# Compressão HTTP das respostas JSON
compress = Compress(app)

REQUEST_ID_HEADER = "X-Request-ID"


@app.before_request
def _start_request_timer():
    """Store the start time and the correlation id of the request."""
    g.request_started_at = time.perf_counter()
    g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex


@app.after_request
def _log_request(response):
    """Log slow, failed and rate-limited requests."""
    started_at = g.get('request_started_at')
    if started_at is not None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        log_request_info(
            request,
            response,
            duration_ms,
            request_id=g.get('request_id'),
            slow_threshold_ms=app.config.get('SLOW_REQUEST_THRESHOLD_MS', 0) or 0,
        )
    return response


@app.after_request
def _set_response_headers(response):
    """Apply correlation, CORS and security headers to responses."""
    request_id = g.get('request_id')
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id

    response.headers.setdefault('Access-Control-Allow-Origin', '*')
    response.headers.setdefault('Access-Control-Allow-Methods', 'GET, POST, PUT, PATCH, DELETE, OPTIONS')
    response.headers.setdefault('Access-Control-Allow-Headers', f'Content-Type, {REQUEST_ID_HEADER}')
    response.headers.setdefault('Access-Control-Expose-Headers', REQUEST_ID_HEADER)

    response.headers.setdefault('X-Content-Type-Options', 'nosniff')
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
    response.headers.setdefault('Content-Security-Policy', "default-src 'none'; frame-ancestors 'none'")
    response.headers.setdefault('Cross-Origin-Resource-Policy', 'cross-origin')
    return response


# Importa rotas e modelos depois da criação do db
from app.models import tables  # noqa: E402,F401
from app.controllers.routes import register_blueprints  # noqa: E402
from app.repositories.sqlalchemy_repository import (  # noqa: E402
    SqlAlchemyTarefaRepository,
    registrar_funcoes_sqlite,
)
from app.services.tarefa_service import TarefaService  # noqa: E402
from app.utils.logging_config import log_request_info, setup_logging  # noqa: E402

register_blueprints(app)
app.extensions["tarefa_service"] = TarefaService(SqlAlchemyTarefaRepository(db))

with app.app_context():
    registrar_funcoes_sqlite(db.engine)
    db.create_all()
    # Setup structured logging with rotation (after the engine exists)
    setup_logging(app, db.engine)
