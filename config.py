import os
import logging
import secrets

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _get_int_env(var_name: str, default: int) -> int:
    """Safely parse integer environment variables with defaults."""
    value = os.getenv(var_name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Valor inválido para %s=%r; usando %s.", var_name, value, default)
        return default


def _build_database_uri(instance_path: str) -> str:
    """Resolve the SQLAlchemy URI from ``DATABASE_URL`` or the ``DB_*`` variables."""
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    db_user = os.getenv('DB_USER')
    db_password = os.getenv('DB_PASSWORD')
    db_host = os.getenv('DB_HOST')
    db_name = os.getenv('DB_NAME')

    missing_db_vars = [
        name for name, value in (
            ('DB_USER', db_user),
            ('DB_PASSWORD', db_password),
            ('DB_HOST', db_host),
            ('DB_NAME', db_name),
        )
        if value is None
    ]

    if missing_db_vars:
        logger.warning(
            "Variáveis de banco ausentes (%s); usando SQLite local em modo de fallback.",
            ", ".join(missing_db_vars),
        )
        os.makedirs(instance_path, exist_ok=True)
        fallback_db = os.path.join(instance_path, 'tarefas.db')
        return f"sqlite:///{fallback_db}"

    if db_password == "":
        logger.warning("DB_PASSWORD está vazio; conectando ao MySQL sem senha (apenas recomendado para desenvolvimento local).")
    return f"mysql+pymysql://{db_user}:{db_password}@{db_host}/{db_name}"


class Config:
    """Application configuration."""
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    APP_LOG_DIR = os.getenv("APP_LOG_DIR")
    SLOW_REQUEST_THRESHOLD_MS = float(os.getenv('SLOW_REQUEST_THRESHOLD_MS', '750'))
    SLOW_QUERY_THRESHOLD_MS = float(os.getenv('SLOW_QUERY_THRESHOLD_MS', '1000'))

    PAGE_SIZE_DEFAULT = _get_int_env("PAGE_SIZE_DEFAULT", 10)
    PAGE_SIZE_MAX = _get_int_env("PAGE_SIZE_MAX", 100)

    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI') or os.getenv('REDIS_URL') or "memory://"
    RATELIMIT_DEFAULT_LIMITS = [
        limit.strip()
        for limit in os.getenv('RATELIMIT_DEFAULT_LIMITS', '').split(',')
        if limit.strip()
    ]

    MAX_CONTENT_LENGTH = _get_int_env("MAX_CONTENT_LENGTH", 1024 * 1024)

    COMPRESS_MIMETYPES = ['application/json']
    COMPRESS_LEVEL = 6
    COMPRESS_MIN_SIZE = 500

    @classmethod
    def init_app(cls, app) -> None:
        """Copy settings into ``app.config`` and resolve the database URI."""
        for key in dir(cls):
            if key.isupper():
                app.config[key] = getattr(cls, key)

        app.config['SQLALCHEMY_DATABASE_URI'] = _build_database_uri(app.instance_path)

        if not app.config['SQLALCHEMY_DATABASE_URI'].startswith("sqlite"):
            engine_options = app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', {})
            engine_options.setdefault('pool_pre_ping', True)
            engine_options.setdefault('pool_recycle', 1800)
            engine_options.setdefault('pool_size', _get_int_env("DB_POOL_SIZE", 10))
            engine_options.setdefault('max_overflow', _get_int_env("DB_MAX_OVERFLOW", 20))

        if not app.config.get('SECRET_KEY'):
            app.config['SECRET_KEY'] = secrets.token_urlsafe(32)
            logger.warning("SECRET_KEY não definida; gerando valor temporário apenas para ambiente local.")
