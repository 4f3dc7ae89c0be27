"""
Blueprint para health checks.

Rotas:
    - GET /health: Verifica a aplicacao e a conexao com o banco

Retorna 200 quando o banco responde a ``SELECT 1`` e 503 caso contrario.
Nao aplica rate limit para evitar falsos positivos de monitoramento.
"""

import sqlalchemy as sa
from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from app import db, limiter
from app.utils.datetime_utils import now_naive


# =============================================================================
# BLUEPRINT DEFINITION
# =============================================================================

health_bp = Blueprint('health', __name__)


# =============================================================================
# ROTAS
# =============================================================================

@health_bp.route("/health")
@limiter.exempt
def health_check():
    """
    Health check com verificacao de banco.

    Returns:
        200: {"status": "ok", "database": "ok", ...}
        503: {"status": "degraded", "database": "error", ...}
    """
    payload = {"timestamp": now_naive().isoformat(timespec="seconds")}
    try:
        db.session.execute(sa.text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("Health check falhou: %s", exc)
        payload.update(status="degraded", database="error")
        return jsonify(payload), 503

    payload.update(status="ok", database="ok")
    return jsonify(payload), 200
