"""
Registro centralizado de blueprints da aplicacao.

Blueprints Disponiveis:
    - health_bp: Health check (/health)
    - tarefas_bp: API de tarefas (/api/tarefas)

Uso:
    from app.controllers.routes.blueprints import register_all_blueprints
    register_all_blueprints(app)
"""

from flask import Flask


def register_all_blueprints(app: Flask) -> None:
    """Registra todos os blueprints na aplicacao Flask."""
    # Health - verificacao de infraestrutura (/health)
    from app.controllers.routes.blueprints.health import health_bp
    app.register_blueprint(health_bp)

    # Tarefas - API REST de tarefas (/api/tarefas/*)
    from app.controllers.routes.blueprints.tarefas import tarefas_bp
    app.register_blueprint(tarefas_bp)
