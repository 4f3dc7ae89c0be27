"""
Rotas HTTP da aplicacao.

Estrutura:
    - blueprints/: rotas agrupadas por dominio (health, tarefas)
    - _error_handlers.py: tratamento centralizado de erros em JSON
"""

from flask import Flask

from app.controllers.routes._error_handlers import register_error_handlers


def register_blueprints(flask_app: Flask) -> None:
    """
    Registra blueprints e error handlers da aplicacao.

    Args:
        flask_app: Instancia da aplicacao Flask.
    """
    from app.controllers.routes.blueprints import register_all_blueprints

    register_all_blueprints(flask_app)
    register_error_handlers(flask_app)
