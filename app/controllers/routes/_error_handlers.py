"""
Handlers de erro centralizados para a aplicacao.

Este modulo centraliza o tratamento de erros HTTP e excecoes,
garantindo o mesmo corpo JSON para todas as respostas de erro:

    {"status", "error", "message", "path", "timestamp"}

acrescido de "errors" (mensagens por campo) nas falhas de validacao.

Error Handlers:
    - TarefaError: erros de negocio (400, 404, 409)
    - 404: Rota inexistente
    - 405: Metodo nao permitido
    - 429: Rate limit excedido
    - SQLAlchemyError: Erros de banco de dados (rollback)
    - Exception / 500: Erro interno do servidor (rollback)
"""

from flask import Flask, Response, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from app import db
from app.exceptions import TarefaError, ValidacaoError
from app.utils.datetime_utils import now_naive
from app.utils.logging_config import log_exception

MENSAGEM_ERRO_INTERNO = "Ocorreu um erro inesperado. Tente novamente mais tarde."


# =============================================================================
# FUNCOES AUXILIARES
# =============================================================================

def api_error_response(
    error: str,
    status_code: int,
    message: str | None = None,
    errors: dict | None = None,
) -> tuple[Response, int]:
    """
    Cria resposta JSON padronizada para erros de API.

    Args:
        error: Titulo curto do erro (ex: "Tarefa não encontrada").
        status_code: Codigo HTTP do erro.
        message: Mensagem descritiva.
        errors: Mensagens por campo, apenas para validacao.

    Returns:
        tuple[Response, int]: Resposta JSON e codigo de status.
    """
    response_data = {
        "status": status_code,
        "error": error,
        "message": message or error,
        "path": request.path,
        "timestamp": now_naive().isoformat(timespec="seconds"),
    }
    if errors is not None:
        response_data["errors"] = errors

    return jsonify(response_data), status_code


def _rollback_session() -> None:
    db.session.rollback()


# =============================================================================
# REGISTRO DE ERROR HANDLERS
# =============================================================================

def register_error_handlers(app: Flask) -> None:
    """
    Registra todos os error handlers na aplicacao Flask.

    Uso:
        from app.controllers.routes._error_handlers import register_error_handlers
        register_error_handlers(app)
    """

    @app.errorhandler(ValidacaoError)
    def handle_validation_error(e: ValidacaoError):
        app.logger.info("Validacao falhou em %s %s: %s", request.method, request.path, e.erros)
        return api_error_response(e.error, e.status_code, str(e), errors=e.erros)

    @app.errorhandler(TarefaError)
    def handle_business_error(e: TarefaError):
        app.logger.info("%s em %s %s: %s", type(e).__name__, request.method, request.path, e)
        return api_error_response(e.error, e.status_code, str(e))

    @app.errorhandler(404)
    def handle_not_found(e):
        return api_error_response("Recurso não encontrado", 404, f"Rota não encontrada: {request.path}")

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return api_error_response(
            "Método não permitido",
            405,
            f"Método {request.method} não suportado para {request.path}",
        )

    @app.errorhandler(429)
    def handle_rate_limit(e):
        """Registra excecao e retorna mensagem apropriada."""
        log_exception(e, request)
        return api_error_response(
            "Limite de requisições excedido",
            429,
            f"Muitas requisições ({e.description}). Aguarde antes de tentar novamente.",
        )

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        """Registra excecao e faz rollback da transacao falha."""
        log_exception(e, request)
        _rollback_session()
        return api_error_response("Erro interno do servidor", 500, MENSAGEM_ERRO_INTERNO)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        return api_error_response(e.name, e.code or 500, e.description)

    @app.errorhandler(Exception)
    def handle_internal_error(e):
        """
        Trata qualquer excecao nao prevista.

        Registra excecao, faz rollback de transacoes pendentes
        e retorna mensagem generica.
        """
        log_exception(e, request)
        _rollback_session()
        return api_error_response("Erro interno do servidor", 500, MENSAGEM_ERRO_INTERNO)
