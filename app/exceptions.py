"""Exceções de domínio do serviço de tarefas."""

from __future__ import annotations

from typing import Mapping, Sequence


class TarefaError(Exception):
    """Base para erros de negócio das tarefas."""

    status_code = 500
    error = "Erro interno do servidor"


class TarefaNaoEncontradaError(TarefaError):
    """Nenhuma tarefa com o ID informado."""

    status_code = 404
    error = "Tarefa não encontrada"

    def __init__(self, tarefa_id: int):
        self.tarefa_id = tarefa_id
        super().__init__(f"Tarefa não encontrada com ID: {tarefa_id}")


class TarefaJaExisteError(TarefaError):
    """Título já utilizado por outra tarefa."""

    status_code = 409
    error = "Tarefa já existe"

    def __init__(self, titulo: str):
        self.titulo = titulo
        super().__init__(f"Já existe uma tarefa com o título: {titulo}")


class ValidacaoError(TarefaError):
    """Raised by the HTTP boundary when request fields violate constraints."""

    status_code = 400
    error = "Erro de validação"

    def __init__(self, erros: Mapping[str, Sequence[str]]):
        self.erros = {campo: list(mensagens) for campo, mensagens in erros.items()}
        campos = ", ".join(sorted(self.erros))
        super().__init__(f"Campos inválidos: {campos}")
