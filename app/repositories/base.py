"""
Port (interface) do armazenamento de tarefas.

O serviço depende deste Protocol e não de uma implementação concreta,
o que permite trocar o banco relacional por um armazenamento em memória
nos testes.

Implementações:
    - SqlAlchemyTarefaRepository: sessão Flask-SQLAlchemy
    - InMemoryTarefaRepository: dicionário em processo
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from app.models.tables import PrioridadeTarefa, StatusTarefa, Tarefa
from app.services.tarefa_queries import FiltroTarefas, PageRequest, Pagina


class TarefaRepository(Protocol):
    def save(self, tarefa: Tarefa) -> Tarefa:
        """Persist ``tarefa``; assigns id/creation date once and bumps the update date.

        Raises ``TarefaJaExisteError`` when the unique title constraint is violated.
        """
        ...

    def find_by_id(self, tarefa_id: int) -> Tarefa | None: ...

    def find_by_titulo(self, titulo: str) -> Tarefa | None: ...

    def exists_by_id(self, tarefa_id: int) -> bool: ...

    def exists_by_titulo(self, titulo: str) -> bool: ...

    def delete_by_id(self, tarefa_id: int) -> None: ...

    def count(self) -> int: ...

    def find_all(self, page_request: PageRequest) -> Pagina[Tarefa]: ...

    def find_by_filtros(self, filtro: FiltroTarefas, page_request: PageRequest) -> Pagina[Tarefa]: ...

    def find_by_status(self, status: StatusTarefa) -> list[Tarefa]: ...

    def find_by_status_ordenado(self, status: StatusTarefa) -> list[Tarefa]:
        """Tasks with ``status`` ordered by urgency rank, then creation date."""
        ...

    def find_by_prioridade(self, prioridade: PrioridadeTarefa) -> list[Tarefa]: ...

    def find_by_usuario_responsavel(self, usuario: str) -> list[Tarefa]: ...

    def find_by_categoria(self, categoria: str) -> list[Tarefa]: ...

    def find_by_periodo(self, inicio: datetime, fim: datetime) -> list[Tarefa]: ...

    def find_by_texto(self, texto: str, page_request: PageRequest) -> Pagina[Tarefa]: ...

    def find_vencidas(self, data_limite: datetime) -> list[Tarefa]: ...

    def count_by_status(self) -> dict[StatusTarefa, int]: ...

    def count_by_prioridade(self) -> dict[PrioridadeTarefa, int]: ...
