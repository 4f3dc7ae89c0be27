"""
Repositório de tarefas em memória.

Mantém a mesma semântica do repositório SQL (ids crescentes, título
único, ordenações e filtros de ``tarefa_queries``) sem depender de banco.
Usado nos testes do serviço e da API.

O store guarda cópias: alterações feitas em uma tarefa obtida por
``find_by_id`` só passam a valer depois de um ``save`` bem-sucedido.
"""

from __future__ import annotations

import itertools
import threading
from collections import Counter
from datetime import datetime
from typing import Callable

from app.exceptions import TarefaJaExisteError
from app.models.tables import PrioridadeTarefa, StatusTarefa, Tarefa
from app.services.tarefa_queries import (
    FiltroTarefas,
    PageRequest,
    Pagina,
    chave_urgencia,
    contem_texto,
    eh_possivelmente_vencida,
    paginar_em_memoria,
)
from app.utils.datetime_utils import now_naive


def _copia(tarefa: Tarefa) -> Tarefa:
    return Tarefa(**{coluna.key: getattr(tarefa, coluna.key) for coluna in Tarefa.__table__.columns})


class InMemoryTarefaRepository:
    def __init__(self, clock: Callable[[], datetime] = now_naive) -> None:
        self._clock = clock
        self._tarefas: dict[int, Tarefa] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def save(self, tarefa: Tarefa) -> Tarefa:
        with self._lock:
            for existente in self._tarefas.values():
                if existente.id != tarefa.id and existente.titulo == tarefa.titulo:
                    raise TarefaJaExisteError(tarefa.titulo)
            agora = self._clock()
            if tarefa.id is None:
                tarefa.id = next(self._ids)
            if tarefa.data_criacao is None:
                tarefa.data_criacao = agora
            tarefa.data_atualizacao = agora
            self._tarefas[tarefa.id] = _copia(tarefa)
            return tarefa

    def delete_by_id(self, tarefa_id: int) -> None:
        with self._lock:
            self._tarefas.pop(tarefa_id, None)

    def find_by_id(self, tarefa_id: int) -> Tarefa | None:
        tarefa = self._tarefas.get(tarefa_id)
        return _copia(tarefa) if tarefa is not None else None

    def find_by_titulo(self, titulo: str) -> Tarefa | None:
        return next((t for t in self._todas() if t.titulo == titulo), None)

    def exists_by_id(self, tarefa_id: int) -> bool:
        return tarefa_id in self._tarefas

    def exists_by_titulo(self, titulo: str) -> bool:
        return self.find_by_titulo(titulo) is not None

    def count(self) -> int:
        return len(self._tarefas)

    def _todas(self) -> list[Tarefa]:
        return sorted(self._tarefas.values(), key=lambda t: t.id)

    def _filtrar(self, predicate: Callable[[Tarefa], bool]) -> list[Tarefa]:
        return [t for t in self._todas() if predicate(t)]

    def find_by_status(self, status: StatusTarefa) -> list[Tarefa]:
        return self._filtrar(lambda t: t.status == status)

    def find_by_status_ordenado(self, status: StatusTarefa) -> list[Tarefa]:
        return sorted(self.find_by_status(status), key=chave_urgencia)

    def find_by_prioridade(self, prioridade: PrioridadeTarefa) -> list[Tarefa]:
        return self._filtrar(lambda t: t.prioridade == prioridade)

    def find_by_usuario_responsavel(self, usuario: str) -> list[Tarefa]:
        return self._filtrar(lambda t: t.usuario_responsavel == usuario)

    def find_by_categoria(self, categoria: str) -> list[Tarefa]:
        return self._filtrar(lambda t: t.categoria == categoria)

    def find_by_periodo(self, inicio: datetime, fim: datetime) -> list[Tarefa]:
        return self._filtrar(lambda t: inicio <= t.data_criacao <= fim)

    def find_vencidas(self, data_limite: datetime) -> list[Tarefa]:
        return self._filtrar(lambda t: eh_possivelmente_vencida(t, data_limite))

    def find_all(self, page_request: PageRequest) -> Pagina[Tarefa]:
        return paginar_em_memoria(self._todas(), page_request)

    def find_by_filtros(self, filtro: FiltroTarefas, page_request: PageRequest) -> Pagina[Tarefa]:
        return paginar_em_memoria(self._filtrar(filtro.aceita), page_request)

    def find_by_texto(self, texto: str, page_request: PageRequest) -> Pagina[Tarefa]:
        return paginar_em_memoria(self._filtrar(lambda t: contem_texto(t, texto)), page_request)

    def count_by_status(self) -> dict[StatusTarefa, int]:
        return dict(Counter(t.status for t in self._tarefas.values()))

    def count_by_prioridade(self) -> dict[PrioridadeTarefa, int]:
        return dict(Counter(t.prioridade for t in self._tarefas.values()))
