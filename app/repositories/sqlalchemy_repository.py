"""Repositório de tarefas sobre a sessão Flask-SQLAlchemy."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.exceptions import TarefaJaExisteError
from app.models.tables import PrioridadeTarefa, StatusTarefa, Tarefa
from app.services.tarefa_queries import (
    FiltroTarefas,
    PageRequest,
    Pagina,
    condicao_texto,
    condicao_vencida,
    consulta_tarefas,
    paginar_consulta,
    prioridade_rank_expr,
)
from app.utils.datetime_utils import now_naive

logger = logging.getLogger(__name__)

UNIQUE_TITULO_MARKERS = ("uq_tarefas_titulo", "tarefas_tb.titulo")


def _is_titulo_violation(exc: IntegrityError) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return any(marker in message for marker in UNIQUE_TITULO_MARKERS)


def _lower_unicode(valor):
    return valor.lower() if isinstance(valor, str) else valor


def registrar_funcoes_sqlite(engine) -> None:
    """Substitui o lower() do SQLite, que só converte ASCII, pelo str.lower do Python.

    Deve ser chamada antes da primeira conexão do engine.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.create_function("lower", 1, _lower_unicode)


class SqlAlchemyTarefaRepository:
    """Relational store backed by ``db.session``; must run inside an app context."""

    def __init__(self, db, clock: Callable[[], datetime] = now_naive) -> None:
        self._db = db
        self._clock = clock

    @property
    def session(self):
        return self._db.session

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    # ---- escrita ----

    def save(self, tarefa: Tarefa) -> Tarefa:
        agora = self._clock()
        if tarefa.data_criacao is None:
            tarefa.data_criacao = agora
        tarefa.data_atualizacao = agora
        self.session.add(tarefa)
        try:
            self._commit()
        except IntegrityError as exc:
            if _is_titulo_violation(exc):
                logger.warning("Violação de título único: %s", tarefa.titulo)
                raise TarefaJaExisteError(tarefa.titulo) from exc
            raise
        return tarefa

    def delete_by_id(self, tarefa_id: int) -> None:
        self.session.execute(sa.delete(Tarefa).where(Tarefa.id == tarefa_id))
        self._commit()

    # ---- leitura simples ----

    def find_by_id(self, tarefa_id: int) -> Tarefa | None:
        return self.session.get(Tarefa, tarefa_id)

    def find_by_titulo(self, titulo: str) -> Tarefa | None:
        return self.session.execute(
            consulta_tarefas(Tarefa.titulo == titulo)
        ).scalars().first()

    def exists_by_id(self, tarefa_id: int) -> bool:
        stmt = sa.select(sa.exists().where(Tarefa.id == tarefa_id))
        return bool(self.session.execute(stmt).scalar())

    def exists_by_titulo(self, titulo: str) -> bool:
        stmt = sa.select(sa.exists().where(Tarefa.titulo == titulo))
        return bool(self.session.execute(stmt).scalar())

    def count(self) -> int:
        return int(self.session.execute(sa.select(sa.func.count(Tarefa.id))).scalar_one())

    def _listar(self, *condicoes, order_by=None) -> list[Tarefa]:
        stmt = consulta_tarefas(*condicoes)
        stmt = stmt.order_by(*(order_by or [Tarefa.id.asc()]))
        return list(self.session.execute(stmt).scalars().all())

    def find_by_status(self, status: StatusTarefa) -> list[Tarefa]:
        return self._listar(Tarefa.status == status)

    def find_by_status_ordenado(self, status: StatusTarefa) -> list[Tarefa]:
        return self._listar(
            Tarefa.status == status,
            order_by=[prioridade_rank_expr().asc(), Tarefa.data_criacao.asc(), Tarefa.id.asc()],
        )

    def find_by_prioridade(self, prioridade: PrioridadeTarefa) -> list[Tarefa]:
        return self._listar(Tarefa.prioridade == prioridade)

    def find_by_usuario_responsavel(self, usuario: str) -> list[Tarefa]:
        return self._listar(Tarefa.usuario_responsavel == usuario)

    def find_by_categoria(self, categoria: str) -> list[Tarefa]:
        return self._listar(Tarefa.categoria == categoria)

    def find_by_periodo(self, inicio: datetime, fim: datetime) -> list[Tarefa]:
        return self._listar(Tarefa.data_criacao.between(inicio, fim))

    def find_vencidas(self, data_limite: datetime) -> list[Tarefa]:
        return self._listar(condicao_vencida(data_limite))

    # ---- consultas paginadas ----

    def find_all(self, page_request: PageRequest) -> Pagina[Tarefa]:
        return paginar_consulta(self.session, consulta_tarefas(), page_request)

    def find_by_filtros(self, filtro: FiltroTarefas, page_request: PageRequest) -> Pagina[Tarefa]:
        return paginar_consulta(self.session, consulta_tarefas(*filtro.condicoes()), page_request)

    def find_by_texto(self, texto: str, page_request: PageRequest) -> Pagina[Tarefa]:
        return paginar_consulta(self.session, consulta_tarefas(condicao_texto(texto)), page_request)

    # ---- agregações ----

    def count_by_status(self) -> dict[StatusTarefa, int]:
        rows = self.session.execute(
            sa.select(Tarefa.status, sa.func.count(Tarefa.id)).group_by(Tarefa.status)
        ).all()
        return {status: int(total) for status, total in rows}

    def count_by_prioridade(self) -> dict[PrioridadeTarefa, int]:
        rows = self.session.execute(
            sa.select(Tarefa.prioridade, sa.func.count(Tarefa.id)).group_by(Tarefa.prioridade)
        ).all()
        return {prioridade: int(total) for prioridade, total in rows}
