"""
Composição de consultas de tarefas.

Este módulo concentra as regras de filtragem, ordenação e paginação
usadas pelos repositórios. Cada regra existe em duas formas com a mesma
semântica:

    - Expressões SQLAlchemy, usadas por ``SqlAlchemyTarefaRepository``
    - Predicados e chaves Python, usados por ``InMemoryTarefaRepository``

Regras:
    - Filtros opcionais (status, prioridade, usuário, categoria) combinados
      com AND; critério ausente não restringe o resultado
    - Ordenação por urgência: URGENTE, ALTA, MEDIA, BAIXA e, em seguida,
      data de criação crescente
    - Busca textual sem diferenciar maiúsculas em título ou descrição
    - Tarefas possivelmente vencidas: PENDENTE, com estimativa e criadas
      há mais de ``PRAZO_VENCIMENTO``

Uso:
    from app.services.tarefa_queries import FiltroTarefas, PageRequest

    filtro = FiltroTarefas(status=StatusTarefa.PENDENTE)
    pagina = repository.find_by_filtros(filtro, PageRequest(page=0, size=10))
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Generic, Iterable, TypeVar

import sqlalchemy as sa
from sqlalchemy.orm import Session

from app.constants import CAMPOS_ORDENAVEIS, PRAZO_VENCIMENTO
from app.models.tables import PrioridadeTarefa, StatusTarefa, Tarefa

T = TypeVar("T")
U = TypeVar("U")

DIRECOES = ("asc", "desc")


# =============================================================================
# PAGINACAO
# =============================================================================

@dataclass(frozen=True)
class PageRequest:
    """Página solicitada (0-based) com ordenação opcional."""

    page: int = 0
    size: int = 10
    sort_by: str | None = None
    direction: str = "asc"

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError("page deve ser maior ou igual a zero")
        if self.size <= 0:
            raise ValueError("size deve ser maior que zero")
        if self.sort_by is not None and self.sort_by not in CAMPOS_ORDENAVEIS:
            raise ValueError(f"campo de ordenação inválido: {self.sort_by}")
        if self.direction not in DIRECOES:
            raise ValueError(f"direção de ordenação inválida: {self.direction}")

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


@dataclass
class Pagina(Generic[T]):
    """Uma página de resultados e os totais do conjunto completo."""

    items: list[T]
    total_elements: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total_elements / self.size)

    def map(self, fn: Callable[[T], U]) -> "Pagina[U]":
        return Pagina(
            items=[fn(item) for item in self.items],
            total_elements=self.total_elements,
            page=self.page,
            size=self.size,
        )

    def to_dict(self, serialize: Callable[[T], Any] | None = None) -> dict:
        items = [serialize(item) for item in self.items] if serialize else list(self.items)
        return {
            "items": items,
            "total_elements": self.total_elements,
            "total_pages": self.total_pages,
            "page": self.page,
            "size": self.size,
        }


# =============================================================================
# FILTROS
# =============================================================================

@dataclass(frozen=True)
class FiltroTarefas:
    """Critérios opcionais; ``None`` significa "qualquer valor"."""

    status: StatusTarefa | None = None
    prioridade: PrioridadeTarefa | None = None
    usuario: str | None = None
    categoria: str | None = None

    @property
    def vazio(self) -> bool:
        return (
            self.status is None
            and self.prioridade is None
            and self.usuario is None
            and self.categoria is None
        )

    def condicoes(self) -> list:
        """SQL conditions for the supplied criteria only."""
        conditions = []
        if self.status is not None:
            conditions.append(Tarefa.status == self.status)
        if self.prioridade is not None:
            conditions.append(Tarefa.prioridade == self.prioridade)
        if self.usuario is not None:
            conditions.append(Tarefa.usuario_responsavel == self.usuario)
        if self.categoria is not None:
            conditions.append(Tarefa.categoria == self.categoria)
        return conditions

    def aceita(self, tarefa: Tarefa) -> bool:
        if self.status is not None and tarefa.status != self.status:
            return False
        if self.prioridade is not None and tarefa.prioridade != self.prioridade:
            return False
        if self.usuario is not None and tarefa.usuario_responsavel != self.usuario:
            return False
        if self.categoria is not None and tarefa.categoria != self.categoria:
            return False
        return True


# =============================================================================
# REGRAS DERIVADAS
# =============================================================================

def data_limite_vencimento(agora: datetime) -> datetime:
    """Tarefas criadas antes deste instante podem estar vencidas."""
    return agora - PRAZO_VENCIMENTO


def eh_possivelmente_vencida(tarefa: Tarefa, data_limite: datetime) -> bool:
    return (
        tarefa.status == StatusTarefa.PENDENTE
        and tarefa.estimativa_horas is not None
        and tarefa.data_criacao is not None
        and tarefa.data_criacao < data_limite
    )


def condicao_vencida(data_limite: datetime):
    return sa.and_(
        Tarefa.status == StatusTarefa.PENDENTE,
        Tarefa.estimativa_horas.is_not(None),
        Tarefa.data_criacao < data_limite,
    )


def contem_texto(tarefa: Tarefa, texto: str) -> bool:
    alvo = texto.lower()
    return alvo in (tarefa.titulo or "").lower() or alvo in (tarefa.descricao or "").lower()


def condicao_texto(texto: str):
    return sa.or_(
        Tarefa.titulo.icontains(texto, autoescape=True),
        Tarefa.descricao.icontains(texto, autoescape=True),
    )


# =============================================================================
# ORDENACAO
# =============================================================================

def prioridade_rank_expr():
    """CASE expression mapping each priority to its urgency rank."""
    return sa.case(
        *[(Tarefa.prioridade == prioridade, prioridade.rank) for prioridade in PrioridadeTarefa],
        else_=len(PrioridadeTarefa) + 1,
    )


def chave_urgencia(tarefa: Tarefa) -> tuple:
    return (tarefa.prioridade.rank, tarefa.data_criacao, tarefa.id or 0)


CAMPOS_ENUM = {"status": StatusTarefa, "prioridade": PrioridadeTarefa}


def ordem_declaracao_expr(campo: str):
    """CASE expression giving each enum member its declaration index."""
    coluna = getattr(Tarefa, campo)
    return sa.case(
        *[(coluna == membro, indice) for indice, membro in enumerate(CAMPOS_ENUM[campo])],
        else_=len(CAMPOS_ENUM[campo]),
    )


def ordenacao_sql(page_request: PageRequest) -> list:
    clauses = []
    if page_request.sort_by:
        if page_request.sort_by in CAMPOS_ENUM:
            column = ordem_declaracao_expr(page_request.sort_by)
        else:
            column = getattr(Tarefa, page_request.sort_by)
        clauses.append(column.desc() if page_request.descending else column.asc())
    if page_request.sort_by != "id":
        clauses.append(Tarefa.id.asc())
    return clauses


def _valor_ordenavel(tarefa: Tarefa, campo: str):
    valor = getattr(tarefa, campo)
    if isinstance(valor, (StatusTarefa, PrioridadeTarefa)):
        # Ordem de declaração do enum, a mesma de ordem_declaracao_expr.
        valor = list(type(valor)).index(valor)
    return (valor is not None, valor)


def ordenar_em_memoria(tarefas: Iterable[Tarefa], page_request: PageRequest) -> list[Tarefa]:
    """Python equivalent of ``ordenacao_sql`` (NULLs first when ascending)."""
    resultado = sorted(tarefas, key=lambda t: t.id or 0)
    if page_request.sort_by and page_request.sort_by != "id":
        campo = page_request.sort_by
        resultado.sort(key=lambda t: _valor_ordenavel(t, campo), reverse=page_request.descending)
    elif page_request.sort_by == "id" and page_request.descending:
        resultado.reverse()
    return resultado


# =============================================================================
# EXECUCAO PAGINADA
# =============================================================================

def paginar_em_memoria(tarefas: Iterable[Tarefa], page_request: PageRequest) -> Pagina[Tarefa]:
    ordenadas = ordenar_em_memoria(tarefas, page_request)
    inicio = page_request.offset
    return Pagina(
        items=ordenadas[inicio:inicio + page_request.size],
        total_elements=len(ordenadas),
        page=page_request.page,
        size=page_request.size,
    )


def consulta_tarefas(*condicoes) -> sa.Select:
    stmt = sa.select(Tarefa)
    if condicoes:
        stmt = stmt.where(*condicoes)
    return stmt


def paginar_consulta(session: Session, stmt: sa.Select, page_request: PageRequest) -> Pagina[Tarefa]:
    """Run ``stmt`` twice: once for the total, once for the requested slice."""
    total = session.execute(
        sa.select(sa.func.count()).select_from(stmt.order_by(None).subquery())
    ).scalar_one()
    items = session.execute(
        stmt.order_by(*ordenacao_sql(page_request))
        .offset(page_request.offset)
        .limit(page_request.size)
    ).scalars().all()
    return Pagina(
        items=list(items),
        total_elements=int(total),
        page=page_request.page,
        size=page_request.size,
    )
