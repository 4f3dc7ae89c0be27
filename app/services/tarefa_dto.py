"""Requests recebidos pelo serviço e projeção de saída das tarefas."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields

from app.models.tables import PrioridadeTarefa, StatusTarefa, Tarefa
from app.utils.datetime_utils import format_date_br


@dataclass
class CriarTarefaRequest:
    titulo: str
    descricao: str | None = None
    prioridade: PrioridadeTarefa = PrioridadeTarefa.MEDIA
    usuario_responsavel: str | None = None
    categoria: str | None = None
    tags: str | None = None
    estimativa_horas: int | None = None
    observacoes: str | None = None


@dataclass
class AtualizarTarefaRequest:
    """Partial update: ``None`` means "leave unchanged", never "clear"."""

    titulo: str | None = None
    descricao: str | None = None
    status: StatusTarefa | None = None
    prioridade: PrioridadeTarefa | None = None
    usuario_responsavel: str | None = None
    categoria: str | None = None
    tags: str | None = None
    estimativa_horas: int | None = None
    tempo_real_horas: int | None = None
    observacoes: str | None = None

    def campos_informados(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass
class TarefaDTO:
    """External representation of a task; dates are rendered without time of day."""

    id: int
    titulo: str
    descricao: str | None
    status: str
    prioridade: str
    data_criacao: str | None
    data_atualizacao: str | None
    data_conclusao: str | None
    usuario_responsavel: str | None
    categoria: str | None
    tags: str | None
    estimativa_horas: int | None
    tempo_real_horas: int | None
    observacoes: str | None

    @classmethod
    def from_model(cls, tarefa: Tarefa) -> "TarefaDTO":
        return cls(
            id=tarefa.id,
            titulo=tarefa.titulo,
            descricao=tarefa.descricao,
            status=tarefa.status.name,
            prioridade=tarefa.prioridade.name,
            data_criacao=format_date_br(tarefa.data_criacao),
            data_atualizacao=format_date_br(tarefa.data_atualizacao),
            data_conclusao=format_date_br(tarefa.data_conclusao),
            usuario_responsavel=tarefa.usuario_responsavel,
            categoria=tarefa.categoria,
            tags=tarefa.tags,
            estimativa_horas=tarefa.estimativa_horas,
            tempo_real_horas=tarefa.tempo_real_horas,
            observacoes=tarefa.observacoes,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Estatisticas:
    status: dict[str, int] = field(default_factory=dict)
    prioridade: dict[str, int] = field(default_factory=dict)
    total: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
