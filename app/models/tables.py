"""Database models used by the application."""

from datetime import datetime
from enum import Enum

from sqlalchemy.dialects import mysql

from app import db
from app.constants import (
    CATEGORIA_MAX,
    DESCRICAO_MAX,
    OBSERVACOES_MAX,
    PRIORIDADE_RANK,
    TAGS_MAX,
    TITULO_COLLATION_MYSQL,
    TITULO_MAX,
    USUARIO_MAX,
)
from app.utils.datetime_utils import now_naive


class StatusTarefa(Enum):
    """Enumeration of possible task states."""
    PENDENTE = "Pendente"
    EM_ANDAMENTO = "Em Andamento"
    CONCLUIDA = "Concluída"
    CANCELADA = "Cancelada"
    PAUSADA = "Pausada"

    @property
    def descricao(self) -> str:
        return self.value


class PrioridadeTarefa(Enum):
    """Enumeration of task priority levels."""
    URGENTE = "Urgente"
    ALTA = "Alta"
    MEDIA = "Média"
    BAIXA = "Baixa"

    @property
    def descricao(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """Posição na ordem de urgência (1 = mais urgente)."""
        return PRIORIDADE_RANK[self.name]


class Tarefa(db.Model):
    """Represents a tracked task."""
    __tablename__ = "tarefas_tb"
    __table_args__ = (
        db.UniqueConstraint("titulo", name="uq_tarefas_titulo"),
        db.Index("ix_tarefas_status_prioridade", "status", "prioridade"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # Comparação binária no MySQL: "Relatório" e "relatório" são títulos distintos.
    titulo = db.Column(
        db.String(TITULO_MAX).with_variant(
            mysql.VARCHAR(TITULO_MAX, collation=TITULO_COLLATION_MYSQL), "mysql", "mariadb"
        ),
        nullable=False,
    )
    descricao = db.Column(db.String(DESCRICAO_MAX))
    status = db.Column(
        db.Enum(StatusTarefa, name="status_tarefa"),
        nullable=False,
        default=StatusTarefa.PENDENTE,
    )
    prioridade = db.Column(
        db.Enum(PrioridadeTarefa, name="prioridade_tarefa"),
        nullable=False,
        default=PrioridadeTarefa.MEDIA,
    )
    data_criacao = db.Column(db.DateTime, default=now_naive, nullable=False, index=True)
    data_atualizacao = db.Column(db.DateTime, default=now_naive, nullable=False)
    data_conclusao = db.Column(db.DateTime)
    usuario_responsavel = db.Column(db.String(USUARIO_MAX), index=True)
    categoria = db.Column(db.String(CATEGORIA_MAX), index=True)
    tags = db.Column(db.String(TAGS_MAX))
    estimativa_horas = db.Column(db.Integer)
    tempo_real_horas = db.Column(db.Integer)
    observacoes = db.Column(db.String(OBSERVACOES_MAX))

    def __init__(self, **kwargs):
        # Column defaults only apply on flush; the in-memory store never flushes.
        if kwargs.get("status") is None:
            kwargs["status"] = StatusTarefa.PENDENTE
        if kwargs.get("prioridade") is None:
            kwargs["prioridade"] = PrioridadeTarefa.MEDIA
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Tarefa {self.titulo}>"

    # ---- transições de status ----

    def marcar_como_concluida(self, agora: datetime | None = None) -> None:
        self.status = StatusTarefa.CONCLUIDA
        self.data_conclusao = agora or now_naive()

    def marcar_como_em_andamento(self) -> None:
        self.status = StatusTarefa.EM_ANDAMENTO

    def marcar_como_pendente(self) -> None:
        self.status = StatusTarefa.PENDENTE
        self.data_conclusao = None

    def definir_status(self, status: StatusTarefa, agora: datetime | None = None) -> None:
        """Assign ``status`` directly, as the generic update does.

        Only CONCLUIDA carries a side effect (stamps ``data_conclusao``); any
        other status leaves the completion date as it is.
        """
        if status == StatusTarefa.CONCLUIDA:
            self.marcar_como_concluida(agora)
        else:
            self.status = status

    @property
    def esta_concluida(self) -> bool:
        return self.status == StatusTarefa.CONCLUIDA

    @property
    def esta_em_andamento(self) -> bool:
        return self.status == StatusTarefa.EM_ANDAMENTO

    @property
    def esta_pendente(self) -> bool:
        return self.status == StatusTarefa.PENDENTE
