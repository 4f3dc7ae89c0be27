"""
Serviço de tarefas.

Orquestra repositório, composição de consultas e transições de status,
garantindo a unicidade de título e projetando as entidades em ``TarefaDTO``.

Erros de negócio:
    - TarefaNaoEncontradaError: ID inexistente
    - TarefaJaExisteError: título já utilizado

Falhas do armazenamento (SQLAlchemyError) são propagadas sem tratamento.

Uso:
    from app.services.tarefa_service import TarefaService

    service = TarefaService(SqlAlchemyTarefaRepository(db))
    dto = service.criar_tarefa(CriarTarefaRequest(titulo="Revisar contrato"))
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable

from app.exceptions import TarefaJaExisteError, TarefaNaoEncontradaError
from app.models.tables import PrioridadeTarefa, StatusTarefa, Tarefa
from app.repositories.base import TarefaRepository
from app.services.tarefa_dto import (
    AtualizarTarefaRequest,
    CriarTarefaRequest,
    Estatisticas,
    TarefaDTO,
)
from app.services.tarefa_queries import (
    FiltroTarefas,
    PageRequest,
    Pagina,
    data_limite_vencimento,
)
from app.utils.datetime_utils import end_of_day, now_naive, start_of_day


def _to_dtos(tarefas: list[Tarefa]) -> list[TarefaDTO]:
    return [TarefaDTO.from_model(tarefa) for tarefa in tarefas]


class TarefaService:
    def __init__(
        self,
        repository: TarefaRepository,
        clock: Callable[[], datetime] = now_naive,
    ) -> None:
        self._repository = repository
        self._clock = clock

    # =========================================================================
    # AUXILIARES
    # =========================================================================

    def _obter(self, tarefa_id: int) -> Tarefa:
        tarefa = self._repository.find_by_id(tarefa_id)
        if tarefa is None:
            raise TarefaNaoEncontradaError(tarefa_id)
        return tarefa

    def _garantir_titulo_disponivel(self, titulo: str) -> None:
        if self._repository.exists_by_titulo(titulo):
            raise TarefaJaExisteError(titulo)

    def _salvar(self, tarefa: Tarefa) -> TarefaDTO:
        return TarefaDTO.from_model(self._repository.save(tarefa))

    # =========================================================================
    # CRIACAO E LEITURA
    # =========================================================================

    def criar_tarefa(self, request: CriarTarefaRequest) -> TarefaDTO:
        self._garantir_titulo_disponivel(request.titulo)
        tarefa = Tarefa(
            titulo=request.titulo,
            descricao=request.descricao,
            status=StatusTarefa.PENDENTE,
            prioridade=request.prioridade or PrioridadeTarefa.MEDIA,
            usuario_responsavel=request.usuario_responsavel,
            categoria=request.categoria,
            tags=request.tags,
            estimativa_horas=request.estimativa_horas,
            observacoes=request.observacoes,
        )
        return self._salvar(tarefa)

    def buscar_por_id(self, tarefa_id: int) -> TarefaDTO:
        return TarefaDTO.from_model(self._obter(tarefa_id))

    def listar_tarefas(self, page_request: PageRequest) -> Pagina[TarefaDTO]:
        return self._repository.find_all(page_request).map(TarefaDTO.from_model)

    def listar_tarefas_com_filtros(
        self,
        filtro: FiltroTarefas,
        page_request: PageRequest,
    ) -> Pagina[TarefaDTO]:
        return self._repository.find_by_filtros(filtro, page_request).map(TarefaDTO.from_model)

    def buscar_por_status(self, status: StatusTarefa) -> list[TarefaDTO]:
        """Most urgent first; oldest first within the same priority."""
        return _to_dtos(self._repository.find_by_status_ordenado(status))

    def buscar_por_prioridade(self, prioridade: PrioridadeTarefa) -> list[TarefaDTO]:
        return _to_dtos(self._repository.find_by_prioridade(prioridade))

    def buscar_por_usuario(self, usuario: str) -> list[TarefaDTO]:
        return _to_dtos(self._repository.find_by_usuario_responsavel(usuario))

    def buscar_por_categoria(self, categoria: str) -> list[TarefaDTO]:
        return _to_dtos(self._repository.find_by_categoria(categoria))

    def buscar_por_periodo(self, inicio: date, fim: date) -> list[TarefaDTO]:
        """Tasks created between ``inicio`` and ``fim``, both days inclusive."""
        return _to_dtos(self._repository.find_by_periodo(start_of_day(inicio), end_of_day(fim)))

    def buscar_por_texto(self, texto: str, page_request: PageRequest) -> Pagina[TarefaDTO]:
        return self._repository.find_by_texto(texto, page_request).map(TarefaDTO.from_model)

    # =========================================================================
    # ALTERACOES
    # =========================================================================

    def atualizar_tarefa(self, tarefa_id: int, request: AtualizarTarefaRequest) -> TarefaDTO:
        tarefa = self._obter(tarefa_id)
        campos = request.campos_informados()

        novo_titulo = campos.get("titulo")
        if novo_titulo is not None and novo_titulo != tarefa.titulo:
            self._garantir_titulo_disponivel(novo_titulo)

        status = campos.pop("status", None)
        for campo, valor in campos.items():
            setattr(tarefa, campo, valor)
        if status is not None:
            tarefa.definir_status(status, self._clock())

        return self._salvar(tarefa)

    def marcar_como_concluida(self, tarefa_id: int) -> TarefaDTO:
        tarefa = self._obter(tarefa_id)
        tarefa.marcar_como_concluida(self._clock())
        return self._salvar(tarefa)

    def marcar_como_em_andamento(self, tarefa_id: int) -> TarefaDTO:
        tarefa = self._obter(tarefa_id)
        tarefa.marcar_como_em_andamento()
        return self._salvar(tarefa)

    def marcar_como_pendente(self, tarefa_id: int) -> TarefaDTO:
        tarefa = self._obter(tarefa_id)
        tarefa.marcar_como_pendente()
        return self._salvar(tarefa)

    def excluir_tarefa(self, tarefa_id: int) -> None:
        if not self._repository.exists_by_id(tarefa_id):
            raise TarefaNaoEncontradaError(tarefa_id)
        self._repository.delete_by_id(tarefa_id)

    # =========================================================================
    # CONSULTAS DERIVADAS
    # =========================================================================

    def buscar_tarefas_vencidas(self) -> list[TarefaDTO]:
        data_limite = data_limite_vencimento(self._clock())
        return _to_dtos(self._repository.find_vencidas(data_limite))

    def obter_estatisticas(self) -> Estatisticas:
        por_status = self._repository.count_by_status()
        por_prioridade = self._repository.count_by_prioridade()
        return Estatisticas(
            status={status.name: por_status.get(status, 0) for status in StatusTarefa},
            prioridade={p.name: por_prioridade.get(p, 0) for p in PrioridadeTarefa},
            total=self._repository.count(),
        )
