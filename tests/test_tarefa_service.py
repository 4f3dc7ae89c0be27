from datetime import date

import pytest

from app.exceptions import TarefaJaExisteError, TarefaNaoEncontradaError
from app.models.tables import PrioridadeTarefa, StatusTarefa
from app.services.tarefa_dto import AtualizarTarefaRequest, CriarTarefaRequest
from app.services.tarefa_queries import FiltroTarefas, PageRequest


def _criar(service, titulo, **kwargs):
    return service.criar_tarefa(CriarTarefaRequest(titulo=titulo, **kwargs))


def test_criar_tarefa_defaults(service):
    dto = _criar(service, "Revisar contrato")

    assert dto.id == 1
    assert dto.status == "PENDENTE"
    assert dto.prioridade == "MEDIA"
    assert dto.data_criacao == "10/03/2024"
    assert dto.data_atualizacao == "10/03/2024"
    assert dto.data_conclusao is None


def test_criar_tarefa_titulo_duplicado_nao_altera_store(service, repository):
    _criar(service, "Revisar contrato")

    with pytest.raises(TarefaJaExisteError) as excinfo:
        _criar(service, "Revisar contrato", prioridade=PrioridadeTarefa.ALTA)

    assert "Revisar contrato" in str(excinfo.value)
    assert repository.count() == 1


def test_titulo_diferencia_maiusculas(service):
    _criar(service, "Revisar contrato")
    dto = _criar(service, "revisar contrato")
    assert dto.id == 2


def test_buscar_por_id_inexistente(service):
    with pytest.raises(TarefaNaoEncontradaError) as excinfo:
        service.buscar_por_id(99)
    assert str(excinfo.value) == "Tarefa não encontrada com ID: 99"


def test_concluir_e_reabrir(service, clock):
    tarefa = _criar(service, "Fechar balancete")
    clock.avancar(days=2)

    concluida = service.marcar_como_concluida(tarefa.id)
    assert concluida.status == "CONCLUIDA"
    assert concluida.data_conclusao == "12/03/2024"
    assert service.buscar_por_id(tarefa.id).data_conclusao == "12/03/2024"

    pendente = service.marcar_como_pendente(tarefa.id)
    assert pendente.status == "PENDENTE"
    assert pendente.data_conclusao is None


def test_em_andamento_preserva_data_conclusao(service):
    tarefa = _criar(service, "Conferir notas")
    service.marcar_como_concluida(tarefa.id)

    dto = service.marcar_como_em_andamento(tarefa.id)

    assert dto.status == "EM_ANDAMENTO"
    assert dto.data_conclusao == "10/03/2024"


@pytest.mark.parametrize(
    "operacao",
    ["marcar_como_concluida", "marcar_como_em_andamento", "marcar_como_pendente"],
)
def test_transicoes_exigem_tarefa_existente(service, operacao):
    with pytest.raises(TarefaNaoEncontradaError):
        getattr(service, operacao)(42)


def test_atualizar_aplica_apenas_campos_informados(service, clock):
    tarefa = _criar(
        service,
        "Enviar DCTF",
        descricao="Competência de fevereiro",
        categoria="fiscal",
        estimativa_horas=3,
    )
    clock.avancar(days=1)

    dto = service.atualizar_tarefa(
        tarefa.id,
        AtualizarTarefaRequest(prioridade=PrioridadeTarefa.URGENTE, tempo_real_horas=4),
    )

    assert dto.prioridade == "URGENTE"
    assert dto.tempo_real_horas == 4
    assert dto.descricao == "Competência de fevereiro"
    assert dto.categoria == "fiscal"
    assert dto.estimativa_horas == 3
    assert dto.data_criacao == "10/03/2024"
    assert dto.data_atualizacao == "11/03/2024"


def test_atualizar_status_concluida_registra_conclusao(service, clock):
    tarefa = _criar(service, "Apurar ICMS")
    clock.avancar(days=5)

    dto = service.atualizar_tarefa(tarefa.id, AtualizarTarefaRequest(status=StatusTarefa.CONCLUIDA))

    assert dto.status == "CONCLUIDA"
    assert dto.data_conclusao == "15/03/2024"


def test_atualizar_status_cancelada_nao_altera_conclusao(service):
    tarefa = _criar(service, "Apurar ISS")
    service.marcar_como_concluida(tarefa.id)

    dto = service.atualizar_tarefa(tarefa.id, AtualizarTarefaRequest(status=StatusTarefa.CANCELADA))

    assert dto.status == "CANCELADA"
    assert dto.data_conclusao == "10/03/2024"


def test_atualizar_titulo_duplicado(service):
    _criar(service, "Primeira")
    segunda = _criar(service, "Segunda")

    with pytest.raises(TarefaJaExisteError):
        service.atualizar_tarefa(segunda.id, AtualizarTarefaRequest(titulo="Primeira"))

    assert service.buscar_por_id(segunda.id).titulo == "Segunda"


def test_atualizar_mantendo_mesmo_titulo(service):
    tarefa = _criar(service, "Primeira")
    dto = service.atualizar_tarefa(tarefa.id, AtualizarTarefaRequest(titulo="Primeira", tags="a,b"))
    assert dto.tags == "a,b"


def test_atualizar_inexistente(service):
    with pytest.raises(TarefaNaoEncontradaError):
        service.atualizar_tarefa(7, AtualizarTarefaRequest(titulo="Nova"))


def test_excluir(service):
    tarefa = _criar(service, "Descartar rascunho")

    service.excluir_tarefa(tarefa.id)

    with pytest.raises(TarefaNaoEncontradaError):
        service.buscar_por_id(tarefa.id)
    with pytest.raises(TarefaNaoEncontradaError):
        service.excluir_tarefa(tarefa.id)


def test_buscar_por_status_ordena_por_urgencia_e_criacao(service, clock):
    a = _criar(service, "A", prioridade=PrioridadeTarefa.MEDIA)
    clock.avancar(hours=1)
    b = _criar(service, "B", prioridade=PrioridadeTarefa.URGENTE)
    clock.avancar(hours=1)
    c = _criar(service, "C", prioridade=PrioridadeTarefa.URGENTE)
    clock.avancar(hours=1)
    d = _criar(service, "D", prioridade=PrioridadeTarefa.BAIXA)
    e = _criar(service, "E", prioridade=PrioridadeTarefa.ALTA)
    service.marcar_como_em_andamento(e.id)

    resultado = service.buscar_por_status(StatusTarefa.PENDENTE)

    assert [t.id for t in resultado] == [b.id, c.id, a.id, d.id]


def test_listagens_por_campo(service):
    _criar(service, "T1", prioridade=PrioridadeTarefa.ALTA, usuario_responsavel="ana", categoria="fiscal")
    _criar(service, "T2", prioridade=PrioridadeTarefa.BAIXA, usuario_responsavel="bruno", categoria="fiscal")
    _criar(service, "T3", prioridade=PrioridadeTarefa.ALTA, usuario_responsavel="ana")

    assert [t.titulo for t in service.buscar_por_prioridade(PrioridadeTarefa.ALTA)] == ["T1", "T3"]
    assert [t.titulo for t in service.buscar_por_usuario("ana")] == ["T1", "T3"]
    assert [t.titulo for t in service.buscar_por_categoria("fiscal")] == ["T1", "T2"]
    assert service.buscar_por_usuario("carla") == []


def test_buscar_por_periodo_inclui_extremos(service, clock):
    _criar(service, "Dia 10")
    clock.avancar(days=1, hours=14)
    _criar(service, "Dia 11")
    clock.avancar(days=1)
    _criar(service, "Dia 12")

    resultado = service.buscar_por_periodo(date(2024, 3, 10), date(2024, 3, 11))

    assert [t.titulo for t in resultado] == ["Dia 10", "Dia 11"]


def test_buscar_por_texto(service):
    _criar(service, "Desc Report")
    _criar(service, "Outra", descricao="Description update")
    _criar(service, "Sem relação", descricao="nada aqui")

    pagina = service.buscar_por_texto("desc", PageRequest(page=0, size=10))

    assert pagina.total_elements == 2
    assert [t.titulo for t in pagina.items] == ["Desc Report", "Outra"]


def test_listar_tarefas_paginacao(service):
    for i in range(25):
        _criar(service, f"Tarefa {i:02d}")

    pagina = service.listar_tarefas(PageRequest(page=0, size=10))
    assert len(pagina.items) == 10
    assert pagina.total_elements == 25
    assert pagina.total_pages == 3

    ultima = service.listar_tarefas(PageRequest(page=2, size=10))
    assert len(ultima.items) == 5
    assert ultima.items[-1].titulo == "Tarefa 24"


def test_listar_com_filtros_combinados(service):
    _criar(service, "T1", prioridade=PrioridadeTarefa.ALTA, usuario_responsavel="ana", categoria="fiscal")
    _criar(service, "T2", prioridade=PrioridadeTarefa.ALTA, usuario_responsavel="bruno", categoria="fiscal")
    _criar(service, "T3", prioridade=PrioridadeTarefa.BAIXA, usuario_responsavel="ana", categoria="fiscal")
    _criar(service, "T4", prioridade=PrioridadeTarefa.ALTA, usuario_responsavel="ana")

    filtro = FiltroTarefas(prioridade=PrioridadeTarefa.ALTA, usuario="ana", categoria="fiscal")
    pagina = service.listar_tarefas_com_filtros(filtro, PageRequest(size=10, sort_by="titulo"))

    assert [t.titulo for t in pagina.items] == ["T1"]
    assert pagina.total_elements == 1

    somente_status = service.listar_tarefas_com_filtros(
        FiltroTarefas(status=StatusTarefa.PENDENTE), PageRequest(size=2)
    )
    assert somente_status.total_elements == 4
    assert somente_status.total_pages == 2


def test_buscar_tarefas_vencidas(service, clock):
    vencida = _criar(service, "Vencida", estimativa_horas=5)
    _criar(service, "Sem estimativa")
    concluida = _criar(service, "Concluída", estimativa_horas=5)
    service.marcar_como_concluida(concluida.id)
    clock.avancar(days=7)
    _criar(service, "Recente", estimativa_horas=5)
    clock.avancar(days=1)

    resultado = service.buscar_tarefas_vencidas()

    assert [t.id for t in resultado] == [vencida.id]


def test_vencimento_exige_mais_de_sete_dias(service, clock):
    _criar(service, "No limite", estimativa_horas=2)
    clock.avancar(days=7)
    assert service.buscar_tarefas_vencidas() == []

    clock.avancar(seconds=1)
    assert [t.titulo for t in service.buscar_tarefas_vencidas()] == ["No limite"]


def test_obter_estatisticas_preenche_zeros(service):
    _criar(service, "T1", prioridade=PrioridadeTarefa.URGENTE)
    t2 = _criar(service, "T2")
    _criar(service, "T3")
    service.marcar_como_concluida(t2.id)

    estatisticas = service.obter_estatisticas().to_dict()

    assert estatisticas["total"] == 3
    assert estatisticas["status"] == {
        "PENDENTE": 2,
        "EM_ANDAMENTO": 0,
        "CONCLUIDA": 1,
        "CANCELADA": 0,
        "PAUSADA": 0,
    }
    assert estatisticas["prioridade"] == {"URGENTE": 1, "ALTA": 0, "MEDIA": 2, "BAIXA": 0}


def test_atualizar_rejeitado_pelo_store_nao_altera_tarefa(service, repository, monkeypatch):
    _criar(service, "Primeira")
    segunda = _criar(service, "Segunda", categoria="fiscal")
    # Outra requisição grava o mesmo título entre a verificação e o save.
    monkeypatch.setattr(repository, "exists_by_titulo", lambda titulo: False)

    with pytest.raises(TarefaJaExisteError):
        service.atualizar_tarefa(
            segunda.id,
            AtualizarTarefaRequest(titulo="Primeira", categoria="contabil", status=StatusTarefa.CONCLUIDA),
        )

    atual = service.buscar_por_id(segunda.id)
    assert atual.titulo == "Segunda"
    assert atual.categoria == "fiscal"
    assert atual.status == "PENDENTE"
    assert atual.data_conclusao is None


def test_tarefa_lida_nao_altera_store_sem_save(repository, service):
    dto = _criar(service, "Isolada")

    tarefa = repository.find_by_id(dto.id)
    tarefa.titulo = "Alterada fora do save"

    assert repository.find_by_id(dto.id).titulo == "Isolada"
    assert repository.exists_by_titulo("Isolada")
