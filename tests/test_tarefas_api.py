import logging
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app import app, db
from app.models.tables import PrioridadeTarefa, StatusTarefa, Tarefa
from app.utils.datetime_utils import format_date_br, now_naive


def _post(client, titulo, **campos):
    return client.post('/api/tarefas', json={'titulo': titulo, **campos})


def _assert_erro(resp, status, path):
    data = resp.get_json()
    assert resp.status_code == status
    assert data['status'] == status
    assert data['path'] == path
    assert data['error']
    assert data['message']
    assert data['timestamp']
    return data


def test_criar_tarefa(client):
    resp = _post(client, 'Revisar contrato', prioridade='ALTA', estimativa_horas=4, categoria='juridico')

    assert resp.status_code == 201
    data = resp.get_json()
    assert data['id'] > 0
    assert data['status'] == 'PENDENTE'
    assert data['prioridade'] == 'ALTA'
    assert data['estimativa_horas'] == 4
    assert data['data_criacao'] == format_date_br(now_naive())
    assert data['data_conclusao'] is None
    assert resp.headers['X-Request-ID']
    assert resp.headers['Access-Control-Allow-Origin'] == '*'


def test_criar_tarefa_prioridade_padrao(client):
    data = _post(client, 'Sem prioridade', prioridade=None).get_json()
    assert data['prioridade'] == 'MEDIA'


def test_criar_tarefa_invalida(client):
    resp = client.post(
        '/api/tarefas',
        json={'titulo': 'ab', 'prioridade': 'CRITICA', 'estimativa_horas': -1},
    )

    data = _assert_erro(resp, 400, '/api/tarefas')
    assert set(data['errors']) == {'titulo', 'prioridade', 'estimativa_horas'}


def test_criar_tarefa_sem_titulo(client):
    data = _assert_erro(client.post('/api/tarefas', json={}), 400, '/api/tarefas')
    assert data['errors']['titulo'] == ['Título é obrigatório']


def test_criar_tarefa_corpo_invalido(client):
    resp = client.post('/api/tarefas', data='nao-e-json', content_type='application/json')
    data = _assert_erro(resp, 400, '/api/tarefas')
    assert 'body' in data['errors']


def test_criar_tarefa_duplicada(client):
    _post(client, 'Única')
    resp = _post(client, 'Única')

    data = _assert_erro(resp, 409, '/api/tarefas')
    assert data['message'] == 'Já existe uma tarefa com o título: Única'


def test_buscar_por_id(client):
    tarefa_id = _post(client, 'Buscar').get_json()['id']

    resp = client.get(f'/api/tarefas/{tarefa_id}')
    assert resp.status_code == 200
    assert resp.get_json()['titulo'] == 'Buscar'

    data = _assert_erro(client.get('/api/tarefas/999'), 404, '/api/tarefas/999')
    assert data['message'] == 'Tarefa não encontrada com ID: 999'


def test_listar_paginado(client):
    for i in range(25):
        _post(client, f'Tarefa {i:02d}')

    data = client.get('/api/tarefas?page=0&size=10').get_json()
    assert len(data['items']) == 10
    assert data['total_elements'] == 25
    assert data['total_pages'] == 3
    assert data['page'] == 0
    assert data['size'] == 10

    ultima = client.get('/api/tarefas?page=2&size=10&sort_by=titulo&sort_dir=asc').get_json()
    assert [t['titulo'] for t in ultima['items']] == [f'Tarefa {i}' for i in range(20, 25)]


def test_listar_parametros_invalidos(client):
    resp = client.get('/api/tarefas?page=-1&size=101&sort_by=senha&sort_dir=lado')
    data = _assert_erro(resp, 400, '/api/tarefas')
    assert set(data['errors']) == {'page', 'size', 'sort_by', 'sort_dir'}

    resp = client.get('/api/tarefas?size=abc')
    assert _assert_erro(resp, 400, '/api/tarefas')['errors']['size']


def test_listar_com_filtros(client):
    _post(client, 'T1', prioridade='ALTA', usuario_responsavel='ana', categoria='fiscal')
    _post(client, 'T2', prioridade='ALTA', usuario_responsavel='bruno', categoria='fiscal')
    _post(client, 'T3', prioridade='BAIXA', usuario_responsavel='ana', categoria='fiscal')

    data = client.get('/api/tarefas?prioridade=alta&usuario=ana&categoria=fiscal').get_json()
    assert [t['titulo'] for t in data['items']] == ['T1']

    data = client.get('/api/tarefas?status=PENDENTE&sort_by=titulo&sort_dir=desc').get_json()
    assert [t['titulo'] for t in data['items']] == ['T3', 'T2', 'T1']

    resp = client.get('/api/tarefas?status=ATRASADA')
    assert 'status' in _assert_erro(resp, 400, '/api/tarefas')['errors']


def test_listar_por_status_prioridade_usuario_categoria(client):
    _post(client, 'A', prioridade='MEDIA', usuario_responsavel='ana', categoria='fiscal')
    _post(client, 'B', prioridade='URGENTE', usuario_responsavel='ana')
    _post(client, 'C', prioridade='URGENTE', categoria='fiscal')

    por_status = client.get('/api/tarefas/status/PENDENTE').get_json()
    assert [t['titulo'] for t in por_status] == ['B', 'C', 'A']

    por_prioridade = client.get('/api/tarefas/prioridade/URGENTE').get_json()
    assert [t['titulo'] for t in por_prioridade] == ['B', 'C']

    assert [t['titulo'] for t in client.get('/api/tarefas/usuario/ana').get_json()] == ['A', 'B']
    assert [t['titulo'] for t in client.get('/api/tarefas/categoria/fiscal').get_json()] == ['A', 'C']

    _assert_erro(client.get('/api/tarefas/status/FEITA'), 400, '/api/tarefas/status/FEITA')


def test_listar_por_periodo(client):
    _post(client, 'Hoje')
    hoje = now_naive().date()
    inicio = (hoje - timedelta(days=1)).isoformat()
    fim = hoje.isoformat()

    data = client.get(f'/api/tarefas/periodo?inicio={inicio}&fim={fim}').get_json()
    assert [t['titulo'] for t in data] == ['Hoje']

    resp = client.get('/api/tarefas/periodo?inicio=2024-13-01')
    assert set(_assert_erro(resp, 400, '/api/tarefas/periodo')['errors']) == {'inicio', 'fim'}

    resp = client.get('/api/tarefas/periodo?inicio=2024-05-10&fim=2024-05-01')
    assert 'fim' in _assert_erro(resp, 400, '/api/tarefas/periodo')['errors']


def test_busca_textual(client):
    _post(client, 'Desc Report')
    _post(client, 'Outra', descricao='Description update')
    _post(client, 'Nada', descricao='sem relação')

    data = client.get('/api/tarefas/busca?texto=desc&page=0&size=10').get_json()
    assert data['total_elements'] == 2
    assert {t['titulo'] for t in data['items']} == {'Desc Report', 'Outra'}

    resp = client.get('/api/tarefas/busca?texto=%20')
    assert 'texto' in _assert_erro(resp, 400, '/api/tarefas/busca')['errors']


def test_atualizar_tarefa(client):
    tarefa_id = _post(client, 'Original', descricao='manter', categoria='fiscal').get_json()['id']

    resp = client.put(
        f'/api/tarefas/{tarefa_id}',
        json={'titulo': 'Renomeada', 'tempo_real_horas': 6, 'descricao': None},
    )

    assert resp.status_code == 200
    data = resp.get_json()
    assert data['titulo'] == 'Renomeada'
    assert data['tempo_real_horas'] == 6
    assert data['descricao'] == 'manter'
    assert data['categoria'] == 'fiscal'


def test_atualizar_status_concluida(client):
    tarefa_id = _post(client, 'Concluir via PUT').get_json()['id']

    data = client.put(f'/api/tarefas/{tarefa_id}', json={'status': 'CONCLUIDA'}).get_json()

    assert data['status'] == 'CONCLUIDA'
    assert data['data_conclusao'] == format_date_br(now_naive())


def test_atualizar_erros(client):
    _post(client, 'Existente')
    tarefa_id = _post(client, 'Outra').get_json()['id']

    _assert_erro(
        client.put(f'/api/tarefas/{tarefa_id}', json={'titulo': 'Existente'}),
        409,
        f'/api/tarefas/{tarefa_id}',
    )
    data = _assert_erro(
        client.put(f'/api/tarefas/{tarefa_id}', json={'status': 'ARQUIVADA'}),
        400,
        f'/api/tarefas/{tarefa_id}',
    )
    assert 'status' in data['errors']
    _assert_erro(client.put('/api/tarefas/999', json={'titulo': 'Qualquer'}), 404, '/api/tarefas/999')


def test_transicoes_de_status(client):
    tarefa_id = _post(client, 'Fluxo').get_json()['id']
    hoje = format_date_br(now_naive())

    concluida = client.patch(f'/api/tarefas/{tarefa_id}/concluir').get_json()
    assert concluida['status'] == 'CONCLUIDA'
    assert concluida['data_conclusao'] == hoje

    andamento = client.patch(f'/api/tarefas/{tarefa_id}/andamento').get_json()
    assert andamento['status'] == 'EM_ANDAMENTO'
    assert andamento['data_conclusao'] == hoje

    pendente = client.patch(f'/api/tarefas/{tarefa_id}/pendente').get_json()
    assert pendente['status'] == 'PENDENTE'
    assert pendente['data_conclusao'] is None

    _assert_erro(client.patch('/api/tarefas/999/concluir'), 404, '/api/tarefas/999/concluir')


def test_excluir_tarefa(client):
    tarefa_id = _post(client, 'Excluir').get_json()['id']

    resp = client.delete(f'/api/tarefas/{tarefa_id}')
    assert resp.status_code == 204
    assert resp.data == b''

    _assert_erro(client.get(f'/api/tarefas/{tarefa_id}'), 404, f'/api/tarefas/{tarefa_id}')
    _assert_erro(client.delete(f'/api/tarefas/{tarefa_id}'), 404, f'/api/tarefas/{tarefa_id}')


def test_listar_vencidas(client):
    antiga = now_naive() - timedelta(days=8)
    for titulo, estimativa, status in (
        ('Vencida', 5, StatusTarefa.PENDENTE),
        ('Sem estimativa', None, StatusTarefa.PENDENTE),
        ('Concluída', 5, StatusTarefa.CONCLUIDA),
    ):
        db.session.add(Tarefa(
            titulo=titulo,
            estimativa_horas=estimativa,
            status=status,
            data_criacao=antiga,
            data_atualizacao=antiga,
        ))
    db.session.commit()
    _post(client, 'Recente', estimativa_horas=5)

    data = client.get('/api/tarefas/vencidas').get_json()

    assert [t['titulo'] for t in data] == ['Vencida']


def test_estatisticas(client):
    _post(client, 'A', prioridade='URGENTE')
    tarefa_id = _post(client, 'B').get_json()['id']
    client.patch(f'/api/tarefas/{tarefa_id}/concluir')

    data = client.get('/api/tarefas/estatisticas').get_json()

    assert data['total'] == 2
    assert data['status']['PENDENTE'] == 1
    assert data['status']['CONCLUIDA'] == 1
    assert data['status']['PAUSADA'] == 0
    assert data['prioridade'] == {'URGENTE': 1, 'ALTA': 0, 'MEDIA': 1, 'BAIXA': 0}


def test_rota_inexistente_e_metodo_nao_permitido(client):
    _assert_erro(client.get('/api/nada'), 404, '/api/nada')
    _assert_erro(client.patch('/api/tarefas'), 405, '/api/tarefas')


def test_health(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.get_json()['database'] == 'ok'


def test_request_id_propagado(client):
    resp = client.get('/health', headers={'X-Request-ID': 'abc-123'})
    assert resp.headers['X-Request-ID'] == 'abc-123'


def test_modelo_define_padroes():
    tarefa = Tarefa(titulo='Padrões', prioridade=None)
    assert tarefa.status == StatusTarefa.PENDENTE
    assert tarefa.prioridade == PrioridadeTarefa.MEDIA
    assert not tarefa.esta_concluida

    tarefa.definir_status(StatusTarefa.CONCLUIDA, datetime(2024, 1, 2))
    assert tarefa.esta_concluida
    assert tarefa.data_conclusao == datetime(2024, 1, 2)


def test_enums_do_corpo_sem_diferenciar_maiusculas(client):
    resp = _post(client, 'Minúsculas', prioridade='alta')
    assert resp.status_code == 201
    tarefa_id = resp.get_json()['id']
    assert resp.get_json()['prioridade'] == 'ALTA'

    data = client.put(
        f'/api/tarefas/{tarefa_id}', json={'status': 'Em_Andamento', 'prioridade': ' baixa '}
    ).get_json()
    assert data['status'] == 'EM_ANDAMENTO'
    assert data['prioridade'] == 'BAIXA'


@pytest.mark.parametrize(
    'erro',
    [OperationalError('SELECT 1', {}, Exception('conexao perdida')), RuntimeError('falha inesperada')],
)
def test_erro_interno_registra_excecao(client, monkeypatch, caplog, erro):
    def _falhar():
        raise erro

    monkeypatch.setattr(app.extensions['tarefa_service'], 'obter_estatisticas', _falhar)

    with caplog.at_level(logging.ERROR, logger='app'):
        resp = client.get('/api/tarefas/estatisticas')

    data = _assert_erro(resp, 500, '/api/tarefas/estatisticas')
    assert data['error'] == 'Erro interno do servidor'
    assert any(
        f'EXCEPTION: {type(erro).__name__}' in record.getMessage() for record in caplog.records
    )
