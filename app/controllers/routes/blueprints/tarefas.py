"""
Blueprint da API de tarefas.

Rotas (prefixo /api/tarefas):
    - POST   /                      Cria tarefa (201)
    - GET    /                      Lista paginada com filtros opcionais
    - GET    /<id>                  Busca por ID
    - PUT    /<id>                  Atualiza campos informados
    - DELETE /<id>                  Exclui (204)
    - PATCH  /<id>/concluir         Marca como concluída
    - PATCH  /<id>/andamento        Marca como em andamento
    - PATCH  /<id>/pendente         Marca como pendente
    - GET    /status/<status>       Por status, mais urgentes primeiro
    - GET    /prioridade/<p>        Por prioridade
    - GET    /usuario/<usuario>     Por responsável
    - GET    /categoria/<c>         Por categoria
    - GET    /periodo?inicio&fim    Criadas no período (YYYY-MM-DD)
    - GET    /busca?texto           Busca textual paginada
    - GET    /vencidas              Possivelmente vencidas
    - GET    /estatisticas          Contagens por status e prioridade

Parâmetros inválidos geram ValidacaoError (400); erros de negócio são
convertidos em resposta pelos handlers de ``_error_handlers``.
"""

from enum import Enum

from flask import Blueprint, current_app, g, jsonify, request

from app.constants import CAMPOS_ORDENAVEIS, DEFAULT_PAGE, DEFAULT_SORT_BY, DEFAULT_SORT_DIR
from app.exceptions import ValidacaoError
from app.forms import TarefaCreateForm, TarefaUpdateForm, validar_payload
from app.models.tables import PrioridadeTarefa, StatusTarefa
from app.services.tarefa_dto import TarefaDTO
from app.services.tarefa_queries import FiltroTarefas, PageRequest
from app.services.tarefa_service import TarefaService
from app.utils.datetime_utils import parse_date_iso
from app.utils.logging_utils import log_alteracao_dados, log_consulta


# =============================================================================
# BLUEPRINT DEFINITION
# =============================================================================

tarefas_bp = Blueprint("tarefas", __name__, url_prefix="/api/tarefas")


# =============================================================================
# HELPERS
# =============================================================================

def _service() -> TarefaService:
    return current_app.extensions["tarefa_service"]


def _request_id():
    return g.get("request_id")


def _dto_list(dtos: list[TarefaDTO]):
    return jsonify([dto.to_dict() for dto in dtos])


def _int_param(nome: str, default: int, erros: dict) -> int:
    raw = request.args.get(nome)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        erros.setdefault(nome, []).append("Deve ser um número inteiro")
        return default


def _page_request(sort_by: str | None = None, sort_dir: str = "asc") -> PageRequest:
    """Build a PageRequest from ``page``/``size``/``sort_by``/``sort_dir``."""
    erros: dict[str, list[str]] = {}
    page = _int_param("page", DEFAULT_PAGE, erros)
    size = _int_param("size", current_app.config["PAGE_SIZE_DEFAULT"], erros)
    sort_by = request.args.get("sort_by", sort_by)
    sort_dir = request.args.get("sort_dir", sort_dir).lower()

    max_size = current_app.config["PAGE_SIZE_MAX"]
    if page < 0:
        erros.setdefault("page", []).append("Deve ser maior ou igual a 0")
    if not 1 <= size <= max_size:
        erros.setdefault("size", []).append(f"Deve estar entre 1 e {max_size}")
    if sort_by is not None and sort_by not in CAMPOS_ORDENAVEIS:
        erros.setdefault("sort_by", []).append(
            f"Campo inválido; use um de: {', '.join(CAMPOS_ORDENAVEIS)}"
        )
    if sort_dir not in ("asc", "desc"):
        erros.setdefault("sort_dir", []).append("Use 'asc' ou 'desc'")
    if erros:
        raise ValidacaoError(erros)

    return PageRequest(page=page, size=size, sort_by=sort_by, direction=sort_dir)


def _enum_value(enum_cls: type[Enum], raw: str | None, campo: str):
    if raw is None or raw.strip() == "":
        return None
    try:
        return enum_cls[raw.strip().upper()]
    except KeyError:
        opcoes = ", ".join(member.name for member in enum_cls)
        raise ValidacaoError({campo: [f"Valor inválido '{raw}'; use um de: {opcoes}"]}) from None


def _texto_param(nome: str) -> str | None:
    raw = request.args.get(nome)
    return raw if raw and raw.strip() else None


# =============================================================================
# CRIACAO / LEITURA
# =============================================================================

@tarefas_bp.route("", methods=["POST"])
def criar_tarefa():
    form = validar_payload(TarefaCreateForm, request.get_json(silent=True))
    criacao = form.to_request()
    dto = _service().criar_tarefa(criacao)
    campos = [campo for campo, valor in vars(criacao).items() if valor is not None]
    log_alteracao_dados("criar", "tarefa", dto.id, campos, _request_id())
    return jsonify(dto.to_dict()), 201


@tarefas_bp.route("/<int:tarefa_id>", methods=["GET"])
def buscar_tarefa(tarefa_id: int):
    return jsonify(_service().buscar_por_id(tarefa_id).to_dict())


@tarefas_bp.route("", methods=["GET"])
def listar_tarefas():
    page_request = _page_request(sort_by=DEFAULT_SORT_BY, sort_dir=DEFAULT_SORT_DIR)
    filtro = FiltroTarefas(
        status=_enum_value(StatusTarefa, request.args.get("status"), "status"),
        prioridade=_enum_value(PrioridadeTarefa, request.args.get("prioridade"), "prioridade"),
        usuario=_texto_param("usuario"),
        categoria=_texto_param("categoria"),
    )
    service = _service()
    if filtro.vazio:
        pagina = service.listar_tarefas(page_request)
    else:
        pagina = service.listar_tarefas_com_filtros(filtro, page_request)

    log_consulta(
        "listar",
        {
            "status": filtro.status,
            "prioridade": filtro.prioridade,
            "usuario": filtro.usuario,
            "categoria": filtro.categoria,
        },
        pagina.total_elements,
        _request_id(),
    )
    return jsonify(pagina.to_dict(TarefaDTO.to_dict))


@tarefas_bp.route("/status/<status>", methods=["GET"])
def listar_por_status(status: str):
    return _dto_list(_service().buscar_por_status(_enum_value(StatusTarefa, status, "status")))


@tarefas_bp.route("/prioridade/<prioridade>", methods=["GET"])
def listar_por_prioridade(prioridade: str):
    valor = _enum_value(PrioridadeTarefa, prioridade, "prioridade")
    return _dto_list(_service().buscar_por_prioridade(valor))


@tarefas_bp.route("/usuario/<usuario>", methods=["GET"])
def listar_por_usuario(usuario: str):
    return _dto_list(_service().buscar_por_usuario(usuario))


@tarefas_bp.route("/categoria/<categoria>", methods=["GET"])
def listar_por_categoria(categoria: str):
    return _dto_list(_service().buscar_por_categoria(categoria))


@tarefas_bp.route("/periodo", methods=["GET"])
def listar_por_periodo():
    erros: dict[str, list[str]] = {}
    datas = {}
    for nome in ("inicio", "fim"):
        raw = _texto_param(nome)
        if raw is None:
            erros[nome] = ["Parâmetro obrigatório (YYYY-MM-DD)"]
            continue
        try:
            datas[nome] = parse_date_iso(raw)
        except ValueError:
            erros[nome] = [f"Data inválida '{raw}'; use YYYY-MM-DD"]
    if not erros and datas["fim"] < datas["inicio"]:
        erros["fim"] = ["Deve ser igual ou posterior a inicio"]
    if erros:
        raise ValidacaoError(erros)

    return _dto_list(_service().buscar_por_periodo(datas["inicio"], datas["fim"]))


@tarefas_bp.route("/busca", methods=["GET"])
def buscar_por_texto():
    texto = _texto_param("texto")
    if texto is None:
        raise ValidacaoError({"texto": ["Parâmetro obrigatório"]})
    pagina = _service().buscar_por_texto(texto, _page_request())
    log_consulta("busca", {"texto": texto}, pagina.total_elements, _request_id())
    return jsonify(pagina.to_dict(TarefaDTO.to_dict))


@tarefas_bp.route("/vencidas", methods=["GET"])
def listar_vencidas():
    return _dto_list(_service().buscar_tarefas_vencidas())


@tarefas_bp.route("/estatisticas", methods=["GET"])
def estatisticas():
    return jsonify(_service().obter_estatisticas().to_dict())


# =============================================================================
# ALTERACOES
# =============================================================================

@tarefas_bp.route("/<int:tarefa_id>", methods=["PUT"])
def atualizar_tarefa(tarefa_id: int):
    form = validar_payload(TarefaUpdateForm, request.get_json(silent=True))
    atualizacao = form.to_request()
    dto = _service().atualizar_tarefa(tarefa_id, atualizacao)
    log_alteracao_dados("atualizar", "tarefa", tarefa_id, atualizacao.campos_informados(), _request_id())
    return jsonify(dto.to_dict())


@tarefas_bp.route("/<int:tarefa_id>/concluir", methods=["PATCH"])
def concluir_tarefa(tarefa_id: int):
    dto = _service().marcar_como_concluida(tarefa_id)
    log_alteracao_dados("concluir", "tarefa", tarefa_id, ["status", "data_conclusao"], _request_id())
    return jsonify(dto.to_dict())


@tarefas_bp.route("/<int:tarefa_id>/andamento", methods=["PATCH"])
def iniciar_tarefa(tarefa_id: int):
    dto = _service().marcar_como_em_andamento(tarefa_id)
    log_alteracao_dados("andamento", "tarefa", tarefa_id, ["status"], _request_id())
    return jsonify(dto.to_dict())


@tarefas_bp.route("/<int:tarefa_id>/pendente", methods=["PATCH"])
def reabrir_tarefa(tarefa_id: int):
    dto = _service().marcar_como_pendente(tarefa_id)
    log_alteracao_dados("pendente", "tarefa", tarefa_id, ["status", "data_conclusao"], _request_id())
    return jsonify(dto.to_dict())


@tarefas_bp.route("/<int:tarefa_id>", methods=["DELETE"])
def excluir_tarefa(tarefa_id: int):
    _service().excluir_tarefa(tarefa_id)
    log_alteracao_dados("excluir", "tarefa", tarefa_id, [], _request_id())
    return "", 204
