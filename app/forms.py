"""WTForms definitions for the task API payloads."""

from typing import Any, Mapping

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import IntegerField, StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, NumberRange, Optional

from app.constants import (
    CATEGORIA_MAX,
    DESCRICAO_MAX,
    OBSERVACOES_MAX,
    TAGS_MAX,
    TITULO_MAX,
    TITULO_MIN,
    USUARIO_MAX,
)
from app.exceptions import ValidacaoError
from app.models.tables import PrioridadeTarefa, StatusTarefa
from app.services.tarefa_dto import AtualizarTarefaRequest, CriarTarefaRequest

STATUS_NOMES = [status.name for status in StatusTarefa]
PRIORIDADE_NOMES = [prioridade.name for prioridade in PrioridadeTarefa]

TITULO_TAMANHO_MSG = f"Título deve ter entre {TITULO_MIN} e {TITULO_MAX} caracteres"


def _texto(valor):
    """Blank strings are treated as "not informed"."""
    return valor if valor and valor.strip() else None


def _nome_enum(valor):
    """Enum names are accepted in any case, as in the query parameters."""
    return valor.strip().upper() if isinstance(valor, str) else valor


class _TarefaCamposForm(FlaskForm):
    """Campos opcionais comuns à criação e à atualização."""

    descricao = TextAreaField(
        "Descrição",
        validators=[Optional(), Length(max=DESCRICAO_MAX, message=f"Descrição deve ter no máximo {DESCRICAO_MAX} caracteres")],
    )
    prioridade = StringField(
        "Prioridade",
        filters=[_nome_enum],
        validators=[Optional(), AnyOf(PRIORIDADE_NOMES, message="Prioridade inválida")],
    )
    usuario_responsavel = StringField(
        "Responsável",
        validators=[Optional(), Length(max=USUARIO_MAX, message=f"Usuário responsável deve ter no máximo {USUARIO_MAX} caracteres")],
    )
    categoria = StringField(
        "Categoria",
        validators=[Optional(), Length(max=CATEGORIA_MAX, message=f"Categoria deve ter no máximo {CATEGORIA_MAX} caracteres")],
    )
    tags = StringField(
        "Tags",
        validators=[Optional(), Length(max=TAGS_MAX, message=f"Tags devem ter no máximo {TAGS_MAX} caracteres")],
    )
    estimativa_horas = IntegerField(
        "Estimativa (horas)",
        validators=[Optional(), NumberRange(min=0, message="Estimativa de horas deve ser positiva")],
    )
    observacoes = TextAreaField(
        "Observações",
        validators=[Optional(), Length(max=OBSERVACOES_MAX, message=f"Observações devem ter no máximo {OBSERVACOES_MAX} caracteres")],
    )

    def _prioridade(self):
        return PrioridadeTarefa[self.prioridade.data] if self.prioridade.data else None


class TarefaCreateForm(_TarefaCamposForm):
    """Payload de criação de tarefa."""

    titulo = StringField(
        "Título",
        validators=[
            DataRequired(message="Título é obrigatório"),
            Length(min=TITULO_MIN, max=TITULO_MAX, message=TITULO_TAMANHO_MSG),
        ],
    )

    def to_request(self) -> CriarTarefaRequest:
        return CriarTarefaRequest(
            titulo=self.titulo.data,
            descricao=_texto(self.descricao.data),
            prioridade=self._prioridade() or PrioridadeTarefa.MEDIA,
            usuario_responsavel=_texto(self.usuario_responsavel.data),
            categoria=_texto(self.categoria.data),
            tags=_texto(self.tags.data),
            estimativa_horas=self.estimativa_horas.data,
            observacoes=_texto(self.observacoes.data),
        )


class TarefaUpdateForm(_TarefaCamposForm):
    """Payload de atualização parcial; campos ausentes ficam inalterados."""

    titulo = StringField(
        "Título",
        validators=[Optional(), Length(min=TITULO_MIN, max=TITULO_MAX, message=TITULO_TAMANHO_MSG)],
    )
    status = StringField(
        "Status",
        filters=[_nome_enum],
        validators=[Optional(), AnyOf(STATUS_NOMES, message="Status inválido")],
    )
    tempo_real_horas = IntegerField(
        "Tempo real (horas)",
        validators=[Optional(), NumberRange(min=0, message="Tempo real de horas deve ser positivo")],
    )

    def to_request(self) -> AtualizarTarefaRequest:
        return AtualizarTarefaRequest(
            titulo=_texto(self.titulo.data),
            descricao=_texto(self.descricao.data),
            status=StatusTarefa[self.status.data] if self.status.data else None,
            prioridade=self._prioridade(),
            usuario_responsavel=_texto(self.usuario_responsavel.data),
            categoria=_texto(self.categoria.data),
            tags=_texto(self.tags.data),
            estimativa_horas=self.estimativa_horas.data,
            tempo_real_horas=self.tempo_real_horas.data,
            observacoes=_texto(self.observacoes.data),
        )


def validar_payload(form_class: type[_TarefaCamposForm], payload: Any) -> _TarefaCamposForm:
    """Bind a JSON object to ``form_class`` and validate it.

    ``null`` values are dropped so that ``Optional()`` treats them as absent;
    non-string values are passed as text and coerced by the fields.

    Raises:
        ValidacaoError: body is not an object or any field is invalid.
    """
    if not isinstance(payload, Mapping):
        raise ValidacaoError({"body": ["Corpo da requisição deve ser um objeto JSON"]})

    formdata = MultiDict(
        (chave, valor if isinstance(valor, str) else str(valor))
        for chave, valor in payload.items()
        if valor is not None and not isinstance(valor, (dict, list))
    )
    form = form_class(formdata=formdata, meta={"csrf": False})
    if not form.validate():
        raise ValidacaoError(form.errors)
    return form
